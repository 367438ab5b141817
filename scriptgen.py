# ABOUTME: Outline → chapter-by-chapter narration script generation
# ABOUTME: Chapters are written strictly in order, each seeing prior chapter summaries
from __future__ import annotations

import logging

from errors import ProviderResponseError
from llm_client import TextGenerator
from models import ChapterPlan, ChapterSection, Outline, ScriptMode, ScriptRequest

logger = logging.getLogger("clipvox.scriptgen")

WORDS_PER_MINUTE = 130
MIN_CHAPTER_WORDS = 180

PLACEHOLDER_SUMMARY = "Continue the narrative."

SYSTEM_PROMPT = (
    "You are a senior scriptwriter for long-form narrated videos. "
    "You write spoken narration only: no stage directions, no camera notes, "
    "no markdown, no headings inside narration. "
    "Always answer with a single JSON object and nothing else."
)

OUTLINE_INSTRUCTIONS = (
    "Plan a narrated video script.\n"
    "Return JSON of the form "
    '{{"title": string, "chapters": [{{"title": string, "summary": string}}]}} '
    "with exactly {chapters} chapters. Each summary is one or two sentences "
    "describing what the chapter covers."
)

CHAPTER_INSTRUCTIONS = (
    "Write the narration for chapter {number} of {total}.\n"
    "Return JSON of the form "
    '{{"body": string, "summary": string}} where body is roughly {words} words of '
    "narration (plain paragraphs, no heading) and summary is one sentence "
    "describing what this chapter said."
)


def target_word_counts(target_minutes: float, chapter_count: int) -> tuple[int, int]:
    """Return (total words, words per chapter) for the requested runtime."""
    total = max(WORDS_PER_MINUTE, round(target_minutes * WORDS_PER_MINUTE))
    per_chapter = max(MIN_CHAPTER_WORDS, round(total / chapter_count))
    return total, per_chapter


def _brief(request: ScriptRequest) -> str:
    lines = [
        f"Topic: {request.topic}",
        f"Tone: {request.tone}",
        f"Style: {request.style}",
        f"Target runtime: {request.target_minutes:g} minutes",
    ]
    if request.mode is ScriptMode.CRAFT and request.draft:
        lines.append(
            "The author supplied this draft. Follow its beats, facts and voice closely:\n"
            f"<<<\n{request.draft.strip()}\n>>>"
        )
    return "\n".join(lines)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_outline(data: dict, chapter_count: int) -> Outline:
    """Validate an outline reply and fit it to exactly ``chapter_count`` stubs.

    Short outlines are padded by repeating the last stub; long ones are cut.
    """
    title = _text(data.get("title"))
    raw_chapters = data.get("chapters")
    if not title or not isinstance(raw_chapters, list) or not raw_chapters:
        raise ProviderResponseError("Outline response is missing a title or chapters")

    plans: list[ChapterPlan] = []
    for i, raw in enumerate(raw_chapters[:chapter_count]):
        raw = raw if isinstance(raw, dict) else {}
        plans.append(ChapterPlan(
            title=_text(raw.get("title")) or f"Chapter {i + 1}",
            summary=_text(raw.get("summary")) or PLACEHOLDER_SUMMARY,
        ))

    while len(plans) < chapter_count:
        plans.append(plans[-1].model_copy())

    return Outline(title=title, chapters=plans)


def assemble_script(title: str, plans: list[ChapterPlan], sections: list[ChapterSection]) -> str:
    """Title line, then one "Chapter N: title" block per chapter, blank-line separated."""
    blocks = [title]
    for i, (plan, section) in enumerate(zip(plans, sections)):
        blocks.append(f"Chapter {i + 1}: {plan.title}\n{section.body}")
    return "\n\n".join(blocks).strip()


class ScriptGenerator:
    """Runs the outline step, then each chapter in sequence."""

    def __init__(self, text_generator: TextGenerator):
        self.text_generator = text_generator

    async def generate_outline(self, request: ScriptRequest) -> Outline:
        prompt = (
            f"{_brief(request)}\n\n"
            + OUTLINE_INSTRUCTIONS.format(chapters=request.chapter_count)
        )
        data = await self.text_generator.complete_json(SYSTEM_PROMPT, prompt)
        outline = normalize_outline(data, request.chapter_count)
        logger.info("Outline ready: %r (%d chapters)", outline.title, len(outline.chapters))
        return outline

    async def generate_chapter(
        self,
        request: ScriptRequest,
        outline: Outline,
        index: int,
        prior_summaries: list[str],
        words: int,
    ) -> ChapterSection:
        plan = outline.chapters[index]
        plan_lines = "\n".join(
            f"{i + 1}. {p.title}: {p.summary}" for i, p in enumerate(outline.chapters)
        )
        if prior_summaries:
            so_far = "\n".join(f"- Chapter {i + 1}: {s}" for i, s in enumerate(prior_summaries))
        else:
            so_far = "- Nothing yet; this chapter opens the video."

        prompt = (
            f"{_brief(request)}\n\n"
            f"Script title: {outline.title}\n"
            f"Outline:\n{plan_lines}\n\n"
            f"Story so far:\n{so_far}\n\n"
            f"Current chapter: {plan.title}\n"
            f"Chapter goal: {plan.summary}\n\n"
            + CHAPTER_INSTRUCTIONS.format(
                number=index + 1, total=len(outline.chapters), words=words,
            )
        )
        data = await self.text_generator.complete_json(SYSTEM_PROMPT, prompt)

        body = _text(data.get("body"))
        if not body:
            raise ProviderResponseError(f"Chapter {index + 1} response is missing a body")
        return ChapterSection(body=body, summary=_text(data.get("summary")) or plan.summary)

    async def generate_script(self, request: ScriptRequest) -> str:
        """Generate the full script. Any failed step aborts the whole run."""
        _, per_chapter = target_word_counts(request.target_minutes, request.chapter_count)
        outline = await self.generate_outline(request)

        sections: list[ChapterSection] = []
        summaries: list[str] = []
        for i in range(len(outline.chapters)):
            logger.info("Writing chapter %d/%d (~%d words)", i + 1, len(outline.chapters), per_chapter)
            section = await self.generate_chapter(request, outline, i, summaries, per_chapter)
            sections.append(section)
            summaries = summaries + [section.summary]

        return assemble_script(outline.title, outline.chapters, sections)
