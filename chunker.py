# ABOUTME: Splits narration scripts into UTF-8 byte-bounded chunks for speech synthesis
# ABOUTME: Packs whole paragraphs greedily; oversized paragraphs are cut at character boundaries
from __future__ import annotations

import re
from dataclasses import dataclass

# Paragraph boundary: two or more newlines (tolerates \r\n and blank lines with spaces)
PARAGRAPH_SPLIT = re.compile(r"(?:[ \t]*\r?\n){2,}")
PARAGRAPH_JOINER = "\n\n"


@dataclass(frozen=True)
class TextChunk:
    index: int
    text: str
    byte_length: int


def utf8_len(text: str) -> int:
    return len(text.encode("utf-8"))


def split_text(text: str, byte_limit: int) -> list[str]:
    """Split text into ordered chunks of at most ``byte_limit`` UTF-8 bytes.

    Paragraphs are packed whole (joined by a blank line) while they fit.
    A paragraph too large on its own is sliced at character boundaries, so
    no multi-byte character is ever split.
    """
    if byte_limit < 1:
        raise ValueError(f"byte_limit must be positive, got {byte_limit}")

    paragraphs = [p.strip() for p in PARAGRAPH_SPLIT.split(text) if p.strip()]

    chunks: list[str] = []
    current = ""

    for para in paragraphs:
        if utf8_len(para) > byte_limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.extend(_slice_paragraph(para, byte_limit))
            continue

        candidate = f"{current}{PARAGRAPH_JOINER}{para}" if current else para
        if utf8_len(candidate) <= byte_limit:
            current = candidate
        else:
            chunks.append(current)
            current = para

    if current:
        chunks.append(current)

    return chunks


def _slice_paragraph(para: str, byte_limit: int) -> list[str]:
    """Cut one oversized paragraph into slices that each fit ``byte_limit``."""
    slices: list[str] = []
    start = 0
    total = len(para)

    while start < total:
        end = start
        size = 0
        while end < total:
            char_size = utf8_len(para[end])
            if size + char_size > byte_limit:
                break
            size += char_size
            end += 1

        if end == start:
            # A single character wider than the limit: emit it alone
            end = start + 1

        piece = para[start:end].strip()
        if piece:
            slices.append(piece)
        start = end

    return slices


def plan_chunks(text: str, byte_limit: int) -> list[TextChunk]:
    """Split text and attach each chunk's position and byte size."""
    return [
        TextChunk(index=i, text=chunk, byte_length=utf8_len(chunk))
        for i, chunk in enumerate(split_text(text, byte_limit))
    ]
