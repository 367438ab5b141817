"""Shared fixtures and test doubles for ClipVox tests."""

import base64

import pytest

from errors import SynthesisError
from models import SynthesisConfig


class FakeSpeechClient:
    """SpeechClient double: deterministic audio derived from the chunk text."""

    def __init__(self, fail_on_call: int | None = None, status_code: int = 503):
        self.calls: list[tuple[str, SynthesisConfig, dict]] = []
        self.fail_on_call = fail_on_call
        self.status_code = status_code

    async def synthesize_chunk(self, text, config, auth_headers):
        self.calls.append((text, config, auth_headers))
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise SynthesisError(self.status_code, "retries exhausted")
        return base64.b64encode(f"audio:{text[:20]}".encode()).decode("ascii")


class StaticCredentials:
    """CredentialProvider double returning fixed headers."""

    def __init__(self, error: Exception | None = None):
        self.calls = 0
        self.error = error

    async def auth_headers(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return {"Authorization": "Bearer test-token"}


class ScriptedTextGenerator:
    """TextGenerator double: replays queued JSON replies and records prompts."""

    def __init__(self, replies: list[dict]):
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def complete_json(self, system, prompt):
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("ScriptedTextGenerator ran out of replies")
        return self.replies.pop(0)


def outline_reply(title: str, count: int) -> dict:
    return {
        "title": title,
        "chapters": [
            {"title": f"Part {i + 1}", "summary": f"Covers point {i + 1}."}
            for i in range(count)
        ],
    }


def chapter_reply(n: int) -> dict:
    return {"body": f"Narration for chapter {n}.", "summary": f"Chapter {n} happened."}


@pytest.fixture
def speech_client() -> FakeSpeechClient:
    return FakeSpeechClient()


@pytest.fixture
def static_credentials() -> StaticCredentials:
    return StaticCredentials()


@pytest.fixture
def synthesis_config() -> SynthesisConfig:
    return SynthesisConfig(audio_encoding="MP3", voice_name="en-US-Chirp-HD-D")
