# ABOUTME: Chat-completion text generation returning parsed JSON objects
# ABOUTME: OpenAI implementation in JSON mode; callers depend only on the TextGenerator protocol
from __future__ import annotations

import json
import logging
from typing import Protocol

from openai import AsyncOpenAI

from errors import ProviderResponseError

logger = logging.getLogger("clipvox.llm")


class TextGenerator(Protocol):
    """Given a system + user prompt, returns a JSON object."""

    async def complete_json(self, system: str, prompt: str) -> dict: ...


def parse_json_object(raw: str) -> dict:
    """Decode a model reply that must be a single JSON object."""
    raw = raw.strip()
    if not raw:
        raise ProviderResponseError("Text generation returned an empty response")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProviderResponseError(f"Text generation returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProviderResponseError("Text generation returned JSON that is not an object")
    return data


class OpenAITextGenerator:
    """TextGenerator backed by OpenAI chat completions in JSON mode."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", temperature: float = 0.8):
        self.model = model
        self.temperature = temperature
        self._client = AsyncOpenAI(api_key=api_key)

    async def complete_json(self, system: str, prompt: str) -> dict:
        resp = await self._client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
        )
        raw = resp.choices[0].message.content or ""
        logger.debug("Completion received (%d chars, model=%s)", len(raw), self.model)
        return parse_json_object(raw)

    async def close(self):
        await self._client.close()
