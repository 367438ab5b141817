# ABOUTME: Async HTTP client for Google Cloud Text-to-Speech (text:synthesize)
# ABOUTME: Synthesizes one chunk per call with linear-backoff retry on transient status codes
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

import httpx

from config import TTS_ENDPOINT
from errors import ProviderResponseError, SynthesisError
from models import SynthesisConfig

logger = logging.getLogger("clipvox.tts")

REQUEST_TIMEOUT = 60.0
MAX_ATTEMPTS = 3
BASE_DELAY_SECS = 0.5  # wait = attempt * BASE_DELAY_SECS


class SpeechClient(Protocol):
    """Synthesizes a single chunk of text into base64-encoded audio."""

    async def synthesize_chunk(
        self,
        text: str,
        config: SynthesisConfig,
        auth_headers: dict[str, str],
    ) -> str: ...


def build_payload(text: str, config: SynthesisConfig) -> dict:
    """Request body for text:synthesize."""
    voice: dict = {
        "languageCode": config.language_code,
        "name": config.voice_name,
    }
    if config.model_name:
        voice["modelName"] = config.model_name
    return {
        "input": {"text": text},
        "voice": voice,
        "audioConfig": {
            "audioEncoding": config.audio_encoding,
            "speakingRate": config.speaking_rate,
            "pitch": config.pitch,
        },
    }


def _error_detail(resp: httpx.Response) -> str:
    """Pull the provider's error message out of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return resp.text


class TTSClient:
    """Async client for the Google Cloud Text-to-Speech REST API."""

    def __init__(
        self,
        endpoint: str = TTS_ENDPOINT,
        timeout: float = REQUEST_TIMEOUT,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = BASE_DELAY_SECS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                transport=self._transport,
            )
        return self._client

    async def close(self):
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _post_with_retry(self, payload: dict, headers: dict[str, str]) -> httpx.Response:
        """POST with linear backoff on retryable status codes and timeouts."""
        last_exc: SynthesisError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                client = await self._get_client()
                resp = await client.post(self.endpoint, json=payload, headers=headers)
            except httpx.TimeoutException as e:
                last_exc = SynthesisError(None, f"request timed out: {e}")
            else:
                if resp.is_success:
                    return resp
                last_exc = SynthesisError(resp.status_code, _error_detail(resp))
                if not last_exc.is_transient:
                    raise last_exc

            if attempt < self.max_attempts:
                wait = attempt * self.base_delay
                logger.warning("TTS request failed (attempt %d/%d), retrying in %.1fs: %s",
                               attempt, self.max_attempts, wait, last_exc)
                await asyncio.sleep(wait)

        logger.error("TTS request failed after %d attempts: %s", self.max_attempts, last_exc)
        raise last_exc  # type: ignore[misc]

    async def synthesize_chunk(
        self,
        text: str,
        config: SynthesisConfig,
        auth_headers: dict[str, str],
    ) -> str:
        """Synthesize one chunk. Returns the base64 audioContent."""
        resp = await self._post_with_retry(build_payload(text, config), auth_headers)
        try:
            body = resp.json()
        except ValueError as e:
            raise ProviderResponseError("Speech provider returned a non-JSON response") from e

        audio = body.get("audioContent") if isinstance(body, dict) else None
        if not audio:
            raise ProviderResponseError("Speech provider response contained no audioContent")
        return audio
