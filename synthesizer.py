# ABOUTME: Turns a full narration script into ordered audio segments
# ABOUTME: Coordinates chunking → auth → sequential per-chunk synthesis; any failure aborts the run
from __future__ import annotations

import logging

from chunker import plan_chunks, utf8_len
from credentials import CredentialProvider
from errors import InvalidRequestError
from models import AudioSegment, SynthesisConfig, SynthesisResult, VoiceDescriptor
from tts_client import SpeechClient

logger = logging.getLogger("clipvox.synthesizer")

MAX_REQUEST_BYTES = 5000   # provider's hard per-request input limit
SAFE_CHUNK_BYTES = 4500    # headroom for request overhead


class SpeechSynthesizer:
    """Speech pipeline for one script at a time (stateless between calls)."""

    def __init__(
        self,
        client: SpeechClient,
        credentials: CredentialProvider,
        chunk_bytes: int = SAFE_CHUNK_BYTES,
    ):
        self.client = client
        self.credentials = credentials
        self.chunk_bytes = chunk_bytes

    async def synthesize(self, script: str, config: SynthesisConfig) -> SynthesisResult:
        """Synthesize every chunk of ``script`` in order."""
        if not script.strip():
            raise InvalidRequestError("Text is required for voice synthesis.")

        script_bytes = utf8_len(script)
        exceeded = script_bytes > MAX_REQUEST_BYTES
        chunks = plan_chunks(script, self.chunk_bytes)
        logger.info("Synthesizing %d bytes as %d chunk(s) (voice=%s, encoding=%s)",
                    script_bytes, len(chunks), config.voice_name, config.audio_encoding)

        # One token fetch for the whole script
        headers = await self.credentials.auth_headers()

        segments: list[AudioSegment] = []
        for chunk in chunks:
            logger.info("Synthesizing chunk %d/%d (%d bytes)",
                        chunk.index + 1, len(chunks), chunk.byte_length)
            audio = await self.client.synthesize_chunk(chunk.text, config, headers)
            segments.append(AudioSegment(index=chunk.index, text=chunk.text, audio_content=audio))

        return SynthesisResult(
            segments=segments,
            audio_encoding=config.audio_encoding,
            voice=VoiceDescriptor(
                language_code=config.language_code,
                name=config.voice_name,
                model_name=config.model_name,
            ),
            exceeded_limit=exceeded,
        )
