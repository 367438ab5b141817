# ABOUTME: Error taxonomy shared by the script and voice pipelines
# ABOUTME: The HTTP layer maps each class to a status code (400/401/500/502)
from __future__ import annotations

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class ClipVoxError(Exception):
    """Base class for all ClipVox errors."""


class ConfigError(ClipVoxError):
    """Required configuration is missing or malformed."""


class InvalidRequestError(ClipVoxError):
    """Caller supplied unusable input (missing topic, draft, or text)."""


class ProviderResponseError(ClipVoxError):
    """A provider reported success but the payload broke its contract."""


class AuthenticationError(ClipVoxError):
    """Speech provider credentials could not be loaded or refreshed."""


class SynthesisError(ClipVoxError):
    """Speech provider rejected a chunk, or retries were exhausted."""

    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        if status_code is None:
            super().__init__(f"Speech synthesis failed: {detail}")
        else:
            super().__init__(f"Speech synthesis failed ({status_code}): {detail}")

    @property
    def is_transient(self) -> bool:
        return self.status_code in RETRYABLE_STATUS_CODES
