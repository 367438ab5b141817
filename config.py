# ABOUTME: Environment-driven settings for the ClipVox backend (.env supported)
# ABOUTME: OpenAI key is mandatory; Google credentials fall back to ADC when unset
from __future__ import annotations

import logging
import os
from collections.abc import Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from errors import ConfigError

TTS_ENDPOINT = "https://texttospeech.googleapis.com/v1/text:synthesize"
DEFAULT_PORT = 3000

# Environment variable -> Settings field
ENV_FIELDS: dict[str, str] = {
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "openai_model",
    "GOOGLE_APPLICATION_CREDENTIALS_JSON": "google_credentials_json",
    "GOOGLE_APPLICATION_CREDENTIALS_BASE64": "google_credentials_base64",
    "TTS_ENDPOINT": "tts_endpoint",
    "TTS_TIMEOUT_SECONDS": "tts_timeout",
    "PORT": "port",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    """Process-wide configuration, resolved once at startup."""
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    google_credentials_json: str | None = None
    google_credentials_base64: str | None = None
    tts_endpoint: str = TTS_ENDPOINT
    tts_timeout: float = Field(default=60.0, gt=0)
    port: int = Field(default=DEFAULT_PORT, gt=0, lt=65536)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the environment (or an explicit mapping).

    A ``.env`` file in the working directory is honoured when reading the
    real process environment.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    raw = {
        field: environ[name].strip()
        for name, field in ENV_FIELDS.items()
        if environ.get(name, "").strip()
    }
    if "openai_api_key" not in raw:
        raise ConfigError("OPENAI_API_KEY is not set")

    try:
        return Settings(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
