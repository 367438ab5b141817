# ABOUTME: Pydantic data model for script requests, outlines, and synthesized audio
# ABOUTME: Wire names are camelCase (browser client); attributes stay snake_case
from __future__ import annotations

from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

_BRIEF_DEFAULTS = {"tone": "neutral", "style": "informative"}

# camelCase on the wire; model_name is a provider field, not a pydantic one
CAMEL_CASE = ConfigDict(populate_by_name=True, alias_generator=to_camel, protected_namespaces=())


class ScriptMode(str, Enum):
    ONESHOT = "oneshot"
    CRAFT = "craft"  # guided: the user's draft steers content and voice


class ScriptRequest(BaseModel):
    """Brief for one script generation run, as posted to /generate."""
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    tone: str = "neutral"
    style: str = "informative"
    target_minutes: float = Field(default=5, gt=0, allow_inf_nan=False, alias="length")
    chapter_count: int = Field(default=5, ge=1, alias="chapters")
    mode: ScriptMode = ScriptMode.ONESHOT
    draft: str | None = None

    @field_validator("topic")
    @classmethod
    def _topic_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Topic is required.")
        return value

    @field_validator("tone", "style", mode="before")
    @classmethod
    def _blank_to_default(cls, value, info: ValidationInfo):
        # Empty form fields fall back to the defaults
        if value is None or (isinstance(value, str) and not value.strip()):
            return _BRIEF_DEFAULTS[info.field_name]
        return value

    @model_validator(mode="after")
    def _draft_required_for_craft(self) -> ScriptRequest:
        if self.mode is ScriptMode.CRAFT and not (self.draft and self.draft.strip()):
            raise ValueError("Draft is required in craft mode.")
        return self


class ChapterPlan(BaseModel):
    title: str
    summary: str


class Outline(BaseModel):
    """Normalized outline: exactly the requested number of chapter stubs."""
    title: str
    chapters: list[ChapterPlan]


class ChapterSection(BaseModel):
    body: str
    summary: str


class SynthesisConfig(BaseModel):
    """Audio settings applied uniformly to every chunk of one script."""
    model_config = CAMEL_CASE

    audio_encoding: str = "LINEAR16"
    speaking_rate: float = Field(default=1.0, ge=0.25, le=4.0)
    pitch: float = Field(default=0.0, ge=-20.0, le=20.0)
    language_code: str = "en-US"
    voice_name: str = "en-US-Chirp-HD-F"
    model_name: str | None = None


class VoiceRequest(SynthesisConfig):
    """Body of /voice: the script text plus its audio settings."""
    text: str

    @field_validator("text")
    @classmethod
    def _text_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Text is required.")
        return value

    def synthesis_config(self) -> SynthesisConfig:
        return SynthesisConfig(**self.model_dump(exclude={"text"}))


class VoiceDescriptor(BaseModel):
    model_config = CAMEL_CASE

    language_code: str
    name: str
    model_name: str | None = None


class AudioSegment(BaseModel):
    """One synthesized chunk. Consumers play or concatenate by index."""
    model_config = CAMEL_CASE

    index: int
    text: str
    audio_content: str  # base64, as returned by the provider


class SynthesisResult(BaseModel):
    model_config = CAMEL_CASE

    segments: list[AudioSegment] = Field(default_factory=list)
    audio_encoding: str
    voice: VoiceDescriptor
    exceeded_limit: bool = False
