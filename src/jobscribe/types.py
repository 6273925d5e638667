from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Tone = Literal["professional", "friendly", "casual"]
Font = Literal["times", "helvetica"]
JobDescriptionSource = Literal["scrape", "highlight"]
ProviderName = Literal["openai", "local"]

TONES: tuple[str, ...] = ("professional", "friendly", "casual")


class DocumentKind(str, Enum):
    COVER_LETTERS = "coverLetters"
    RESUMES = "resumes"


HISTORY_COLLECTION = "generationHistory"


class DocumentRecord(BaseModel):
    id: int
    name: str
    content: str


class HistoryEntryInput(BaseModel):
    timestamp: int
    content: str
    font: Font = "times"
    filename: str = "cover_letter.pdf"

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, value: int) -> int:
        if value < 0:
            raise ValueError("timestamp must be epoch milliseconds")
        return value


class HistoryRecord(HistoryEntryInput):
    id: int


class UploadBlob(BaseModel):
    name: str
    data: bytes
    content_type: str = ""


class SessionSnapshot(BaseModel):
    """Session-scoped state shared by every UI surface.

    Serialized with the camelCase keys UI surfaces read on mount.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_description_text: str = ""
    job_description_source: JobDescriptionSource | None = None
    selected_cover_letter_id: int | None = None
    selected_resume_id: int | None = None
    additional_context: str = ""
    tone: Tone | None = None


class Preferences(BaseModel):
    api_keys: dict[str, str] = Field(default_factory=dict)
    default_tone: Tone = "professional"
    default_font: Font = "times"
    filename_pattern: str = "cover_letter.pdf"
    word_count_target: int = 270
    auto_copy: bool = False
    auto_download: bool = False

    @field_validator("word_count_target")
    @classmethod
    def validate_word_count(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("word_count_target must be positive")
        return value

    @field_validator("filename_pattern")
    @classmethod
    def validate_filename_pattern(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("filename_pattern must not be empty")
        try:
            value.format(date="2024-01-31", timestamp="2024-01-31T09-30-00")
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
            raise ValueError(
                "filename_pattern may only use the {date} and {timestamp} placeholders"
            ) from exc
        return value


class GenerationInputs(BaseModel):
    cover_letter: str
    resume: str
    job_description: str = ""
    additional_context: str = ""
    tone: Tone = "professional"
    word_count_target: int = 270


class GenerationResult(BaseModel):
    content: str
    history_id: int
    filename: str
    font: Font
    timestamp: int
