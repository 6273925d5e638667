from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jobscribe.types import Font, Tone


class PageAddressRequest(BaseModel):
    url: str = ""


class PageActionRequest(BaseModel):
    window_id: int = 0
    url: str = ""


class SelectionRequest(PageActionRequest):
    text: str
    menu_item_id: str | None = None


class PageMessageRequest(BaseModel):
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class BadgeResponse(BaseModel):
    page_id: int
    state: str
    text: str
    background: str
    foreground: str


class SessionUpdateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    selected_cover_letter_id: int | None = None
    selected_resume_id: int | None = None
    additional_context: str = ""
    tone: Tone | None = None


class DocumentCreatedResponse(BaseModel):
    id: int
    name: str


class DocumentSummary(BaseModel):
    id: int
    name: str


class DocumentContentResponse(BaseModel):
    id: int
    content: str


class RenameRequest(BaseModel):
    name: str = Field(min_length=1)


class PreferencesUpdateRequest(BaseModel):
    default_tone: Tone | None = None
    default_font: Font | None = None
    filename_pattern: str | None = Field(None, min_length=1)
    word_count_target: int | None = Field(None, gt=0)
    auto_copy: bool | None = None
    auto_download: bool | None = None


class ApiKeyRequest(BaseModel):
    provider: str
    key: str | None = None


class PreferencesResponse(BaseModel):
    default_tone: Tone
    default_font: Font
    filename_pattern: str
    word_count_target: int
    auto_copy: bool
    auto_download: bool
    api_key_providers: list[str]


class PromptResponse(BaseModel):
    prompt: str


class GenerateRequest(BaseModel):
    credential: str | None = None
