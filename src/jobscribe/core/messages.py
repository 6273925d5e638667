from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from jobscribe.types import JobDescriptionSource

SCRAPED_JOB_DESCRIPTION = "SCRAPED_JOB_DESCRIPTION"
JOB_DESCRIPTION_TEXT = "JOB_DESCRIPTION_TEXT"


class Message(BaseModel):
    type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class ScrapedJobDescription(BaseModel):
    text: str


class JobDescriptionText(BaseModel):
    text: str
    source: JobDescriptionSource


class Ack(BaseModel):
    status: Literal["received"] = "received"


def scraped_job_description(text: str) -> Message:
    return Message(type=SCRAPED_JOB_DESCRIPTION, payload=ScrapedJobDescription(text=text).model_dump())


def job_description_text(text: str, source: JobDescriptionSource) -> Message:
    return Message(
        type=JOB_DESCRIPTION_TEXT,
        payload=JobDescriptionText(text=text, source=source).model_dump(),
    )
