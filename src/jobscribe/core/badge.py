from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)

ALERT_TEXT = "!"
ALERT_BACKGROUND = "#F59E0B"
ALERT_FOREGROUND = "#FFFFFF"

JOB_POSTING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^https?://([a-z0-9-]+\.)*linkedin\.com/jobs/view/", re.I),
    re.compile(r"^https?://([a-z0-9-]+\.)*linkedin\.com/jobs/.*[?&]currentJobId=\d+", re.I),
    re.compile(r"^https?://([a-z0-9-]+\.)*indeed\.com/(viewjob|.*[?&]vjk=)", re.I),
    re.compile(r"^https?://(boards|job-boards)\.greenhouse\.io/[^/]+/jobs/\d+", re.I),
    re.compile(r"^https?://jobs\.lever\.co/[^/]+/[0-9a-f-]{8,}", re.I),
    re.compile(r"^https?://[^/]+\.myworkdayjobs\.com/.+/job/", re.I),
    re.compile(r"^https?://([a-z0-9-]+\.)*glassdoor\.[a-z.]+/job-listing/", re.I),
)


class BadgeState(str, Enum):
    HIDDEN = "hidden"
    ALERT = "alert"


@dataclass(frozen=True, slots=True)
class BadgeStyle:
    text: str
    background: str = ""
    foreground: str = ""


ALERT_STYLE = BadgeStyle(text=ALERT_TEXT, background=ALERT_BACKGROUND, foreground=ALERT_FOREGROUND)
HIDDEN_STYLE = BadgeStyle(text="")


def is_job_posting(url: str | None) -> bool:
    if not url:
        return False
    return any(pattern.search(url) for pattern in JOB_POSTING_PATTERNS)


class BadgeRenderer(Protocol):
    async def render(self, page_id: int, style: BadgeStyle) -> None: ...


class RecordingBadgeRenderer:
    """Keeps the last style drawn for each page; stands in for a toolbar."""

    def __init__(self) -> None:
        self.drawn: dict[int, BadgeStyle] = {}

    async def render(self, page_id: int, style: BadgeStyle) -> None:
        self.drawn[page_id] = style


class BadgeTracker:
    def __init__(self, renderer: BadgeRenderer | None = None) -> None:
        self.renderer = renderer or RecordingBadgeRenderer()
        self._states: dict[int, BadgeState] = {}

    def state(self, page_id: int) -> BadgeState:
        return self._states.get(page_id, BadgeState.HIDDEN)

    async def on_address_changed(self, page_id: int, url: str | None) -> BadgeState:
        target = BadgeState.ALERT if is_job_posting(url) else BadgeState.HIDDEN
        await self._enter(page_id, target)
        return target

    async def alert(self, page_id: int) -> None:
        await self._enter(page_id, BadgeState.ALERT)

    async def on_closed(self, page_id: int) -> None:
        await self._enter(page_id, BadgeState.HIDDEN)
        self._states.pop(page_id, None)

    async def _enter(self, page_id: int, state: BadgeState) -> None:
        previous = self.state(page_id)
        self._states[page_id] = state
        if previous != state:
            logger.debug("Badge page_id=%s %s -> %s", page_id, previous.value, state.value)

        style = ALERT_STYLE if state is BadgeState.ALERT else HIDDEN_STYLE
        try:
            await self.renderer.render(page_id, style)
        except Exception as exc:
            logger.warning("Badge update failed page_id=%s state=%s: %s", page_id, state.value, exc)
