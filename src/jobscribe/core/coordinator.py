from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from jobscribe.core.badge import BadgeTracker, is_job_posting
from jobscribe.core.events import SurfaceChannel
from jobscribe.core.messages import (
    SCRAPED_JOB_DESCRIPTION,
    Ack,
    Message,
    ScrapedJobDescription,
    job_description_text,
)
from jobscribe.core.session import SessionStore
from jobscribe.types import JobDescriptionSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PageRef:
    page_id: int
    window_id: int = 0
    url: str = ""


class Coordinator:
    """Long-lived arbiter between page instances and UI surfaces.

    Every call out to a page or surface is fire-and-forget: failures are
    logged, never raised back to the sender, and never retried. The session
    snapshot is what late readers rely on.
    """

    def __init__(
        self,
        *,
        session: SessionStore,
        badges: BadgeTracker,
        surfaces: SurfaceChannel,
        relay_delay_sec: float = 0.5,
    ):
        self.session = session
        self.badges = badges
        self.surfaces = surfaces
        self.relay_delay_sec = relay_delay_sec
        self._pending: set[asyncio.Task[None]] = set()

    async def handle_message(self, message: Message | dict[str, Any], sender: PageRef) -> dict[str, Any] | None:
        if isinstance(message, dict):
            message = Message.model_validate(message)

        if message.type == SCRAPED_JOB_DESCRIPTION:
            payload = ScrapedJobDescription.model_validate(message.payload)
            await self._accept_job_description(payload.text, "scrape")
            await self.badges.alert(sender.page_id)
            return Ack().model_dump()

        logger.warning("Ignoring unknown message type=%s from page_id=%s", message.type, sender.page_id)
        return None

    async def on_selection_command(self, selection_text: str, page: PageRef) -> None:
        await self._open_surface(page.window_id)
        await self._accept_job_description(selection_text, "highlight")

    async def on_toolbar_clicked(self, page: PageRef) -> None:
        await self._open_surface(page.window_id)
        if not is_job_posting(page.url):
            return

        snapshot = await self.session.get()
        if snapshot.job_description_text and snapshot.job_description_source == "scrape":
            self._schedule_relay(snapshot.job_description_text, "scrape", page.window_id)

    async def on_page_updated(self, page_id: int, url: str | None) -> None:
        await self.badges.on_address_changed(page_id, url)

    async def on_page_removed(self, page_id: int) -> None:
        await self.badges.on_closed(page_id)

    async def wait_idle(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _accept_job_description(self, text: str, source: JobDescriptionSource) -> None:
        changed = await self.session.apply_job_description(text, source)
        if changed:
            await self._relay(text.strip(), source)

    async def _open_surface(self, window_id: int) -> None:
        try:
            await self.surfaces.open(window_id)
        except Exception as exc:
            logger.warning("Could not open surface window_id=%s: %s", window_id, exc)

    async def _relay(self, text: str, source: JobDescriptionSource, window_id: int | None = None) -> None:
        try:
            await self.surfaces.publish(job_description_text(text, source), window_id=window_id)
        except Exception as exc:
            logger.info("Job description not relayed (%s); surfaces will read the snapshot", exc)

    def _schedule_relay(self, text: str, source: JobDescriptionSource, window_id: int) -> None:
        async def _later() -> None:
            await asyncio.sleep(self.relay_delay_sec)
            await self._relay(text, source, window_id)

        task = asyncio.ensure_future(_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
