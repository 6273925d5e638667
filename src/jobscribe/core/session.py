from __future__ import annotations

import asyncio
import logging
from typing import Any

from jobscribe.types import JobDescriptionSource, SessionSnapshot

logger = logging.getLogger(__name__)

# Keys a UI surface may write. The job description fields belong to the coordinator.
SURFACE_WRITABLE_KEYS = {
    "selected_cover_letter_id",
    "selected_resume_id",
    "additional_context",
    "tone",
}


def should_replace(current_text: str, source: JobDescriptionSource) -> bool:
    """Highlighted text always wins; a scrape only fills an empty snapshot."""
    if source == "highlight":
        return True
    return not current_text.strip()


class SessionStore:
    """Session-scoped snapshot cell, shared by the coordinator and UI surfaces.

    Lives as long as the browsing session (the process); surfaces read it when
    they mount instead of relying on message delivery.
    """

    def __init__(self, initial: SessionSnapshot | None = None) -> None:
        self._snapshot = initial or SessionSnapshot()
        self._lock = asyncio.Lock()

    async def get(self) -> SessionSnapshot:
        async with self._lock:
            return self._snapshot.model_copy()

    async def apply_job_description(self, text: str, source: JobDescriptionSource) -> bool:
        text = text.strip()
        if not text:
            return False

        async with self._lock:
            if not should_replace(self._snapshot.job_description_text, source):
                logger.debug("Kept existing job description; ignored %s update", source)
                return False
            self._snapshot = self._snapshot.model_copy(
                update={"job_description_text": text, "job_description_source": source}
            )
        logger.info("Job description snapshot replaced source=%s chars=%s", source, len(text))
        return True

    async def update(self, values: dict[str, Any]) -> SessionSnapshot:
        unknown = set(values) - SURFACE_WRITABLE_KEYS
        if unknown:
            raise ValueError(f"session keys not writable: {sorted(unknown)}")

        async with self._lock:
            merged = {**self._snapshot.model_dump(), **values}
            self._snapshot = SessionSnapshot.model_validate(merged)
            return self._snapshot.model_copy()

    async def clear_job_description(self) -> None:
        async with self._lock:
            self._snapshot = self._snapshot.model_copy(
                update={"job_description_text": "", "job_description_source": None}
            )
        logger.info("Job description snapshot cleared")

    async def clear(self) -> None:
        async with self._lock:
            self._snapshot = SessionSnapshot()
        logger.info("Session snapshot reset")
