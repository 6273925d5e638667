from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from jobscribe.types import Preferences

logger = logging.getLogger(__name__)


class PreferencesStore:
    """Durable user preferences kept as JSON next to the database."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def load(self) -> Preferences:
        async with self._lock:
            return await asyncio.to_thread(self._read)

    async def update(self, values: dict[str, Any]) -> Preferences:
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            merged = Preferences.model_validate({**current.model_dump(), **values})
            await asyncio.to_thread(self._write, merged)
            return merged

    async def set_api_key(self, provider: str, key: str | None) -> Preferences:
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            keys = dict(current.api_keys)
            if key:
                keys[provider] = key
            else:
                keys.pop(provider, None)
            merged = current.model_copy(update={"api_keys": keys})
            await asyncio.to_thread(self._write, merged)
            return merged

    def _read(self) -> Preferences:
        if not self.path.exists():
            return Preferences()
        try:
            return Preferences.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValidationError as exc:
            logger.warning("Ignoring unreadable preferences at %s: %s", self.path, exc)
            return Preferences()

    def _write(self, preferences: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preferences.model_dump_json(indent=2), encoding="utf-8")
