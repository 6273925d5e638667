from __future__ import annotations

import logging
from dataclasses import dataclass

from jobscribe.core.coordinator import Coordinator, PageRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ContextMenuItem:
    id: str
    title: str
    contexts: tuple[str, ...]


GENERATE_FROM_SELECTION = ContextMenuItem(
    id="generateFromSelection",
    title="Use selection as job description",
    contexts=("selection",),
)


class SelectionCapturer:
    """Forwards highlighted text to the coordinator on demand. No latch."""

    menu_item = GENERATE_FROM_SELECTION

    def __init__(self, coordinator: Coordinator):
        self.coordinator = coordinator

    def is_available(self, selection_text: str | None) -> bool:
        return bool(selection_text and selection_text.strip())

    async def capture(self, selection_text: str | None, page: PageRef, *, menu_item_id: str | None = None) -> bool:
        if menu_item_id is not None and menu_item_id != self.menu_item.id:
            return False
        if not self.is_available(selection_text):
            logger.debug("Selection command ignored on page_id=%s: nothing selected", page.page_id)
            return False

        await self.coordinator.on_selection_command(selection_text, page)
        return True
