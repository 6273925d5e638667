"""Job description extraction for a single loaded page.

``PageScraper`` is the page-side half of the sync protocol: it waits for the
page to settle, retries when the DOM grows, and reports the first description
it finds exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup

from jobscribe.core.messages import Message, scraped_job_description

logger = logging.getLogger(__name__)

DESCRIPTION_SELECTORS: tuple[str, ...] = (
    "div.jobs-description__content",
    "div.show-more-less-html__markup",
    "div.description__text",
    "[data-test-description-section]",
    'section[class*="job-description"]',
    'div[class*="description"]',
)
ARTICLE_SELECTOR = "article"
MIN_SELECTOR_CHARS = 50
MIN_ARTICLE_CHARS = 100

Sender = Callable[[Message], Awaitable[Any]]


def visible_text(element: Any) -> str:
    text = element.get_text("\n")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


def extract_job_description(html: str) -> str | None:
    """Return the first candidate's text, or ``None`` when nothing matches."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()

    for selector in DESCRIPTION_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = visible_text(element)
        if len(text) > MIN_SELECTOR_CHARS:
            logger.debug("Scraped job description using selector %s", selector)
            return text

    article = soup.select_one(ARTICLE_SELECTOR)
    if article is not None:
        text = visible_text(article)
        if len(text) > MIN_ARTICLE_CHARS:
            logger.debug("Scraped job description from <article>")
            return text

    return None


@dataclass(frozen=True, slots=True)
class MutationRecord:
    type: str
    added_nodes: int = 0


class PageScraper:
    def __init__(
        self,
        read_html: Callable[[], str],
        send: Sender,
        *,
        settle_delay_sec: float = 0.5,
        observe_window_sec: float = 10.0,
    ):
        self.read_html = read_html
        self.send = send
        self.settle_delay_sec = settle_delay_sec
        self.observe_window_sec = observe_window_sec
        self._scraped = False
        self._observing = False
        self._window: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def scraped(self) -> bool:
        return self._scraped

    @property
    def observing(self) -> bool:
        return self._observing

    def start(self) -> None:
        if self._observing:
            return
        loop = asyncio.get_running_loop()
        self._observing = True
        self._spawn(self._attempt_after(self.settle_delay_sec))
        self._window = loop.call_later(self.observe_window_sec, self.stop)

    def stop(self) -> None:
        self._observing = False
        if self._window is not None:
            self._window.cancel()
            self._window = None

    def on_mutations(self, records: Iterable[MutationRecord]) -> None:
        if not self._observing or self._scraped:
            return
        if any(record.type == "childList" and record.added_nodes > 0 for record in records):
            self._spawn(self.attempt())

    async def attempt(self) -> bool:
        if self._scraped:
            return False

        text = extract_job_description(self.read_html())
        if text is None:
            return False

        self._scraped = True
        self.stop()
        try:
            response = await self.send(scraped_job_description(text))
            logger.info("Job description sent chars=%s response=%s", len(text), response)
        except Exception as exc:
            logger.warning("Failed to send scraped job description: %s", exc)
        return True

    async def wait(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _attempt_after(self, delay: float) -> bool:
        await asyncio.sleep(delay)
        return await self.attempt()

    def _spawn(self, coro: Awaitable[bool]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
