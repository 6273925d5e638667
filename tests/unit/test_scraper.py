from __future__ import annotations

import asyncio

import pytest

from jobscribe.core.messages import SCRAPED_JOB_DESCRIPTION, Message
from jobscribe.core.scraper import MutationRecord, PageScraper, extract_job_description

LONG_TEXT = "We are hiring a backend engineer to build Python services and data pipelines."


def _page(body: str) -> str:
    return f"<html><head><script>var x = 1;</script></head><body>{body}</body></html>"


def test_extract_prefers_first_matching_selector() -> None:
    html = _page(
        f'<div class="description__text">{LONG_TEXT} (fallback)</div>'
        f'<div class="jobs-description__content"><p>  {LONG_TEXT}  </p></div>'
    )
    assert extract_job_description(html) == LONG_TEXT


def test_extract_skips_short_matches_and_falls_back_to_article() -> None:
    article = " ".join([LONG_TEXT, LONG_TEXT])
    html = _page(f'<div class="jobs-description__content">Too short</div><article>{article}</article>')
    assert extract_job_description(html) == article


def test_extract_attribute_selector_and_visible_text_only() -> None:
    html = _page(
        f"<section data-test-description-section><h2>About</h2><style>.a{{}}</style><p>{LONG_TEXT}</p></section>"
    )
    assert extract_job_description(html) == f"About\n{LONG_TEXT}"


def test_extract_returns_none_when_nothing_matches() -> None:
    assert extract_job_description(_page("<div>Nothing to see</div><article>short</article>")) is None


class _Page:
    def __init__(self, html: str = "") -> None:
        self.html = html

    def read(self) -> str:
        return self.html


class _Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.sent: list[Message] = []
        self.fail = fail

    async def __call__(self, message: Message) -> dict:
        self.sent.append(message)
        if self.fail:
            raise ConnectionError("receiving end does not exist")
        return {"status": "received"}


@pytest.mark.asyncio
async def test_settle_attempt_sends_once() -> None:
    page = _Page(_page(f'<div class="description__text">{LONG_TEXT}</div>'))
    send = _Recorder()
    scraper = PageScraper(page.read, send, settle_delay_sec=0.01, observe_window_sec=1)

    scraper.start()
    await scraper.wait()

    assert scraper.scraped
    assert not scraper.observing
    assert [message.type for message in send.sent] == [SCRAPED_JOB_DESCRIPTION]
    assert send.sent[0].payload == {"text": LONG_TEXT}


@pytest.mark.asyncio
async def test_mutations_retry_until_first_success_then_latch() -> None:
    page = _Page(_page("<div>loading</div>"))
    send = _Recorder()
    scraper = PageScraper(page.read, send, settle_delay_sec=0.01, observe_window_sec=1)

    scraper.start()
    await scraper.wait()
    assert send.sent == []
    assert scraper.observing

    scraper.on_mutations([MutationRecord(type="attributes", added_nodes=1)])
    scraper.on_mutations([MutationRecord(type="childList", added_nodes=0)])
    await scraper.wait()
    assert send.sent == []

    page.html = _page(f'<div class="jobs-description__content">{LONG_TEXT}</div>')
    scraper.on_mutations([MutationRecord(type="childList", added_nodes=2)])
    scraper.on_mutations([MutationRecord(type="childList", added_nodes=2)])
    await scraper.wait()

    page.html = _page(f'<div class="jobs-description__content">{LONG_TEXT} changed</div>')
    assert await scraper.attempt() is False
    assert len(send.sent) == 1


@pytest.mark.asyncio
async def test_observation_window_stops_mutation_retries() -> None:
    page = _Page(_page("<div>loading</div>"))
    send = _Recorder()
    scraper = PageScraper(page.read, send, settle_delay_sec=0.01, observe_window_sec=0.05)

    scraper.start()
    await asyncio.sleep(0.1)
    assert not scraper.observing

    page.html = _page(f'<div class="description__text">{LONG_TEXT}</div>')
    scraper.on_mutations([MutationRecord(type="childList", added_nodes=1)])
    await scraper.wait()

    assert send.sent == []


@pytest.mark.asyncio
async def test_delivery_failure_is_not_retried() -> None:
    page = _Page(_page(f'<div class="description__text">{LONG_TEXT}</div>'))
    send = _Recorder(fail=True)
    scraper = PageScraper(page.read, send, settle_delay_sec=0.01, observe_window_sec=1)

    assert await scraper.attempt() is True
    assert await scraper.attempt() is False
    assert len(send.sent) == 1
