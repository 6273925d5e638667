from __future__ import annotations

import asyncio

import pytest

from jobscribe.core.badge import ALERT_STYLE, BadgeState, BadgeTracker, RecordingBadgeRenderer
from jobscribe.core.capture import SelectionCapturer
from jobscribe.core.coordinator import Coordinator, PageRef
from jobscribe.core.events import SurfaceChannel
from jobscribe.core.messages import JOB_DESCRIPTION_TEXT, Message, scraped_job_description
from jobscribe.core.session import SessionStore

JOB_URL = "https://www.linkedin.com/jobs/view/123456"


def _coordinator() -> tuple[Coordinator, SessionStore, SurfaceChannel, RecordingBadgeRenderer]:
    session = SessionStore()
    surfaces = SurfaceChannel()
    renderer = RecordingBadgeRenderer()
    coordinator = Coordinator(
        session=session,
        badges=BadgeTracker(renderer),
        surfaces=surfaces,
        relay_delay_sec=0.01,
    )
    return coordinator, session, surfaces, renderer


async def _listen(surfaces: SurfaceChannel, window_id: int):
    stream = surfaces.subscribe(window_id)
    next_message = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0.01)
    return stream, next_message


@pytest.mark.asyncio
async def test_scraped_message_is_acked_persisted_and_alerts_sender() -> None:
    coordinator, session, _, renderer = _coordinator()
    page = PageRef(page_id=7, window_id=1, url=JOB_URL)

    reply = await coordinator.handle_message(scraped_job_description("Senior Engineer role"), page)

    assert reply == {"status": "received"}
    snapshot = await session.get()
    assert snapshot.job_description_text == "Senior Engineer role"
    assert snapshot.job_description_source == "scrape"
    assert coordinator.badges.state(7) is BadgeState.ALERT
    assert renderer.drawn[7] == ALERT_STYLE


@pytest.mark.asyncio
async def test_second_scrape_does_not_replace_existing_snapshot() -> None:
    coordinator, session, _, _ = _coordinator()
    page = PageRef(page_id=1, url=JOB_URL)

    await coordinator.handle_message(scraped_job_description("first"), page)
    await coordinator.handle_message({"type": "SCRAPED_JOB_DESCRIPTION", "payload": {"text": "second"}}, page)

    assert (await session.get()).job_description_text == "first"


@pytest.mark.asyncio
async def test_highlight_always_overwrites_and_opens_surface() -> None:
    coordinator, session, surfaces, _ = _coordinator()
    page = PageRef(page_id=1, window_id=3, url="https://example.com/careers")
    await coordinator.handle_message(scraped_job_description("scraped text"), page)

    await coordinator.on_selection_command("highlighted text", page)
    await coordinator.on_selection_command("another highlight", page)

    snapshot = await session.get()
    assert snapshot.job_description_text == "another highlight"
    assert snapshot.job_description_source == "highlight"
    assert surfaces.is_visible(3)


@pytest.mark.asyncio
async def test_open_surface_receives_live_update_once_per_change() -> None:
    coordinator, _, surfaces, _ = _coordinator()
    stream, next_message = await _listen(surfaces, window_id=1)
    page = PageRef(page_id=2, window_id=1, url=JOB_URL)

    await coordinator.handle_message(scraped_job_description("job text"), page)
    message = await asyncio.wait_for(next_message, timeout=1)
    assert message == Message(type=JOB_DESCRIPTION_TEXT, payload={"text": "job text", "source": "scrape"})

    await coordinator.handle_message(scraped_job_description("ignored"), page)
    follow_up = asyncio.ensure_future(stream.__anext__())
    await asyncio.sleep(0.05)
    assert not follow_up.done()

    follow_up.cancel()
    with pytest.raises(asyncio.CancelledError):
        await follow_up


@pytest.mark.asyncio
async def test_messages_without_listeners_are_swallowed() -> None:
    coordinator, session, surfaces, _ = _coordinator()
    assert surfaces.listener_count() == 0

    await coordinator.on_selection_command("nobody is listening", PageRef(page_id=1))

    assert (await session.get()).job_description_text == "nobody is listening"


@pytest.mark.asyncio
async def test_toolbar_relays_scrape_snapshot_on_job_page_after_delay() -> None:
    coordinator, _, surfaces, _ = _coordinator()
    page = PageRef(page_id=4, window_id=9, url=JOB_URL)
    await coordinator.handle_message(scraped_job_description("saved job text"), page)

    _, next_message = await _listen(surfaces, window_id=9)
    await coordinator.on_toolbar_clicked(page)
    await coordinator.wait_idle()

    message = await asyncio.wait_for(next_message, timeout=1)
    assert message.payload == {"text": "saved job text", "source": "scrape"}
    assert surfaces.is_visible(9)


@pytest.mark.asyncio
async def test_toolbar_on_other_pages_only_opens_surface() -> None:
    coordinator, _, surfaces, _ = _coordinator()
    await coordinator.handle_message(scraped_job_description("saved"), PageRef(page_id=1, url=JOB_URL))

    await coordinator.on_toolbar_clicked(PageRef(page_id=5, window_id=2, url="https://example.com/"))

    assert surfaces.is_visible(2)
    assert surfaces.listener_count(2) == 0


@pytest.mark.asyncio
async def test_unknown_message_type_gets_no_reply() -> None:
    coordinator, session, _, _ = _coordinator()

    reply = await coordinator.handle_message({"type": "PING", "payload": {}}, PageRef(page_id=1))

    assert reply is None
    assert (await session.get()).job_description_text == ""


@pytest.mark.asyncio
async def test_selection_capturer_requires_a_selection() -> None:
    coordinator, session, _, _ = _coordinator()
    capturer = SelectionCapturer(coordinator)
    page = PageRef(page_id=1, window_id=1)

    assert await capturer.capture("   ", page) is False
    assert await capturer.capture("picked text", page, menu_item_id="someOtherMenu") is False
    assert await capturer.capture("picked text", page, menu_item_id=capturer.menu_item.id) is True

    assert (await session.get()).job_description_text == "picked text"
