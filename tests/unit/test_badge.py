from __future__ import annotations

import pytest

from jobscribe.core.badge import (
    ALERT_STYLE,
    HIDDEN_STYLE,
    BadgeState,
    BadgeStyle,
    BadgeTracker,
    RecordingBadgeRenderer,
    is_job_posting,
)


def test_job_posting_patterns() -> None:
    assert is_job_posting("https://www.linkedin.com/jobs/view/3901234567/")
    assert is_job_posting("https://www.linkedin.com/jobs/search/?currentJobId=39012&keywords=python")
    assert is_job_posting("https://boards.greenhouse.io/acme/jobs/12345")
    assert is_job_posting("https://jobs.lever.co/acme/0c6d1f3e-1111-2222-3333-444455556666")
    assert is_job_posting("https://uk.indeed.com/viewjob?jk=abc")
    assert not is_job_posting("https://www.linkedin.com/feed/")
    assert not is_job_posting("https://example.com/jobs/1")
    assert not is_job_posting("")
    assert not is_job_posting(None)


@pytest.mark.asyncio
async def test_badge_follows_address_changes() -> None:
    renderer = RecordingBadgeRenderer()
    tracker = BadgeTracker(renderer)

    assert await tracker.on_address_changed(1, "https://www.linkedin.com/feed/") is BadgeState.HIDDEN
    assert renderer.drawn[1] == HIDDEN_STYLE

    assert await tracker.on_address_changed(1, "https://www.linkedin.com/jobs/view/42") is BadgeState.ALERT
    assert renderer.drawn[1] == BadgeStyle(text="!", background="#F59E0B", foreground="#FFFFFF")

    assert await tracker.on_address_changed(1, "https://www.linkedin.com/feed/") is BadgeState.HIDDEN
    assert renderer.drawn[1].text == ""


@pytest.mark.asyncio
async def test_closing_page_clears_badge_and_forgets_state() -> None:
    renderer = RecordingBadgeRenderer()
    tracker = BadgeTracker(renderer)
    await tracker.alert(5)
    assert tracker.state(5) is BadgeState.ALERT
    assert renderer.drawn[5] == ALERT_STYLE

    await tracker.on_closed(5)

    assert renderer.drawn[5] == HIDDEN_STYLE
    assert tracker.state(5) is BadgeState.HIDDEN
    await tracker.on_closed(5)


class GonePageRenderer:
    async def render(self, page_id: int, style: BadgeStyle) -> None:
        raise LookupError(f"No tab with id: {page_id}")


@pytest.mark.asyncio
async def test_render_failures_are_tolerated() -> None:
    tracker = BadgeTracker(GonePageRenderer())

    await tracker.alert(9)
    await tracker.on_closed(9)

    assert tracker.state(9) is BadgeState.HIDDEN
