from __future__ import annotations

from dataclasses import dataclass

from jobscribe.config import Settings, get_settings
from jobscribe.core.badge import BadgeTracker
from jobscribe.core.capture import SelectionCapturer
from jobscribe.core.coordinator import Coordinator
from jobscribe.core.events import SurfaceChannel
from jobscribe.core.session import SessionStore
from jobscribe.db.store import DocumentStore
from jobscribe.preferences import PreferencesStore


@dataclass(slots=True)
class Runtime:
    settings: Settings
    store: DocumentStore
    session: SessionStore
    preferences: PreferencesStore
    surfaces: SurfaceChannel
    badges: BadgeTracker
    coordinator: Coordinator
    capturer: SelectionCapturer


def build_runtime(settings: Settings | None = None) -> Runtime:
    settings = settings or get_settings()
    session = SessionStore()
    surfaces = SurfaceChannel()
    badges = BadgeTracker()
    coordinator = Coordinator(
        session=session,
        badges=badges,
        surfaces=surfaces,
        relay_delay_sec=settings.surface_relay_delay_sec,
    )
    return Runtime(
        settings=settings,
        store=DocumentStore(settings.database_url, version=settings.store_schema_version),
        session=session,
        preferences=PreferencesStore(settings.preferences_path),
        surfaces=surfaces,
        badges=badges,
        coordinator=coordinator,
        capturer=SelectionCapturer(coordinator),
    )


_RUNTIME: Runtime | None = None


def get_runtime() -> Runtime:
    global _RUNTIME
    if _RUNTIME is None:
        _RUNTIME = build_runtime()
    return _RUNTIME


def get_document_store() -> DocumentStore:
    return get_runtime().store
