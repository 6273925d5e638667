from __future__ import annotations

from pathlib import Path

import pytest

from jobscribe.config import Settings
from jobscribe.db.store import DocumentStore
from jobscribe.types import UploadBlob


class FakeExtractor:
    """Decodes the blob as text, standing in for PDF parsing."""

    async def extract(self, blob: UploadBlob) -> str:
        return blob.data.decode("utf-8").strip()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'jobscribe.db'}",
        data_dir=tmp_path,
        preferences_path=tmp_path / "preferences.json",
        scrape_settle_delay_sec=0.01,
        scrape_observe_window_sec=0.2,
        surface_relay_delay_sec=0.01,
    )


@pytest.fixture
def store(settings: Settings) -> DocumentStore:
    return DocumentStore(settings.database_url, extractor=FakeExtractor())
