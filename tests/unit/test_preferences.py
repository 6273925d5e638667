from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from jobscribe.preferences import PreferencesStore


@pytest.mark.asyncio
async def test_defaults_when_missing(tmp_path: Path) -> None:
    preferences = await PreferencesStore(tmp_path / "prefs.json").load()

    assert preferences.default_tone == "professional"
    assert preferences.default_font == "times"
    assert preferences.word_count_target == 270
    assert preferences.api_keys == {}


@pytest.mark.asyncio
async def test_update_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "prefs.json"
    await PreferencesStore(path).update({"default_font": "helvetica", "filename_pattern": "cl_{date}"})
    await PreferencesStore(path).set_api_key("openai", "sk-test")

    reloaded = await PreferencesStore(path).load()

    assert reloaded.default_font == "helvetica"
    assert reloaded.filename_pattern == "cl_{date}"
    assert reloaded.api_keys == {"openai": "sk-test"}


@pytest.mark.asyncio
async def test_clearing_api_key(tmp_path: Path) -> None:
    store = PreferencesStore(tmp_path / "prefs.json")
    await store.set_api_key("openai", "sk-test")

    cleared = await store.set_api_key("openai", None)

    assert cleared.api_keys == {}


@pytest.mark.asyncio
async def test_invalid_update_is_rejected_and_not_written(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    store = PreferencesStore(path)

    with pytest.raises(ValidationError):
        await store.update({"word_count_target": 0})

    assert not path.exists()


@pytest.mark.asyncio
async def test_unreadable_file_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text('{"default_font": "comic-sans"}', encoding="utf-8")

    preferences = await PreferencesStore(path).load()

    assert preferences.default_font == "times"
