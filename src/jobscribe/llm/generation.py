from __future__ import annotations

import logging
import time
from datetime import UTC, datetime

from jobscribe.config import Settings
from jobscribe.core.session import SessionStore
from jobscribe.db.store import DocumentStore
from jobscribe.errors import GenerationInputError
from jobscribe.llm.prompts import AUTOMATIC_SYSTEM_PROMPT, AUTOMATIC_USER_PROMPT, COVER_LETTER_PROMPT
from jobscribe.llm.providers import GenerationProvider, build_provider
from jobscribe.preferences import PreferencesStore
from jobscribe.types import (
    DocumentKind,
    GenerationInputs,
    GenerationResult,
    HistoryEntryInput,
    Preferences,
)

logger = logging.getLogger(__name__)


def render_filename(pattern: str, timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    try:
        name = pattern.format(
            date=moment.strftime("%Y-%m-%d"),
            timestamp=moment.strftime("%Y-%m-%dT%H-%M-%S"),
        )
    except (AttributeError, KeyError, IndexError, TypeError, ValueError):
        logger.warning("Invalid filename pattern %r; using it verbatim", pattern)
        name = pattern
    if not name.lower().endswith(".pdf"):
        name = f"{name}.pdf"
    return name


def _fill(template: str, inputs: GenerationInputs) -> str:
    return template.format(
        job_description=inputs.job_description or "N/A",
        tone=inputs.tone,
        additional_context=inputs.additional_context or "N/A",
        cover_letter=inputs.cover_letter,
        resume=inputs.resume,
        word_count_target=inputs.word_count_target,
    )


def build_prompt(inputs: GenerationInputs) -> str:
    return _fill(COVER_LETTER_PROMPT, inputs)


def build_system_instructions(inputs: GenerationInputs) -> str:
    return _fill(AUTOMATIC_SYSTEM_PROMPT, inputs)


class GenerationService:
    """Assembles generation inputs and records completed generations."""

    def __init__(
        self,
        *,
        settings: Settings,
        store: DocumentStore,
        session: SessionStore,
        preferences: PreferencesStore,
        provider: GenerationProvider | None = None,
    ):
        self.settings = settings
        self.store = store
        self.session = session
        self.preferences = preferences
        self.provider = provider or build_provider(settings)

    async def collect_inputs(self, preferences: Preferences | None = None) -> GenerationInputs:
        preferences = preferences or await self.preferences.load()
        snapshot = await self.session.get()

        if snapshot.selected_cover_letter_id is None or snapshot.selected_resume_id is None:
            raise GenerationInputError("Please select both a cover letter and a resume.")

        cover_letter = await self.store.get_content(
            DocumentKind.COVER_LETTERS, snapshot.selected_cover_letter_id
        )
        resume = await self.store.get_content(DocumentKind.RESUMES, snapshot.selected_resume_id)
        if cover_letter is None or resume is None:
            raise GenerationInputError("Could not retrieve content for selected documents.")

        return GenerationInputs(
            cover_letter=cover_letter,
            resume=resume,
            job_description=snapshot.job_description_text,
            additional_context=snapshot.additional_context,
            tone=snapshot.tone or preferences.default_tone,
            word_count_target=preferences.word_count_target,
        )

    async def prompt(self) -> str:
        return build_prompt(await self.collect_inputs())

    async def generate(self, *, credential: str | None = None) -> GenerationResult:
        preferences = await self.preferences.load()
        credential = credential or preferences.api_keys.get(self.provider.name)
        if self.provider.name == "local" and not credential:
            credential = self.settings.local_llm_api_key
        if not self.provider.validate_credential(credential):
            raise GenerationInputError(f"A valid {self.provider.name} API key is required.")

        inputs = await self.collect_inputs(preferences)
        timestamp = int(time.time() * 1000)
        filename = render_filename(preferences.filename_pattern, timestamp)
        content = await self.provider.generate(
            system_instructions=build_system_instructions(inputs),
            user_prompt=AUTOMATIC_USER_PROMPT,
            credential=credential,
            model=self.settings.generation_model,
        )

        entry = HistoryEntryInput(
            timestamp=timestamp,
            content=content,
            font=preferences.default_font,
            filename=filename,
        )
        history_id = await self.store.add_entry(entry)
        logger.info("Generated cover letter history_id=%s chars=%s", history_id, len(content))
        return GenerationResult(history_id=history_id, **entry.model_dump())
