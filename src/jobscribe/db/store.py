from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from sqlalchemy import create_engine, delete, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobscribe.db import migrations
from jobscribe.db.extraction import BlobExtractor, ContentExtractor
from jobscribe.db.models import CoverLetterDocument, HistoryEntry, ResumeDocument
from jobscribe.errors import NotFoundError, UnknownCollectionError, VersionConflictError
from jobscribe.types import (
    HISTORY_COLLECTION,
    DocumentKind,
    DocumentRecord,
    HistoryEntryInput,
    HistoryRecord,
    UploadBlob,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DocumentModel = type[CoverLetterDocument] | type[ResumeDocument]

_DOCUMENT_MODELS: dict[DocumentKind, DocumentModel] = {
    DocumentKind.COVER_LETTERS: CoverLetterDocument,
    DocumentKind.RESUMES: ResumeDocument,
}


def resolve_kind(kind: DocumentKind | str) -> DocumentKind:
    try:
        return DocumentKind(kind)
    except ValueError as exc:
        raise UnknownCollectionError(f"unknown document collection {kind!r}") from exc


def _build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, future=True)

    connect_args = {"check_same_thread": False}
    if url.database in (None, "", ":memory:"):
        return create_engine(
            database_url, connect_args=connect_args, poolclass=StaticPool, future=True
        )

    Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url, connect_args=connect_args, future=True)


class DocumentStore:
    """Local database of cover letters, resumes and generation history.

    The connection is opened lazily at ``version`` and reused by every
    operation until :meth:`close`. Each operation runs in its own transaction
    on a worker thread so the event loop never blocks on SQLite.
    """

    def __init__(
        self,
        database_url: str,
        *,
        version: int = migrations.LATEST_VERSION,
        extractor: ContentExtractor | None = None,
    ):
        self.database_url = database_url
        self.version = version
        self.extractor = extractor or BlobExtractor()
        self._engine: Engine | None = None
        self._sessions: sessionmaker[Session] | None = None
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._sessions is not None

    async def open(self) -> None:
        async with self._open_lock:
            if self._sessions is not None:
                return
            await asyncio.to_thread(self._open_sync)

    def _open_sync(self) -> None:
        engine = _build_engine(self.database_url)
        try:
            with engine.begin() as conn:
                existing = migrations.read_version(conn)
                if existing > self.version:
                    raise VersionConflictError(self.version, existing)
                applied = migrations.upgrade(conn, current=existing, target=self.version)
        except Exception:
            engine.dispose()
            raise

        if applied:
            logger.info("Document store upgraded from version %s to %s", existing, self.version)
        self._engine = engine
        self._sessions = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False, future=True
        )

    async def close(self) -> None:
        async with self._open_lock:
            engine = self._engine
            self._engine = None
            self._sessions = None
        if engine is not None:
            await asyncio.to_thread(engine.dispose)

    async def recreate(self) -> None:
        """Delete every collection and rebuild the schema at ``self.version``."""
        await self.close()
        await asyncio.to_thread(self._drop_sync)
        logger.warning("Document store at %s was deleted and recreated", self.database_url)
        await self.open()

    def _drop_sync(self) -> None:
        engine = _build_engine(self.database_url)
        try:
            with engine.begin() as conn:
                migrations.drop_all(conn)
        finally:
            engine.dispose()

    async def _run(self, fn: Callable[[Session], T]) -> T:
        await self.open()
        sessions = self._sessions
        if sessions is None:
            raise RuntimeError("document store was closed while an operation was starting")

        def _call() -> T:
            with sessions() as session, session.begin():
                return fn(session)

        return await asyncio.to_thread(_call)

    async def add(self, kind: DocumentKind | str, blob: UploadBlob) -> int:
        model = _DOCUMENT_MODELS[resolve_kind(kind)]
        content = await self.extractor.extract(blob)

        def _insert(session: Session) -> int:
            row = model(name=blob.name, content=content)
            session.add(row)
            session.flush()
            return row.id

        document_id = await self._run(_insert)
        logger.info("Added %s document id=%s name=%s", model.__tablename__, document_id, blob.name)
        return document_id

    async def list(self, kind: DocumentKind | str) -> list[DocumentRecord]:
        model = _DOCUMENT_MODELS[resolve_kind(kind)]

        def _select(session: Session) -> list[DocumentRecord]:
            rows = session.scalars(select(model)).all()
            return [DocumentRecord(id=row.id, name=row.name, content=row.content) for row in rows]

        return await self._run(_select)

    async def get_content(self, kind: DocumentKind | str, document_id: int) -> str | None:
        model = _DOCUMENT_MODELS[resolve_kind(kind)]

        def _get(session: Session) -> str | None:
            row = session.get(model, document_id)
            return row.content if row is not None else None

        return await self._run(_get)

    async def delete(self, kind: DocumentKind | str, document_id: int) -> None:
        model = _DOCUMENT_MODELS[resolve_kind(kind)]
        await self._run(lambda session: session.execute(delete(model).where(model.id == document_id)))

    async def rename(self, kind: DocumentKind | str, document_id: int, new_name: str) -> None:
        model = _DOCUMENT_MODELS[resolve_kind(kind)]

        def _rename(session: Session) -> None:
            row = session.get(model, document_id)
            if row is None:
                raise NotFoundError(f"{model.__tablename__} document {document_id} not found")
            row.name = new_name

        await self._run(_rename)

    async def clear(self, collection: DocumentKind | str | None = None) -> None:
        """Empty one collection, or both document collections when none is named."""
        if collection is None:
            tables = [CoverLetterDocument, ResumeDocument]
        elif collection == HISTORY_COLLECTION:
            tables = [HistoryEntry]
        else:
            tables = [_DOCUMENT_MODELS[resolve_kind(collection)]]

        def _clear(session: Session) -> None:
            for table in tables:
                session.execute(delete(table))

        await self._run(_clear)
        logger.info("Cleared collections %s", [table.__tablename__ for table in tables])

    async def add_entry(self, entry: HistoryEntryInput) -> int:
        def _insert(session: Session) -> int:
            row = HistoryEntry(**entry.model_dump())
            session.add(row)
            session.flush()
            return row.id

        return await self._run(_insert)

    async def list_entries(self) -> list[HistoryRecord]:
        def _select(session: Session) -> list[HistoryRecord]:
            statement = select(HistoryEntry).order_by(
                HistoryEntry.timestamp.desc(), HistoryEntry.id.desc()
            )
            return [
                HistoryRecord(
                    id=row.id,
                    timestamp=row.timestamp,
                    content=row.content,
                    font=row.font,
                    filename=row.filename,
                )
                for row in session.scalars(statement).all()
            ]

        return await self._run(_select)

    async def delete_entry(self, entry_id: int) -> None:
        await self._run(lambda session: session.execute(delete(HistoryEntry).where(HistoryEntry.id == entry_id)))

    async def clear_history(self) -> None:
        await self.clear(HISTORY_COLLECTION)
