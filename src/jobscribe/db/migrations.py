"""Versioned schema upgrades for the document store.

Each step creates whatever its version introduces and skips anything that
already exists, so re-running a step against a partially upgraded database is
harmless. There are no downgrade steps: a database that is newer than the
requested version is a conflict, resolved only by ``DocumentStore.recreate``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Connection

logger = logging.getLogger(__name__)

META_TABLE = "store_meta"
SCHEMA_VERSION_KEY = "schema_version"
LATEST_VERSION = 2


def _has_table(bind: Connection, table: str) -> bool:
    return table in sa.inspect(bind).get_table_names()


def _ensure_index(op: Operations, bind: Connection, table: str, name: str, columns: list[str]) -> None:
    existing = {idx["name"] for idx in sa.inspect(bind).get_indexes(table)}
    if name not in existing:
        op.create_index(name, table, columns, unique=False)


def _ensure_document_table(op: Operations, bind: Connection, table: str) -> None:
    if _has_table(bind, table):
        return
    op.create_table(
        table,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sqlite_autoincrement=True,
    )


def _upgrade_to_1(op: Operations, bind: Connection) -> None:
    _ensure_document_table(op, bind, "cover_letters")
    _ensure_document_table(op, bind, "resumes")


def _upgrade_to_2(op: Operations, bind: Connection) -> None:
    if not _has_table(bind, "generation_history"):
        op.create_table(
            "generation_history",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("timestamp", sa.BigInteger(), nullable=False),
            sa.Column("content", sa.Text(), nullable=False, server_default=""),
            sa.Column("font", sa.String(length=20), nullable=False, server_default="times"),
            sa.Column("filename", sa.String(length=255), nullable=False, server_default=""),
            sqlite_autoincrement=True,
        )
    _ensure_index(op, bind, "generation_history", "ix_generation_history_timestamp", ["timestamp"])


UPGRADE_STEPS: dict[int, Callable[[Operations, Connection], None]] = {
    1: _upgrade_to_1,
    2: _upgrade_to_2,
}


def _ensure_meta_table(op: Operations, bind: Connection) -> None:
    if _has_table(bind, META_TABLE):
        return
    op.create_table(
        META_TABLE,
        sa.Column("key", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.String(length=255), nullable=False, server_default=""),
    )


def read_version(bind: Connection) -> int:
    if not _has_table(bind, META_TABLE):
        return 0
    value = bind.execute(
        sa.text(f"SELECT value FROM {META_TABLE} WHERE key = :key"),
        {"key": SCHEMA_VERSION_KEY},
    ).scalar()
    return int(value) if value else 0


def _write_version(bind: Connection, version: int) -> None:
    bind.execute(sa.text(f"DELETE FROM {META_TABLE} WHERE key = :key"), {"key": SCHEMA_VERSION_KEY})
    bind.execute(
        sa.text(f"INSERT INTO {META_TABLE} (key, value) VALUES (:key, :value)"),
        {"key": SCHEMA_VERSION_KEY, "value": str(version)},
    )


def upgrade(bind: Connection, *, current: int, target: int) -> list[int]:
    """Apply every step in ``(current, target]`` and record ``target``."""
    if target > LATEST_VERSION:
        raise ValueError(f"unknown schema version {target}; latest is {LATEST_VERSION}")

    op = Operations(MigrationContext.configure(bind))
    _ensure_meta_table(op, bind)

    applied: list[int] = []
    for version in range(current + 1, target + 1):
        logger.info("Applying document store upgrade to version %s", version)
        UPGRADE_STEPS[version](op, bind)
        applied.append(version)

    if applied:
        _write_version(bind, target)
    return applied


def drop_all(bind: Connection) -> None:
    metadata = sa.MetaData()
    metadata.reflect(bind=bind)
    metadata.drop_all(bind=bind)
