"""
Storage engine: versioned async key-value persistence over SQLAlchemy.

A StorageEngine is constructed explicitly and injected wherever storage is
needed. The database engine and schema are set up lazily on first use, so
constructing one never touches the disk.

Usage:
    storage = StorageEngine("sqlite+aiosqlite:///statdeck.db")
    await storage.put(Collection.DECKS, deck)
    deck = await storage.get(Collection.DECKS, deck.id)
"""

import asyncio
import logging

from sqlalchemy import Connection, insert, select, text, update
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from statdeck.config import settings
from statdeck.db.operations import (
    Collection,
    Record,
    clear_rows,
    count_rows,
    delete_row,
    get_all_rows,
    get_row,
    row_to_record,
    upsert_row,
)
from statdeck.models.db import Base, SchemaVersionDB
from statdeck.models.failure import (
    StorageUnavailableError,
    StorageWriteError,
    ValidationFailedError,
)
from statdeck.models.validation import (
    ValidationIssue,
    validate_deck,
    validate_game_preset,
    validate_statblock_config,
)

logger = logging.getLogger(__name__)

# 1: decks only
# 2: game presets and statblock configs with listing indexes
SCHEMA_VERSION = 2
SCHEMA_NAME = "statdeck"

_RECORD_LABELS = {
    Collection.DECKS: "deck",
    Collection.GAME_PRESETS: "game preset",
    Collection.STATBLOCK_CONFIGS: "statblock config",
}


def _upgrade_schema(connection: Connection) -> None:
    """
    Bring the schema up to SCHEMA_VERSION.

    Upgrades are additive only: create_all creates missing tables and their
    indexes and leaves existing tables and rows untouched.
    """
    Base.metadata.create_all(connection, checkfirst=True)

    current = connection.execute(
        select(SchemaVersionDB.version).where(SchemaVersionDB.name == SCHEMA_NAME)
    ).scalar_one_or_none()

    if current is None:
        connection.execute(
            insert(SchemaVersionDB).values(name=SCHEMA_NAME, version=SCHEMA_VERSION)
        )
    elif current < SCHEMA_VERSION:
        connection.execute(
            update(SchemaVersionDB)
            .where(SchemaVersionDB.name == SCHEMA_NAME)
            .values(version=SCHEMA_VERSION)
        )
    else:
        return
    logger.info("Local store schema upgraded from %s to %d", current, SCHEMA_VERSION)


def validate_record(
    collection: Collection, record: Record, allow_empty: bool = False
) -> list[ValidationIssue]:
    """Run the validation rules that guard writes to a collection."""
    if collection is Collection.DECKS:
        return validate_deck(record.to_dict(), allow_empty=allow_empty)
    if collection is Collection.GAME_PRESETS:
        return validate_game_preset(record.to_dict())
    return validate_statblock_config(record.to_dict())


class StorageEngine:
    """
    Durable store for decks, game presets and statblock configs.

    Every write is atomic for a single record. There are no cross-record
    transactions. The engine never emits notifications.
    """

    def __init__(self, database_url: str | None = None, *, echo: bool = False) -> None:
        self.database_url = database_url or settings.database_url
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None
        self._init_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._sessions is not None

    async def _ready(self) -> async_sessionmaker[AsyncSession]:
        """Open the database and apply schema upgrades on first use."""
        if self._sessions is not None:
            return self._sessions

        async with self._init_lock:
            if self._sessions is not None:
                return self._sessions

            try:
                engine = create_async_engine(self.database_url, echo=self._echo)
            except (ArgumentError, ImportError) as e:
                raise StorageUnavailableError(
                    "Local storage is not available", detail=str(e)
                ) from e

            try:
                async with engine.begin() as conn:
                    await conn.run_sync(_upgrade_schema)
            except (SQLAlchemyError, OSError) as e:
                await engine.dispose()
                logger.error("Failed to open local store %s: %s", self.database_url, e)
                raise StorageUnavailableError(
                    "Local storage is not available", detail=str(e)
                ) from e

            self._engine = engine
            self._sessions = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            return self._sessions

    async def get(self, collection: Collection, record_id: str) -> Record | None:
        """Load a record by id. Returns None if it does not exist."""
        sessions = await self._ready()
        try:
            async with sessions() as session:
                row = await get_row(session, collection, record_id)
                return row_to_record(collection, row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageUnavailableError(
                f"Failed to load {_RECORD_LABELS[collection]}", detail=str(e)
            ) from e

    async def get_all(self, collection: Collection) -> list[Record]:
        """Load every record of a collection, ordered by name."""
        sessions = await self._ready()
        try:
            async with sessions() as session:
                rows = await get_all_rows(session, collection)
                return [row_to_record(collection, row) for row in rows]
        except SQLAlchemyError as e:
            raise StorageUnavailableError(
                f"Failed to list {collection.value}", detail=str(e)
            ) from e

    async def count(self, collection: Collection) -> int:
        """Number of records in a collection."""
        sessions = await self._ready()
        try:
            async with sessions() as session:
                return await count_rows(session, collection)
        except SQLAlchemyError as e:
            raise StorageUnavailableError(
                f"Failed to count {collection.value}", detail=str(e)
            ) from e

    async def put(self, collection: Collection, record: Record, allow_empty: bool = False) -> None:
        """
        Insert or replace a record.

        Validation runs first; on any violation ValidationFailedError is
        raised and nothing is written.

        Args:
            collection: Target collection
            record: Deck, GamePreset or StatblockConfig matching the collection
            allow_empty: Accept a deck with zero cards
        """
        issues = validate_record(collection, record, allow_empty=allow_empty)
        if issues:
            raise ValidationFailedError(issues, record=_RECORD_LABELS[collection])

        sessions = await self._ready()
        try:
            async with sessions() as session, session.begin():
                await upsert_row(session, collection, record)
        except SQLAlchemyError as e:
            logger.error("Write to %s failed for %s: %s", collection.value, record.id, e)
            raise StorageWriteError(
                f"Failed to save {_RECORD_LABELS[collection]}", detail=str(e)
            ) from e

    async def delete(self, collection: Collection, record_id: str) -> bool:
        """
        Delete a record by id.

        Returns True if deleted, False if not found.
        """
        sessions = await self._ready()
        try:
            async with sessions() as session, session.begin():
                return await delete_row(session, collection, record_id)
        except SQLAlchemyError as e:
            raise StorageWriteError(
                f"Failed to delete {_RECORD_LABELS[collection]}", detail=str(e)
            ) from e

    async def clear(self, collection: Collection) -> int:
        """
        Delete every record of a collection.

        Returns the number of deleted records.
        """
        sessions = await self._ready()
        try:
            async with sessions() as session, session.begin():
                deleted = await clear_rows(session, collection)
        except SQLAlchemyError as e:
            raise StorageWriteError(f"Failed to clear {collection.value}", detail=str(e)) from e
        logger.info("Cleared %d record(s) from %s", deleted, collection.value)
        return deleted

    async def ping(self) -> None:
        """Raise StorageUnavailableError unless the store answers a trivial query."""
        sessions = await self._ready()
        try:
            async with sessions() as session:
                await session.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StorageUnavailableError("Local storage is not available", detail=str(e)) from e

    async def close(self) -> None:
        """Dispose of the database engine. The next call reopens it."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessions = None
