"""
Database CRUD operations.

Provides async functions for reading and writing records of each collection
inside a caller-owned session. Transactions and error translation live in
StorageEngine; these functions only speak SQLAlchemy.
"""

from enum import Enum
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from statdeck.models.db import Base, DeckDB, GamePresetDB, StatblockConfigDB
from statdeck.models.deck import Deck
from statdeck.models.library import GamePreset, StatblockConfig

Record = Deck | GamePreset | StatblockConfig


class Collection(str, Enum):
    """Named record collections of the local store."""

    DECKS = "decks"
    GAME_PRESETS = "gamePresets"
    STATBLOCK_CONFIGS = "statblockConfigs"


_TABLES: dict[Collection, type[Base]] = {
    Collection.DECKS: DeckDB,
    Collection.GAME_PRESETS: GamePresetDB,
    Collection.STATBLOCK_CONFIGS: StatblockConfigDB,
}


def table_for(collection: Collection) -> Any:
    """ORM class backing a collection."""
    return _TABLES[collection]


# --- Record <-> row conversion ---


def record_to_row(collection: Collection, record: Record) -> Base:
    """Convert a domain record to its ORM row."""
    if collection is Collection.DECKS:
        if not isinstance(record, Deck):
            raise TypeError(f"Expected Deck for {collection.value}, got {type(record).__name__}")
        return DeckDB(
            id=record.id,
            name=record.meta.name,
            last_edited=record.meta.last_edited,
            payload=record.to_dict(include_blobs=True),
        )

    if collection is Collection.GAME_PRESETS:
        if not isinstance(record, GamePreset):
            raise TypeError(
                f"Expected GamePreset for {collection.value}, got {type(record).__name__}"
            )
        return GamePresetDB(
            id=record.id,
            name=record.name,
            is_official=record.is_official,
            created=record.created,
            payload=record.to_dict(),
        )

    if not isinstance(record, StatblockConfig):
        raise TypeError(
            f"Expected StatblockConfig for {collection.value}, got {type(record).__name__}"
        )
    return StatblockConfigDB(
        id=record.id,
        name=record.name,
        is_official=record.is_official,
        created=record.created,
        payload=record.to_dict(),
    )


def row_to_record(collection: Collection, row: Any) -> Record:
    """Convert an ORM row back to its domain record."""
    if collection is Collection.DECKS:
        return Deck.from_dict(row.payload)
    if collection is Collection.GAME_PRESETS:
        return GamePreset.from_dict(row.payload)
    return StatblockConfig.from_dict(row.payload)


# --- Generic collection operations ---


async def get_row(session: AsyncSession, collection: Collection, record_id: str) -> Any | None:
    """Get a row by id. Returns None if it does not exist."""
    return await session.get(table_for(collection), record_id)


async def get_all_rows(session: AsyncSession, collection: Collection) -> list[Any]:
    """Get every row of a collection, ordered by name."""
    table = table_for(collection)
    result = await session.execute(select(table).order_by(table.name, table.id))
    return list(result.scalars().all())


async def upsert_row(session: AsyncSession, collection: Collection, record: Record) -> Any:
    """
    Insert or fully replace a record.

    If a row with the same id exists, every column is overwritten.
    """
    row = await session.merge(record_to_row(collection, record))
    await session.flush()
    return row


async def delete_row(session: AsyncSession, collection: Collection, record_id: str) -> bool:
    """
    Delete a row by id.

    Returns True if deleted, False if not found.
    """
    table = table_for(collection)
    result = await session.execute(delete(table).where(table.id == record_id))
    # rowcount is available on DELETE results; type stubs incomplete for async
    return int(result.rowcount) > 0  # type: ignore[attr-defined]


async def clear_rows(session: AsyncSession, collection: Collection) -> int:
    """
    Delete every row of a collection.

    Returns the number of deleted records.
    """
    result = await session.execute(delete(table_for(collection)))
    return int(result.rowcount)  # type: ignore[attr-defined]


async def count_rows(session: AsyncSession, collection: Collection) -> int:
    """Number of rows in a collection."""
    table = table_for(collection)
    result = await session.execute(select(func.count()).select_from(table))
    return int(result.scalar_one())
