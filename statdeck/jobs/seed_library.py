"""
Seed the local store.

Writes official game presets and statblock configs that are missing, and
optionally the "Tales of the Uncanny" sample deck. Safe to run repeatedly;
existing records are never overwritten.

Usage:
    python -m statdeck.jobs.seed_library [--sample-deck] [--database-url URL]
"""

import argparse
import asyncio
import logging

from statdeck.db import Collection, StorageEngine
from statdeck.models.deck import Deck
from statdeck.models.failure import KnownError
from statdeck.services.library import PresetLibrary
from statdeck.services.sample_deck import SAMPLE_DECK_NAME, get_sample_deck

logger = logging.getLogger(__name__)


async def add_sample_deck(storage: StorageEngine) -> Deck | None:
    """
    Store the sample deck unless a deck with its name already exists.

    Returns:
        The stored deck, or None if it was already present
    """
    existing = await storage.get_all(Collection.DECKS)
    if any(isinstance(d, Deck) and d.meta.name == SAMPLE_DECK_NAME for d in existing):
        logger.info("Sample deck already present, skipping")
        return None

    deck = get_sample_deck()
    await storage.put(Collection.DECKS, deck)
    logger.info("Added sample deck %s (%d cards)", deck.id, len(deck.cards))
    return deck


async def run_seed(
    database_url: str | None = None,
    sample_deck: bool = False,
) -> dict[str, int]:
    """
    Seed official content and, optionally, the sample deck.

    Args:
        database_url: Store to seed (defaults to settings.database_url)
        sample_deck: Also add the sample deck

    Returns:
        Counts of records written per collection
    """
    storage = StorageEngine(database_url)
    try:
        presets, configs = await PresetLibrary(storage).seed_official()
        results = {
            Collection.GAME_PRESETS.value: presets,
            Collection.STATBLOCK_CONFIGS.value: configs,
            Collection.DECKS.value: 0,
        }
        if sample_deck and await add_sample_deck(storage) is not None:
            results[Collection.DECKS.value] = 1
    except KnownError as e:
        logger.error("Seeding failed: %s (%s)", e.message, e.detail)
        raise
    finally:
        await storage.close()

    logger.info("Seeding complete: %s", results)
    return results


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Seed the local statdeck store")
    parser.add_argument("--database-url", default=None, help="SQLAlchemy async database URL")
    parser.add_argument("--sample-deck", action="store_true", help="Add the sample deck")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_seed(args.database_url, sample_deck=args.sample_deck))


if __name__ == "__main__":
    main()
