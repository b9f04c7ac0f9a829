"""Tests for the seeding job."""

from unittest.mock import AsyncMock, patch

import pytest

from statdeck.db import Collection, StorageEngine
from statdeck.jobs.seed_library import add_sample_deck, main, run_seed
from statdeck.models.failure import StorageUnavailableError
from statdeck.services.sample_deck import SAMPLE_DECK_NAME, get_sample_deck
from statdeck.services.transport import detect_migration_needed


class TestSampleDeck:
    def test_sample_deck_contents(self) -> None:
        """The sample deck has one character, one item and one location."""
        deck = get_sample_deck()

        assert deck.meta.name == SAMPLE_DECK_NAME
        assert [c.name for c in deck.cards] == [
            "Dr. Blackwood",
            "The Ethereal Compass",
            "The Misty Vale",
        ]
        assert [c.type for c in deck.cards] == ["character", "item", "location"]

    def test_sample_deck_fresh_ids(self) -> None:
        """Every call returns new ids."""
        assert get_sample_deck().id != get_sample_deck().id

    def test_sample_images_need_migration(self) -> None:
        """Bundled file names are local-only images."""
        assert detect_migration_needed(get_sample_deck()).blob_count == 3


class TestAddSampleDeck:
    async def test_adds_once(self, storage: StorageEngine) -> None:
        """The sample deck is only added when absent."""
        assert await add_sample_deck(storage) is not None
        assert await add_sample_deck(storage) is None

        assert await storage.count(Collection.DECKS) == 1


class TestRunSeed:
    async def test_seeds_file_store(self, tmp_path) -> None:
        """A full run seeds official content and the sample deck."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'seed.db'}"

        results = await run_seed(url, sample_deck=True)

        assert results == {"gamePresets": 1, "statblockConfigs": 3, "decks": 1}

    async def test_rerun_writes_nothing(self, tmp_path) -> None:
        """Seeding is idempotent."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'seed.db'}"
        await run_seed(url, sample_deck=True)

        results = await run_seed(url, sample_deck=True)

        assert results == {"gamePresets": 0, "statblockConfigs": 0, "decks": 0}

    async def test_unavailable_store_raises(self, tmp_path) -> None:
        """Storage failures propagate to the caller."""
        url = f"sqlite+aiosqlite:///{tmp_path / 'no' / 'such' / 'dir.db'}"

        with pytest.raises(StorageUnavailableError):
            await run_seed(url)


class TestMain:
    def test_main_parses_arguments(self) -> None:
        """The CLI forwards its options to run_seed."""
        with patch("statdeck.jobs.seed_library.run_seed", new_callable=AsyncMock) as mock_run:
            main(["--sample-deck", "--database-url", "sqlite+aiosqlite:///x.db"])

        mock_run.assert_awaited_once_with("sqlite+aiosqlite:///x.db", sample_deck=True)
