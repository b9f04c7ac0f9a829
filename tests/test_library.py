"""Tests for the preset library and official content."""

import pytest

from statdeck.db import Collection
from statdeck.models.deck import MechanicType
from statdeck.models.failure import FailureKind
from statdeck.models.validation import validate_game_preset, validate_statblock_config
from statdeck.services.library import (
    DEFAULT_CONFIG_ID,
    PresetLibrary,
    default_config,
    mechanic_from_config,
    official_configs,
    official_presets,
    vocabulary_for,
    vocabulary_from_simple,
)
from statdeck.services.notifications import NotificationLevel


@pytest.fixture
def library(storage, notifier) -> PresetLibrary:
    return PresetLibrary(storage, notifier)


class TestOfficialContent:
    def test_official_records_are_valid(self) -> None:
        """Shipped presets and configs pass their own validation."""
        for preset in official_presets():
            assert validate_game_preset(preset.to_dict()) == []
        for config in official_configs():
            assert validate_statblock_config(config.to_dict()) == []

    def test_default_config(self) -> None:
        """The default config is Modern RPG."""
        config = default_config()

        assert config.id == DEFAULT_CONFIG_ID
        assert config.name == "Modern RPG"
        assert config.vocabulary[MechanicType.HEALTH].tracked is True

    def test_official_content_is_rebuilt(self) -> None:
        """Callers get independent copies."""
        first = official_presets()[0]
        first.name = "Changed"

        assert official_presets()[0].name == "GM Reference"


class TestVocabularyHelpers:
    def test_vocabulary_for_none_uses_default(self) -> None:
        """No config means the default vocabulary."""
        assert vocabulary_for(None)["defense"] == "Defense"

    def test_vocabulary_from_simple_falls_back(self) -> None:
        """Blank labels keep the base config's label and defaults."""
        vocabulary = vocabulary_from_simple({"health": "Vigor", "defense": "  "})

        assert vocabulary[MechanicType.HEALTH].name == "Vigor"
        assert vocabulary[MechanicType.HEALTH].default_value == 15
        assert vocabulary[MechanicType.DEFENSE].name == "Defense"
        assert set(vocabulary) == set(MechanicType)

    def test_mechanic_from_config(self) -> None:
        """New mechanics take label, value and tracking from the config."""
        osr = official_configs()[1]

        mechanic = mechanic_from_config(osr, MechanicType.DEFENSE)

        assert mechanic.name == "Armor Class"
        assert mechanic.value == 15
        assert mechanic.type is MechanicType.DEFENSE


class TestSeeding:
    async def test_seed_writes_official_content(self, library, storage) -> None:
        """Seeding stores every official record."""
        assert await library.seed_official() == (1, 3)

        assert await storage.count(Collection.GAME_PRESETS) == 1
        assert await storage.count(Collection.STATBLOCK_CONFIGS) == 3

    async def test_seed_never_overwrites(self, library, storage) -> None:
        """Existing records with official ids are left alone."""
        edited = official_presets()[0]
        edited.description = "Locally edited"
        await storage.put(Collection.GAME_PRESETS, edited)

        assert await library.seed_official() == (0, 3)
        assert await library.seed_official() == (0, 0)

        stored = await library.get_preset(edited.id)
        assert stored.description == "Locally edited"


class TestPresets:
    async def test_duplicate_official_preset(self, library) -> None:
        """Duplicates are editable user presets."""
        await library.seed_official()

        duplicate = await library.duplicate_preset("gm-reference", "My Table")

        assert duplicate is not None
        assert duplicate.id != "gm-reference"
        assert duplicate.is_official is False
        assert duplicate.author == "User"
        assert len(await library.list_presets()) == 2

    async def test_delete_official_preset_refused(self, library, notifier) -> None:
        """Official presets stay."""
        await library.seed_official()

        assert await library.delete_preset("gm-reference") is False

        assert await library.get_preset("gm-reference") is not None
        assert notifier.messages(NotificationLevel.WARNING) == [
            "Official presets cannot be deleted"
        ]

    async def test_delete_user_preset(self, library) -> None:
        """User presets can be deleted."""
        await library.seed_official()
        duplicate = await library.duplicate_preset("gm-reference", "Mine")

        assert await library.delete_preset(duplicate.id)

        assert await library.get_preset(duplicate.id) is None

    async def test_delete_missing_preset(self, library, notifier) -> None:
        """Unknown preset ids are reported."""
        assert await library.delete_preset("missing") is False

        assert notifier.messages(NotificationLevel.ERROR) == [
            "Failed to delete preset: Preset not found"
        ]

    async def test_save_invalid_preset(self, library, notifier) -> None:
        """Invalid presets are reported, not raised."""
        preset = official_presets()[0]
        preset.name = ""

        assert await library.save_preset(preset) is False
        assert notifier.messages(NotificationLevel.ERROR)[0].startswith("Failed to save preset")


class TestConfigs:
    async def test_config_or_default(self, library) -> None:
        """Unknown or missing ids resolve to the default config."""
        await library.seed_official()

        assert (await library.config_or_default("osr-classic")).name == "Old School Revival"
        assert (await library.config_or_default("missing")).id == DEFAULT_CONFIG_ID
        assert (await library.config_or_default(None)).id == DEFAULT_CONFIG_ID

    async def test_duplicate_config(self, library) -> None:
        """Config duplicates copy the vocabulary under a new id."""
        await library.seed_official()

        duplicate = await library.duplicate_config("osr-classic", "House Rules")

        assert duplicate.description == "Custom configuration based on Old School Revival"
        assert duplicate.simple_vocabulary() == official_configs()[1].simple_vocabulary()

    async def test_save_config_with_duplicate_labels(self, library, notifier) -> None:
        """Colliding labels are rejected on save."""
        config = default_config()
        config.id = "house"
        config.is_official = False
        config.vocabulary[MechanicType.MOVEMENT].name = "attack"

        assert await library.save_config(config) is False
        assert "Duplicate stat names: attack" in notifier.messages(NotificationLevel.ERROR)[0]

    async def test_delete_official_config_refused(self, library) -> None:
        """Official configs stay."""
        await library.seed_official()

        assert await library.delete_config(DEFAULT_CONFIG_ID) is False
        assert len(await library.list_configs()) == 3


class TestOfficialRecordsAreReadOnly:
    async def test_save_over_official_preset_refused(self, library, notifier) -> None:
        """Saving under an official id never replaces the shipped preset."""
        await library.seed_official()
        preset = official_presets()[0]
        preset.name = "Hijacked"
        preset.is_official = False

        assert await library.save_preset(preset) is False

        assert (await library.get_preset("gm-reference")).name == "GM Reference"
        assert library.last_failure.kind is FailureKind.READ_ONLY
        assert notifier.messages(NotificationLevel.WARNING) == [
            "Official presets cannot be changed"
        ]

    async def test_save_over_official_config_refused(self, library) -> None:
        await library.seed_official()
        config = default_config()
        config.is_official = False
        config.name = "Hijacked"

        assert await library.save_config(config) is False

        assert (await library.get_config(DEFAULT_CONFIG_ID)).name == "Modern RPG"
        assert library.last_failure.kind is FailureKind.READ_ONLY

    async def test_user_preset_can_be_replaced(self, library) -> None:
        await library.seed_official()
        duplicate = await library.duplicate_preset("gm-reference", "Mine")
        duplicate.name = "Mine, renamed"

        assert await library.save_preset(duplicate)

        assert (await library.get_preset(duplicate.id)).name == "Mine, renamed"
        assert library.last_failure is None


class TestLibraryFailures:
    async def test_kinds_follow_the_failure(self, library) -> None:
        await library.seed_official()

        assert await library.delete_preset("missing") is False
        assert library.last_failure.kind is FailureKind.NOT_FOUND

        assert await library.delete_config(DEFAULT_CONFIG_ID) is False
        assert library.last_failure.kind is FailureKind.READ_ONLY

        assert await library.duplicate_config("missing", "Copy") is None
        assert library.last_failure.kind is FailureKind.NOT_FOUND
