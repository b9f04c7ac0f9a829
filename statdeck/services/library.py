"""
Game presets and statblock configurations.

Official content ships with the application and is seeded into the local
store on startup. User content lives beside it; official records are never
overwritten by seeding and never deleted through this service.
"""

import copy
import logging
from datetime import UTC, datetime

from statdeck.db import Collection, StorageEngine
from statdeck.models.deck import CardMechanic, MechanicType, StatDefinition, new_id
from statdeck.models.failure import KnownError, NotFoundError, OfficialRecordError
from statdeck.models.library import (
    GamePreset,
    StatblockConfig,
    StatblockVocabulary,
    VocabularyEntry,
)
from statdeck.services.notifications import Notifier

logger = logging.getLogger(__name__)

DEFAULT_PRESET_ID = "gm-reference"
DEFAULT_CONFIG_ID = "default-modern"


# =============================================================================
# OFFICIAL CONTENT
# =============================================================================


def official_presets() -> list[GamePreset]:
    """Curated presets. Built fresh on each call so callers may mutate them."""
    return [
        GamePreset(
            id=DEFAULT_PRESET_ID,
            name="GM Reference",
            description="Universal mechanics for any RPG system - adaptable reference cards for GMs",
            author="System",
            front_stats=[
                StatDefinition(id="role", label="Role", icon="person", category="identity"),
                StatDefinition(id="status", label="Status", icon="crown", category="identity"),
                StatDefinition(id="drive", label="Drive", icon="target", category="narrative"),
            ],
            back_mechanics=[
                CardMechanic(
                    id="gm-defense",
                    name="Defense",
                    value=12,
                    description="AC, Dodge, Armor",
                    type=MechanicType.DEFENSE,
                ),
                CardMechanic(
                    id="gm-initiative",
                    name="Initiative",
                    value="+1",
                    description="Turn order bonus",
                    type=MechanicType.INITIATIVE,
                ),
                CardMechanic(
                    id="gm-movement",
                    name="Movement",
                    value="30 ft",
                    description="Movement rate",
                    type=MechanicType.MOVEMENT,
                ),
                CardMechanic(
                    id="gm-attack",
                    name="Attack",
                    value="+3, 1d6 damage",
                    description="Primary weapon",
                    type=MechanicType.ATTACK,
                ),
                CardMechanic(
                    id="gm-health",
                    name="Health",
                    value=15,
                    description="Hit points",
                    tracked=True,
                    type=MechanicType.HEALTH,
                ),
            ],
            is_official=True,
            tags=["universal", "gm-tools", "reference"],
        )
    ]


def _vocabulary(
    entries: dict[MechanicType, tuple[str, str | int, bool]],
) -> dict[MechanicType, VocabularyEntry]:
    return {
        kind: VocabularyEntry(name=name, default_value=value, tracked=tracked)
        for kind, (name, value, tracked) in entries.items()
    }


def official_configs() -> list[StatblockConfig]:
    """Curated statblock configurations, default first."""
    return [
        StatblockConfig(
            id=DEFAULT_CONFIG_ID,
            name="Modern RPG",
            description="Standard terminology for contemporary RPG systems",
            vocabulary=_vocabulary(
                {
                    MechanicType.HEALTH: ("Health", 15, True),
                    MechanicType.DEFENSE: ("Defense", 12, False),
                    MechanicType.INITIATIVE: ("Initiative", "+1", False),
                    MechanicType.MOVEMENT: ("Movement", "30 ft", False),
                    MechanicType.ATTACK: ("Attack", "+3", False),
                    MechanicType.RESOURCE: ("Resource", 5, True),
                }
            ),
            is_official=True,
        ),
        StatblockConfig(
            id="osr-classic",
            name="Old School Revival",
            description="Classic RPG terminology with traditional mechanics",
            vocabulary=_vocabulary(
                {
                    MechanicType.HEALTH: ("Hit Dice", "3+1", False),
                    MechanicType.DEFENSE: ("Armor Class", 15, False),
                    MechanicType.INITIATIVE: ("Initiative", "+1", False),
                    MechanicType.MOVEMENT: ("Movement", "120' (40')", False),
                    MechanicType.ATTACK: ("Attack Bonus", "+2", False),
                    MechanicType.RESOURCE: ("Special", "1/day", False),
                }
            ),
            is_official=True,
        ),
        StatblockConfig(
            id="narrative-story",
            name="Narrative Systems",
            description="Story-focused terminology for narrative RPG systems",
            vocabulary=_vocabulary(
                {
                    MechanicType.HEALTH: ("Stress", 4, True),
                    MechanicType.DEFENSE: ("Composure", 2, False),
                    MechanicType.INITIATIVE: ("Reflexes", "Good", False),
                    MechanicType.MOVEMENT: ("Mobility", "Average", False),
                    MechanicType.ATTACK: ("Force", "Fair", False),
                    MechanicType.RESOURCE: ("Fate Points", 3, True),
                }
            ),
            is_official=True,
        ),
    ]


def default_config() -> StatblockConfig:
    return official_configs()[0]


# =============================================================================
# VOCABULARY HELPERS
# =============================================================================


def vocabulary_for(config: StatblockConfig | None) -> StatblockVocabulary:
    """Flat {mechanic key: label} vocabulary, falling back to the default config."""
    return (config or default_config()).simple_vocabulary()


def vocabulary_from_simple(
    simple: StatblockVocabulary, base: StatblockConfig | None = None
) -> dict[MechanicType, VocabularyEntry]:
    """
    Expand an edited {key: label} vocabulary back into full entries.

    Blank or missing labels fall back to the base config's label; default
    values and tracking always come from the base config.
    """
    base = base or default_config()
    vocabulary: dict[MechanicType, VocabularyEntry] = {}
    for kind in MechanicType:
        base_entry = base.vocabulary[kind]
        label = (simple.get(kind.value) or "").strip()
        vocabulary[kind] = VocabularyEntry(
            name=label or base_entry.name,
            default_value=base_entry.default_value,
            tracked=base_entry.tracked,
        )
    return vocabulary


def mechanic_from_config(config: StatblockConfig, kind: MechanicType) -> CardMechanic:
    """A new mechanic named and valued from a config's vocabulary."""
    entry = config.vocabulary[kind]
    return CardMechanic(
        id=new_id(),
        name=entry.name,
        value=entry.default_value,
        type=kind,
        tracked=entry.tracked,
        description="",
    )


# =============================================================================
# LIBRARY
# =============================================================================


class PresetLibrary:
    """Stored presets and statblock configs, official and user-made."""

    def __init__(self, storage: StorageEngine, notifier: Notifier | None = None) -> None:
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.last_failure: KnownError | None = None

    def _fail(self, error: KnownError, message: str | None = None, warn: bool = False) -> None:
        self.last_failure = error
        if warn:
            self.notifier.warning(message or error.message)
        else:
            self.notifier.error(message or error.message)

    async def seed_official(self) -> tuple[int, int]:
        """
        Write official presets and configs that are not stored yet.

        Existing records with the same id are left alone.

        Returns:
            (presets written, configs written)
        """
        seeded = []
        for collection, records in (
            (Collection.GAME_PRESETS, official_presets()),
            (Collection.STATBLOCK_CONFIGS, official_configs()),
        ):
            written = 0
            for record in records:
                if await self.storage.get(collection, record.id) is None:
                    await self.storage.put(collection, record)
                    written += 1
            seeded.append(written)

        logger.info("Seeded %d official preset(s) and %d config(s)", seeded[0], seeded[1])
        return seeded[0], seeded[1]

    # --- Game presets ---

    async def list_presets(self) -> list[GamePreset]:
        return [
            p for p in await self.storage.get_all(Collection.GAME_PRESETS) if isinstance(p, GamePreset)
        ]

    async def get_preset(self, preset_id: str) -> GamePreset | None:
        preset = await self.storage.get(Collection.GAME_PRESETS, preset_id)
        return preset if isinstance(preset, GamePreset) else None

    async def save_preset(self, preset: GamePreset) -> bool:
        """Create or replace a user preset. Official presets are refused."""
        preset.updated = datetime.now(UTC)
        try:
            stored = await self.get_preset(preset.id)
            if stored is not None and stored.is_official:
                self._fail(OfficialRecordError("Official presets cannot be changed"), warn=True)
                return False
            await self.storage.put(Collection.GAME_PRESETS, preset)
        except KnownError as e:
            self._fail(e, f"Failed to save preset: {e.message}")
            return False
        return True

    async def delete_preset(self, preset_id: str) -> bool:
        """Delete a user preset. Official presets are refused."""
        try:
            preset = await self.get_preset(preset_id)
            if preset is None:
                raise NotFoundError("Preset", preset_id)
            if preset.is_official:
                self._fail(OfficialRecordError("Official presets cannot be deleted"), warn=True)
                return False
            await self.storage.delete(Collection.GAME_PRESETS, preset_id)
        except KnownError as e:
            self._fail(e, f"Failed to delete preset: {e.message}")
            return False
        return True

    async def duplicate_preset(self, preset_id: str, new_name: str) -> GamePreset | None:
        """Copy any preset (official included) as an editable user preset."""
        try:
            source = await self.get_preset(preset_id)
            if source is None:
                raise NotFoundError("Preset", preset_id)
            now = datetime.now(UTC)
            duplicate = copy.deepcopy(source)
            duplicate.id = new_id()
            duplicate.name = new_name
            duplicate.author = "User"
            duplicate.is_official = False
            duplicate.created = now
            duplicate.updated = now
            await self.storage.put(Collection.GAME_PRESETS, duplicate)
        except KnownError as e:
            self._fail(e, f"Failed to duplicate preset: {e.message}")
            return None
        return duplicate

    # --- Statblock configs ---

    async def list_configs(self) -> list[StatblockConfig]:
        return [
            c
            for c in await self.storage.get_all(Collection.STATBLOCK_CONFIGS)
            if isinstance(c, StatblockConfig)
        ]

    async def get_config(self, config_id: str) -> StatblockConfig | None:
        config = await self.storage.get(Collection.STATBLOCK_CONFIGS, config_id)
        return config if isinstance(config, StatblockConfig) else None

    async def config_or_default(self, config_id: str | None) -> StatblockConfig:
        """The stored config with this id, or the default config if absent."""
        if config_id:
            config = await self.get_config(config_id)
            if config is not None:
                return config
        return default_config()

    async def save_config(self, config: StatblockConfig) -> bool:
        """Create or replace a user config. Official configs are refused."""
        config.updated = datetime.now(UTC)
        try:
            stored = await self.get_config(config.id)
            if stored is not None and stored.is_official:
                self._fail(
                    OfficialRecordError("Official statblock configs cannot be changed"), warn=True
                )
                return False
            await self.storage.put(Collection.STATBLOCK_CONFIGS, config)
        except KnownError as e:
            self._fail(e, f"Failed to save statblock config: {e.message}")
            return False
        return True

    async def delete_config(self, config_id: str) -> bool:
        """Delete a user config. Official configs are refused."""
        try:
            config = await self.get_config(config_id)
            if config is None:
                raise NotFoundError("Statblock config", config_id)
            if config.is_official:
                self._fail(
                    OfficialRecordError("Official statblock configs cannot be deleted"), warn=True
                )
                return False
            await self.storage.delete(Collection.STATBLOCK_CONFIGS, config_id)
        except KnownError as e:
            self._fail(e, f"Failed to delete statblock config: {e.message}")
            return False
        return True

    async def duplicate_config(
        self, config_id: str, new_name: str, description: str | None = None
    ) -> StatblockConfig | None:
        """Copy a config as an editable user config."""
        try:
            source = await self.get_config(config_id)
            if source is None:
                raise NotFoundError("Statblock config", config_id)
            now = datetime.now(UTC)
            duplicate = StatblockConfig(
                id=new_id(),
                name=new_name,
                vocabulary=copy.deepcopy(source.vocabulary),
                description=description or f"Custom configuration based on {source.name}",
                is_official=False,
                created=now,
                updated=now,
            )
            await self.storage.put(Collection.STATBLOCK_CONFIGS, duplicate)
        except KnownError as e:
            self._fail(e, f"Failed to duplicate statblock config: {e.message}")
            return None
        return duplicate
