"""
Statblock configuration and game preset models.

Both live independently of any deck. A deck refers to a non-default
statblock config by id; presets only seed new decks and cards.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from statdeck.models.deck import CardMechanic, MechanicType, StatDefinition, StatValue

StatblockVocabulary = dict[str, str]


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(value)
    return datetime.now(UTC)


@dataclass
class VocabularyEntry:
    """Display label and defaults for one mechanic type."""

    name: str
    default_value: StatValue = ""
    tracked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "defaultValue": self.default_value, "tracked": self.tracked}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VocabularyEntry":
        return cls(
            name=data["name"],
            default_value=data.get("defaultValue", ""),
            tracked=bool(data.get("tracked", False)),
        )


@dataclass
class StatblockConfig:
    """Named vocabulary mapping every MechanicType to its display label."""

    id: str
    name: str
    vocabulary: dict[MechanicType, VocabularyEntry]
    description: str | None = None
    is_official: bool = False
    created: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated: datetime = field(default_factory=lambda: datetime.now(UTC))

    def simple_vocabulary(self) -> StatblockVocabulary:
        """Flatten to {mechanic key: label}."""
        return {kind.value: entry.name for kind, entry in self.vocabulary.items()}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "vocabulary": {kind.value: entry.to_dict() for kind, entry in self.vocabulary.items()},
            "isOfficial": self.is_official,
            "created": self.created.isoformat(),
            "updated": self.updated.isoformat(),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatblockConfig":
        return cls(
            id=data["id"],
            name=data["name"],
            vocabulary={
                MechanicType(key): VocabularyEntry.from_dict(entry)
                for key, entry in data["vocabulary"].items()
            },
            description=data.get("description"),
            is_official=bool(data.get("isOfficial", False)),
            created=_parse_timestamp(data.get("created")),
            updated=_parse_timestamp(data.get("updated")),
        )


@dataclass
class GamePreset:
    """
    Bundle of default front stats and back mechanics used to seed decks.

    Attributes:
        id: Record id ("gm-reference" for the official preset)
        name: Display name
        version: Semantic version of the preset content
        front_stats: Stat slots every new card starts with
        back_mechanics: Mechanics every new card starts with
        is_official: Curated presets are never deleted by normal flows
        tags: Free-form labels ("fantasy", "horror")
    """

    id: str
    name: str
    version: str = "1.0.0"
    description: str | None = None
    author: str | None = None
    front_stats: list[StatDefinition] = field(default_factory=list)
    back_mechanics: list[CardMechanic] = field(default_factory=list)
    is_official: bool = False
    tags: list[str] = field(default_factory=list)
    created: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "frontStats": [s.to_dict() for s in self.front_stats],
            "backMechanics": [m.to_dict() for m in self.back_mechanics],
            "isOfficial": self.is_official,
            "tags": list(self.tags),
            "created": self.created.isoformat(),
            "updated": self.updated.isoformat(),
        }
        if self.description is not None:
            data["description"] = self.description
        if self.author is not None:
            data["author"] = self.author
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GamePreset":
        return cls(
            id=data["id"],
            name=data["name"],
            version=data.get("version", "1.0.0"),
            description=data.get("description"),
            author=data.get("author"),
            front_stats=[StatDefinition.from_dict(s) for s in data.get("frontStats") or []],
            back_mechanics=[CardMechanic.from_dict(m) for m in data.get("backMechanics") or []],
            is_official=bool(data.get("isOfficial", False)),
            tags=list(data.get("tags") or []),
            created=_parse_timestamp(data.get("created")),
            updated=_parse_timestamp(data.get("updated")),
        )
