"""
Deck and card domain models.

Models are plain dataclasses. Each knows how to convert itself to and from
its wire form: the camelCase JSON mapping used both for the stored record
and for the share envelope.
"""

import base64
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlsplit

THEMES = frozenset({"classic", "scriptorum", "cordial", "cyberdeck"})
CARD_SIZES = frozenset({"poker", "tarot"})

DEFAULT_THEME = "classic"
DEFAULT_CARD_SIZE = "poker"

# Placeholder written into the image field while the bytes live only locally
LOCAL_IMAGE_HANDLE = "blob:local"

StatValue = str | int | float


def new_id() -> str:
    """Allocate a fresh record id."""
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class MechanicType(str, Enum):
    """Categories of back-of-card mechanics."""

    DEFENSE = "defense"
    INITIATIVE = "initiative"
    MOVEMENT = "movement"
    ATTACK = "attack"
    HEALTH = "health"
    RESOURCE = "resource"


# =============================================================================
# IMAGE REFERENCES
# =============================================================================


def is_durable_url(value: str | None) -> bool:
    """True for absolute network URLs, the only references a recipient can resolve."""
    if not value:
        return False
    parts = urlsplit(value)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


@dataclass(frozen=True, slots=True)
class DurableImage:
    """Image hosted at an absolute network URL."""

    url: str

    @property
    def ref(self) -> str:
        return self.url


@dataclass(frozen=True, slots=True)
class LocalImage:
    """
    Image that only resolves on this machine.

    Attributes:
        handle: Reference string as it appears on the card (a blob
            placeholder or a bare file name)
        data: Raw image bytes, when the bytes are held in the local store
    """

    handle: str = LOCAL_IMAGE_HANDLE
    data: bytes | None = None

    @property
    def ref(self) -> str:
        return self.handle


ImageRef = DurableImage | LocalImage


def image_ref_from_wire(image: str | None, blob: str | None = None) -> ImageRef | None:
    """Build an ImageRef from the wire `image` string and optional base64 blob."""
    if blob:
        return LocalImage(handle=image or LOCAL_IMAGE_HANDLE, data=base64.b64decode(blob))
    if not image:
        return None
    if is_durable_url(image):
        return DurableImage(url=image)
    return LocalImage(handle=image)


# =============================================================================
# CARD PARTS
# =============================================================================


@dataclass
class CardStat:
    """A front-of-card stat value keyed by its stat definition id."""

    stat_id: str
    value: StatValue

    def to_dict(self) -> dict[str, Any]:
        return {"statId": self.stat_id, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardStat":
        return cls(stat_id=data["statId"], value=data["value"])


@dataclass
class CardMechanic:
    """
    A back-of-card game mechanic.

    Attributes:
        id: Unique id within the card
        name: Display name ("Longsword", "Hit Points")
        value: Rules text or number ("+5, 1d8+3", 25)
        type: Category used to look up vocabulary labels
        tracked: Render checkbox tracking on printed cards
        description: Optional clarifying note
    """

    id: str
    name: str
    value: StatValue
    type: MechanicType
    tracked: bool = False
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "tracked": self.tracked,
            "type": self.type.value,
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardMechanic":
        return cls(
            id=data["id"],
            name=data["name"],
            value=data["value"],
            type=MechanicType(data["type"]),
            tracked=bool(data.get("tracked", False)),
            description=data.get("description"),
        )


@dataclass
class StatDefinition:
    """Definition of a front-of-card stat slot."""

    id: str
    label: str
    icon: str = ""
    category: str = "custom"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "icon": self.icon, "category": self.category}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StatDefinition":
        return cls(
            id=data["id"],
            label=data["label"],
            icon=data.get("icon", ""),
            category=data.get("category", "custom"),
        )


@dataclass
class RulesetRef:
    """Optional pointer to the game system a deck is written for."""

    name: str
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.url is not None:
            data["url"] = self.url
        return data


# =============================================================================
# CARD
# =============================================================================


@dataclass
class Card:
    """A single printable reference card. Always owned by exactly one deck."""

    id: str
    name: str
    role: str = ""
    desc: str = ""
    type: str = "character"
    traits: list[str] = field(default_factory=list)
    secrets: list[str] = field(default_factory=list)
    stats: list[CardStat] = field(default_factory=list)
    mechanics: list[CardMechanic] = field(default_factory=list)
    image: ImageRef | None = None
    theme: str | None = None

    def to_dict(self, include_blob: bool = False) -> dict[str, Any]:
        """
        Convert to the wire mapping.

        Image bytes are only emitted with include_blob, which the local
        store uses. The share envelope never carries them.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "image": self.image.ref if self.image else None,
            "traits": list(self.traits),
            "secrets": list(self.secrets),
            "desc": self.desc,
            "type": self.type,
            "stats": [s.to_dict() for s in self.stats],
            "mechanics": [m.to_dict() for m in self.mechanics],
        }
        if self.theme is not None:
            data["theme"] = self.theme
        if include_blob and isinstance(self.image, LocalImage) and self.image.data:
            data["imageBlob"] = base64.b64encode(self.image.data).decode("ascii")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Card":
        return cls(
            id=data["id"],
            name=data["name"],
            role=data.get("role", ""),
            desc=data.get("desc", ""),
            type=data.get("type", "character"),
            traits=list(data.get("traits") or []),
            secrets=list(data.get("secrets") or []),
            stats=[CardStat.from_dict(s) for s in data.get("stats") or []],
            mechanics=[CardMechanic.from_dict(m) for m in data.get("mechanics") or []],
            image=image_ref_from_wire(data.get("image"), data.get("imageBlob")),
            theme=data.get("theme"),
        )


# =============================================================================
# DECK
# =============================================================================


@dataclass
class DeckMeta:
    """Deck-level display settings and timestamps (epoch milliseconds)."""

    name: str
    theme: str = DEFAULT_THEME
    card_size: str = DEFAULT_CARD_SIZE
    last_edited: int = 0
    created_at: int = 0
    description: str | None = None
    tags: list[str] | None = None
    ruleset_ref: RulesetRef | None = None
    custom_stats: list[StatDefinition] | None = None
    statblock_config_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "theme": self.theme,
            "cardSize": self.card_size,
            "lastEdited": self.last_edited,
            "createdAt": self.created_at,
        }
        if self.description is not None:
            data["description"] = self.description
        if self.tags is not None:
            data["tags"] = list(self.tags)
        if self.ruleset_ref is not None:
            data["rulesetRef"] = self.ruleset_ref.to_dict()
        if self.custom_stats is not None:
            data["customStats"] = [s.to_dict() for s in self.custom_stats]
        if self.statblock_config_id is not None:
            data["statblockConfigId"] = self.statblock_config_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeckMeta":
        ruleset = data.get("rulesetRef")
        custom_stats = data.get("customStats")
        return cls(
            name=data["name"],
            theme=data.get("theme", DEFAULT_THEME),
            card_size=data.get("cardSize", DEFAULT_CARD_SIZE),
            last_edited=int(data.get("lastEdited", 0)),
            created_at=int(data.get("createdAt", 0)),
            description=data.get("description"),
            tags=list(data["tags"]) if data.get("tags") is not None else None,
            ruleset_ref=RulesetRef(name=ruleset["name"], url=ruleset.get("url"))
            if ruleset
            else None,
            custom_stats=[StatDefinition.from_dict(s) for s in custom_stats]
            if custom_stats is not None
            else None,
            statblock_config_id=data.get("statblockConfigId"),
        )


@dataclass
class Deck:
    """A named, themed collection of cards. The unit of storage and sharing."""

    id: str
    meta: DeckMeta
    cards: list[Card] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.meta.name

    def find_card(self, card_id: str) -> Card | None:
        """Return the card with this id, or None."""
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def card_ids(self) -> list[str]:
        return [card.id for card in self.cards]

    def to_dict(self, include_blobs: bool = False) -> dict[str, Any]:
        return {
            "id": self.id,
            "meta": self.meta.to_dict(),
            "cards": [card.to_dict(include_blob=include_blobs) for card in self.cards],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Deck":
        return cls(
            id=data["id"],
            meta=DeckMeta.from_dict(data["meta"]),
            cards=[Card.from_dict(c) for c in data.get("cards") or []],
        )
