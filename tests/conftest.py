from collections.abc import Callable

import pytest

from statdeck.db import StorageEngine
from statdeck.models.deck import (
    Card,
    CardMechanic,
    CardStat,
    Deck,
    DeckMeta,
    DurableImage,
    MechanicType,
    new_id,
)
from statdeck.services.coordinator import CanonicalStateCoordinator
from statdeck.services.notifications import Notifier
from statdeck.services.transport import TransportLimits


def build_card(name: str = "Dr. Blackwood", **overrides) -> Card:
    fields = {
        "id": new_id(),
        "name": name,
        "role": "Enigmatic Professor",
        "desc": "A brilliant but eccentric academic.",
        "type": "character",
        "traits": ["Appearance: Wears a well-worn tweed jacket"],
        "secrets": ["Hidden: Knows too much about forbidden magic"],
        "stats": [CardStat(stat_id="role", value="Scholar")],
        "mechanics": [
            CardMechanic(
                id=new_id(),
                name="Health",
                value=15,
                type=MechanicType.HEALTH,
                tracked=True,
            )
        ],
        "image": DurableImage(url="https://images.example.com/blackwood.jpg"),
    }
    fields.update(overrides)
    return Card(**fields)


def build_deck(name: str = "Tales of the Uncanny", cards: list[Card] | None = None) -> Deck:
    return Deck(
        id=new_id(),
        meta=DeckMeta(name=name, last_edited=1_700_000_000_000, created_at=1_700_000_000_000),
        cards=cards if cards is not None else [build_card(), build_card("The Misty Vale")],
    )


@pytest.fixture
def make_card() -> Callable[..., Card]:
    """Factory for valid cards with durable images."""
    return build_card


@pytest.fixture
def make_deck() -> Callable[..., Deck]:
    """Factory for valid two-card decks."""
    return build_deck


@pytest.fixture
async def storage():
    """A storage engine on a private in-memory database."""
    engine = StorageEngine("sqlite+aiosqlite:///:memory:")
    yield engine
    await engine.close()


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def limits() -> TransportLimits:
    """Default thresholds with the standard browser table."""
    return TransportLimits(
        warning_bytes=25_000,
        error_bytes=30_000,
        target_limits={
            "Chrome/Edge": 32_768,
            "Firefox": 65_536,
            "Safari": 80_000,
            "Opera": 32_768,
            "Mobile Safari": 64_000,
            "Mobile Chrome": 32_768,
        },
    )


@pytest.fixture
def coordinator(storage, notifier, limits) -> CanonicalStateCoordinator:
    return CanonicalStateCoordinator(storage, notifier, limits)
