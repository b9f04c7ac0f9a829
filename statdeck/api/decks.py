"""
Deck API endpoints.

Lists, creates, selects, duplicates and deletes stored decks, and edits the
open deck, all through the canonical state coordinator. A failed
coordinator operation is re-raised as the KnownError it recorded and turned
into an ApiResponse envelope by the application's error handler.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from statdeck.api.deps import get_coordinator, get_library
from statdeck.db import Collection
from statdeck.models.deck import DEFAULT_CARD_SIZE, DEFAULT_THEME, Deck
from statdeck.models.failure import FailureKind, KnownError, NoActiveDeckError, NotFoundError
from statdeck.models.library import GamePreset
from statdeck.services.coordinator import NEW_DECK, CanonicalStateCoordinator
from statdeck.services.library import PresetLibrary

router = APIRouter(prefix="/decks", tags=["decks"])


class DeckSummary(BaseModel):
    """One row of the deck list."""

    id: str
    name: str
    theme: str
    card_size: str
    card_count: int
    last_edited: int


class DeckListResponse(BaseModel):
    """Response model for the deck list."""

    decks: list[DeckSummary]
    count: int
    current_deck_id: str | None = None


class DeckDetailResponse(BaseModel):
    """A full deck in wire form."""

    deck: dict[str, Any]
    is_current: bool = False


class DuplicateRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)


class DeleteResponse(BaseModel):
    deck_id: str
    deleted: bool


class CreateDeckRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    theme: str = DEFAULT_THEME
    card_size: str = DEFAULT_CARD_SIZE
    preset_id: str | None = None


class UpdateRequest(BaseModel):
    """Field updates in coordinator form, e.g. {"name": "Dr. Vale", "traits": [...]}."""

    updates: dict[str, Any] = Field(..., min_length=1)


class BatchUpdateRequest(BaseModel):
    cards: dict[str, dict[str, Any]] = Field(..., min_length=1)


class AddCardRequest(BaseModel):
    preset_id: str | None = None


class CardSelection(BaseModel):
    card_ids: list[str]


class CopyCardsRequest(CardSelection):
    target_deck_id: str = Field(default=NEW_DECK, min_length=1)
    new_deck_name: str | None = Field(default=None, max_length=100)


class CardResponse(BaseModel):
    card: dict[str, Any]


def _summary(deck: Deck) -> DeckSummary:
    return DeckSummary(
        id=deck.id,
        name=deck.meta.name,
        theme=deck.meta.theme,
        card_size=deck.meta.card_size,
        card_count=len(deck.cards),
        last_edited=deck.meta.last_edited,
    )


def _detail(deck: Deck, coordinator: CanonicalStateCoordinator) -> DeckDetailResponse:
    current = coordinator.deck
    return DeckDetailResponse(
        deck=deck.to_dict(),
        is_current=current is not None and current.id == deck.id,
    )


def coordinator_failure(coordinator: CanonicalStateCoordinator) -> KnownError:
    """The KnownError behind the coordinator's most recent failed operation."""
    if coordinator.last_failure is not None:
        return coordinator.last_failure
    return KnownError(kind=FailureKind.UNKNOWN, message="Request failed", status_code=500)


async def load_stored_deck(coordinator: CanonicalStateCoordinator, deck_id: str) -> Deck:
    """Read a deck straight from storage, raising NotFoundError if absent."""
    deck = await coordinator.storage.get(Collection.DECKS, deck_id)
    if not isinstance(deck, Deck):
        raise NotFoundError("Deck", deck_id)
    return deck


async def _resolve_preset(library: PresetLibrary, preset_id: str | None) -> GamePreset | None:
    if preset_id is None:
        return None
    preset = await library.get_preset(preset_id)
    if preset is None:
        raise NotFoundError("Preset", preset_id)
    return preset


def _current_detail(coordinator: CanonicalStateCoordinator) -> DeckDetailResponse:
    deck = coordinator.deck
    if deck is None:
        raise NoActiveDeckError()
    return _detail(deck, coordinator)


@router.get("", response_model=DeckListResponse)
async def list_decks(
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckListResponse:
    """List stored decks ordered by name."""
    decks = await coordinator.storage.get_all(Collection.DECKS)
    summaries = [_summary(d) for d in decks if isinstance(d, Deck)]
    current = coordinator.deck
    return DeckListResponse(
        decks=summaries,
        count=len(summaries),
        current_deck_id=current.id if current else None,
    )


@router.post("", response_model=DeckDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(
    request: CreateDeckRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> DeckDetailResponse:
    """Create a deck with one starter card and open it for editing."""
    preset = await _resolve_preset(library, request.preset_id)
    deck = await coordinator.create_deck(
        request.name, request.theme, request.card_size, preset=preset
    )
    if deck is None:
        raise coordinator_failure(coordinator)
    return _detail(deck, coordinator)


@router.get("/current", response_model=DeckDetailResponse)
async def get_current_deck(
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """The deck currently open for editing."""
    return _current_detail(coordinator)


@router.patch("/current", response_model=DeckDetailResponse)
async def update_current_deck(
    request: UpdateRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """Update metadata of the open deck (name, theme, card_size, tags, ...)."""
    if not await coordinator.update_deck_meta(request.updates, success_message="Deck updated"):
        raise coordinator_failure(coordinator)
    return _current_detail(coordinator)


@router.post("/current/cards", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def add_card(
    request: AddCardRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
    library: Annotated[PresetLibrary, Depends(get_library)],
) -> CardResponse:
    """
    Append a placeholder card to the open deck.

    Returns 413 once the deck's share link is already too large.
    """
    preset = await _resolve_preset(library, request.preset_id)
    card = await coordinator.add_card(preset)
    if card is None:
        raise coordinator_failure(coordinator)
    return CardResponse(card=card.to_dict())


@router.patch("/current/cards", response_model=DeckDetailResponse)
async def update_cards(
    request: BatchUpdateRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """Update several cards of the open deck in one write."""
    if not await coordinator.update_cards(request.cards):
        raise coordinator_failure(coordinator)
    return _current_detail(coordinator)


@router.patch("/current/cards/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: str,
    request: UpdateRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> CardResponse:
    """
    Update one card of the open deck.

    Returns 404 if the card is not in the open deck, 422 for invalid values.
    """
    if not await coordinator.update_card(card_id, request.updates):
        raise coordinator_failure(coordinator)
    card = coordinator.deck.find_card(card_id) if coordinator.deck else None
    if card is None:
        raise NotFoundError("Card", card_id)
    return CardResponse(card=card.to_dict())


@router.post("/current/cards/delete", response_model=DeckDetailResponse)
async def delete_cards(
    request: CardSelection,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """Remove cards from the open deck. An empty selection changes nothing."""
    if not await coordinator.delete_cards(request.card_ids):
        raise coordinator_failure(coordinator)
    return _current_detail(coordinator)


@router.post("/current/cards/copy", response_model=DeckDetailResponse)
async def copy_cards(
    request: CopyCardsRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """
    Copy cards of the open deck into another deck.

    target_deck_id is an existing deck id, the open deck's own id, or "new".
    Returns the deck the cards were written to.
    """
    target = await coordinator.copy_cards(
        request.card_ids, request.target_deck_id, request.new_deck_name
    )
    if target is None:
        raise coordinator_failure(coordinator)
    return _detail(target, coordinator)


@router.get("/{deck_id}", response_model=DeckDetailResponse)
async def get_deck(
    deck_id: str,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """
    Get a stored deck by id.

    Returns 404 if deck not found.
    """
    return _detail(await load_stored_deck(coordinator, deck_id), coordinator)


@router.post("/{deck_id}/select", response_model=DeckDetailResponse)
async def select_deck(
    deck_id: str,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """Make a stored deck the canonical deck."""
    if not await coordinator.load_deck(deck_id):
        raise coordinator_failure(coordinator)
    return _current_detail(coordinator)


@router.post("/{deck_id}/duplicate", response_model=DeckDetailResponse)
async def duplicate_deck(
    deck_id: str,
    request: DuplicateRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeckDetailResponse:
    """Store a copy of a deck under fresh ids. Named "<name> (Copy)" by default."""
    duplicate = await coordinator.duplicate_deck(deck_id, request.name)
    if duplicate is None:
        raise coordinator_failure(coordinator)
    return _detail(duplicate, coordinator)


@router.delete("/{deck_id}", response_model=DeleteResponse)
async def delete_deck(
    deck_id: str,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> DeleteResponse:
    """
    Delete a stored deck.

    Returns 404 if deck not found.
    """
    if not await coordinator.delete_deck(deck_id):
        raise coordinator_failure(coordinator)
    return DeleteResponse(deck_id=deck_id, deleted=True)
