"""
Canonical State Coordinator - the Canon Update pattern.

The coordinator owns the single in-memory copy of the deck being edited and
is the only code allowed to replace it. Every mutation follows the same
sequence:

1. Mark the caller's busy fields
2. Build the next deck from a deep copy of the canonical deck
3. Write it to storage
4. On success, make exactly the written value canonical
5. On failure, leave the canonical deck untouched and notify the user
6. Release the busy fields on every exit path

INVARIANTS:
- The canonical deck is never changed before a write has succeeded
- Copies and imports always get fresh deck and card ids
- User-level failures are reported through the Notifier and a False/None
  return value; they are never raised to the caller

Concurrency: everything runs on one asyncio event loop. Operations on
disjoint busy fields interleave freely; overlapping operations are
last-writer-wins. Several processes writing one database file are not
supported; reload() re-reads the canonical deck when a caller suspects it
is stale.
"""

import copy
import logging
from collections import Counter
from collections.abc import AsyncIterator, Callable, Iterable, Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from statdeck.db import Collection, StorageEngine
from statdeck.models.deck import (
    DEFAULT_CARD_SIZE,
    DEFAULT_THEME,
    LOCAL_IMAGE_HANDLE,
    Card,
    CardMechanic,
    CardStat,
    Deck,
    DeckMeta,
    DurableImage,
    LocalImage,
    RulesetRef,
    StatDefinition,
    image_ref_from_wire,
    new_id,
    now_ms,
)
from statdeck.models.failure import (
    KnownError,
    NoActiveDeckError,
    NotFoundError,
    SizeLimitError,
    ValidationFailedError,
)
from statdeck.models.library import GamePreset
from statdeck.models.validation import ValidationIssue
from statdeck.services.notifications import Notifier
from statdeck.services.observable import Observable
from statdeck.services.transport import SizeStatus, TransportLimits, classify, measure_size

logger = logging.getLogger(__name__)

NEW_DECK = "new"


@dataclass(frozen=True)
class LoadingState:
    """Snapshot of the busy-field set."""

    fields: frozenset[str] = frozenset()
    message: str | None = None

    @property
    def is_loading(self) -> bool:
        return bool(self.fields)


# =============================================================================
# PURE UPDATE HELPERS
# =============================================================================


def _coerce_stats(value: Iterable[Any]) -> list[CardStat]:
    return [
        copy.deepcopy(s) if isinstance(s, CardStat) else CardStat.from_dict(s) for s in value
    ]


def _coerce_mechanics(value: Iterable[Any]) -> list[CardMechanic]:
    return [
        copy.deepcopy(m) if isinstance(m, CardMechanic) else CardMechanic.from_dict(m)
        for m in value
    ]


def _coerce_strings(value: Any) -> list[str]:
    if isinstance(value, str | bytes) or not isinstance(value, Iterable):
        raise TypeError(f"expected a list of strings, got {type(value).__name__}")
    return list(value)


def _invalid_field(record: str, key: str, message: str) -> ValidationFailedError:
    return ValidationFailedError([ValidationIssue(key, message)], record=record)


def _apply_card_field(card: Card, key: str, value: Any) -> None:
    if key in ("name", "role", "desc", "type", "theme"):
        setattr(card, key, value)
    elif key in ("traits", "secrets"):
        setattr(card, key, _coerce_strings(value))
    elif key == "stats":
        card.stats = _coerce_stats(value)
    elif key == "mechanics":
        card.mechanics = _coerce_mechanics(value)
    elif key == "image":
        if value is None or isinstance(value, LocalImage):
            card.image = value
        elif isinstance(value, DurableImage):
            # The reference decides durability, not the wrapper type
            card.image = image_ref_from_wire(value.url)
        elif isinstance(value, str):
            card.image = image_ref_from_wire(value)
        else:
            raise _invalid_field("card", "image", "Image must be a URL or image reference")
    elif key == "image_blob":
        if value is None:
            if isinstance(card.image, LocalImage):
                card.image = None
        elif isinstance(value, bytes | bytearray):
            card.image = LocalImage(handle=LOCAL_IMAGE_HANDLE, data=bytes(value))
        else:
            raise _invalid_field("card", "image_blob", "Image data must be bytes")
    elif key == "id":
        raise _invalid_field("card", key, "Card ID cannot be changed")
    else:
        raise _invalid_field("card", key, f"Unknown card field: {key}")


def apply_card_updates(card: Card, updates: Mapping[str, Any]) -> Card:
    """
    Return a new card with updates applied.

    Keys are applied in order. `image` takes a URL string, an ImageRef, or
    None; `image_blob` takes raw bytes or None. Both write the same single
    image slot, so when one payload carries both, the later key wins.

    Raises:
        ValidationFailedError: For unknown keys and malformed values
    """
    updated = copy.deepcopy(card)
    for key, value in updates.items():
        try:
            _apply_card_field(updated, key, value)
        except (KeyError, TypeError, ValueError) as e:
            raise _invalid_field("card", key, f"Invalid value for {key}: {e}") from e
    return updated


def _apply_meta_field(meta: DeckMeta, key: str, value: Any) -> None:
    if key in ("name", "theme", "card_size", "description", "statblock_config_id"):
        setattr(meta, key, value)
    elif key == "tags":
        meta.tags = _coerce_strings(value) if value is not None else None
    elif key == "ruleset_ref":
        if isinstance(value, Mapping):
            value = RulesetRef(name=value["name"], url=value.get("url"))
        elif value is not None and not isinstance(value, RulesetRef):
            raise TypeError(f"expected a ruleset reference, got {type(value).__name__}")
        meta.ruleset_ref = copy.deepcopy(value)
    elif key == "custom_stats":
        meta.custom_stats = (
            [
                copy.deepcopy(s) if isinstance(s, StatDefinition) else StatDefinition.from_dict(s)
                for s in value
            ]
            if value is not None
            else None
        )
    elif key in ("last_edited", "created_at"):
        raise _invalid_field("deck", f"meta.{key}", "Timestamps cannot be set directly")
    else:
        raise _invalid_field("deck", f"meta.{key}", f"Unknown deck field: {key}")


def apply_meta_updates(meta: DeckMeta, updates: Mapping[str, Any]) -> DeckMeta:
    """Return new deck metadata with updates applied. Timestamps are read-only."""
    updated = copy.deepcopy(meta)
    for key, value in updates.items():
        try:
            _apply_meta_field(updated, key, value)
        except (KeyError, TypeError, ValueError) as e:
            raise _invalid_field("deck", f"meta.{key}", f"Invalid value for {key}: {e}") from e
    return updated


def clone_card(card: Card) -> Card:
    """Deep copy of a card under a fresh id."""
    cloned = copy.deepcopy(card)
    cloned.id = new_id()
    return cloned


def new_card(preset: GamePreset | None = None) -> Card:
    """A placeholder card, seeded with a preset's stats and mechanics when given."""
    card = Card(
        id=new_id(),
        name="New Card",
        role="Role",
        desc="Add a description",
        type="character",
        traits=["Notable: Add a distinctive feature", "Property: Add a key characteristic"],
        secrets=["Hidden: Add a concealed aspect", "Plot: Add a story element"],
    )
    if preset is not None:
        card.stats = [CardStat(stat_id=stat.id, value="") for stat in preset.front_stats]
        card.mechanics = []
        for mechanic in preset.back_mechanics:
            seeded = copy.deepcopy(mechanic)
            seeded.id = new_id()
            card.mechanics.append(seeded)
    return card


def next_edit_stamp(meta: DeckMeta) -> int:
    """A lastEdited value that never moves backwards, even if the clock does."""
    return max(now_ms(), meta.last_edited)


# =============================================================================
# COORDINATOR
# =============================================================================


class CanonicalStateCoordinator:
    """
    Single owner of the deck being edited.

    Attributes:
        current_deck: Observable canonical deck (None when nothing is loaded)
        loading: Observable busy-field set
        notifier: Channel for user-facing messages
        last_failure: The KnownError behind the most recent failed operation
    """

    def __init__(
        self,
        storage: StorageEngine,
        notifier: Notifier | None = None,
        limits: TransportLimits | None = None,
    ) -> None:
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.limits = limits or TransportLimits.from_settings()
        self.current_deck: Observable[Deck | None] = Observable(None)
        self.loading: Observable[LoadingState] = Observable(LoadingState())
        self.last_failure: KnownError | None = None
        self._busy: Counter[str] = Counter()

    @property
    def deck(self) -> Deck | None:
        return self.current_deck.get()

    def _fail(self, error: KnownError, message: str | None = None, warn: bool = False) -> None:
        """Record a failure and report it to the user."""
        self.last_failure = error
        if warn:
            self.notifier.warning(message or error.message)
        else:
            self.notifier.error(message or error.message)

    # --- Busy-field tracking ---

    def is_field_loading(self, field: str) -> bool:
        return field in self.loading.get().fields

    def _set_busy(self, fields: Sequence[str], busy: bool, message: str | None = None) -> None:
        for field in fields:
            if busy:
                self._busy[field] += 1
            else:
                self._busy[field] -= 1
                if self._busy[field] <= 0:
                    del self._busy[field]
        self.loading.set(
            LoadingState(fields=frozenset(self._busy), message=message if busy else None)
        )

    @asynccontextmanager
    async def busy(self, fields: Sequence[str], message: str | None = None) -> AsyncIterator[None]:
        """
        Hold busy flags for the duration of a block.

        Flags are advisory, not locks. They are reference counted so two
        overlapping operations do not clear each other's flags.
        """
        self._set_busy(fields, True, message)
        try:
            yield
        finally:
            self._set_busy(fields, False)

    # --- Core canon update ---

    async def _canon_update(
        self,
        build: Callable[[Deck], Deck],
        fields: Sequence[str],
        loading_message: str | None,
        success_message: str | None,
        allow_empty: bool = False,
    ) -> bool:
        deck = self.current_deck.get()
        if deck is None:
            self._fail(NoActiveDeckError("No active deck to update"))
            return False

        async with self.busy(fields, loading_message):
            try:
                updated = build(copy.deepcopy(deck))
                updated.meta.last_edited = next_edit_stamp(deck.meta)
                await self.storage.put(Collection.DECKS, updated, allow_empty=allow_empty)
            except NotFoundError as e:
                self._fail(e)
                return False
            except KnownError as e:
                self._fail(e, f"Update failed: {e.message}")
                return False

            # Canon state update: exactly the value that was written
            self.current_deck.set(updated)

        if success_message:
            self.notifier.success(success_message)
        return True

    # --- Loading and selection ---

    async def load_deck(self, deck_id: str) -> bool:
        """
        Make a stored deck canonical.

        A failed switch keeps the deck that was already loaded. Only a failed
        first load leaves the coordinator with no canonical deck.
        """
        try:
            deck = await self.storage.get(Collection.DECKS, deck_id)
        except KnownError as e:
            self._fail(e, f"Failed to load deck: {e.message}")
            return False

        if not isinstance(deck, Deck):
            self._fail(NotFoundError("Deck", deck_id))
            return False

        self.current_deck.set(deck)
        return True

    async def reload(self) -> bool:
        """Re-read the canonical deck from storage."""
        deck = self.current_deck.get()
        if deck is None:
            return False
        return await self.load_deck(deck.id)

    def unload(self) -> None:
        self.current_deck.set(None)

    async def list_decks(self) -> list[Deck]:
        """All stored decks, or an empty list with an error notification."""
        try:
            return [d for d in await self.storage.get_all(Collection.DECKS) if isinstance(d, Deck)]
        except KnownError as e:
            self._fail(e, f"Failed to load decks: {e.message}")
            return []

    # --- Deck lifecycle ---

    async def create_deck(
        self,
        name: str,
        theme: str = DEFAULT_THEME,
        card_size: str = DEFAULT_CARD_SIZE,
        preset: GamePreset | None = None,
    ) -> Deck | None:
        """Create a deck with one starter card and make it canonical."""
        stamp = now_ms()
        deck = Deck(
            id=new_id(),
            meta=DeckMeta(
                name=name,
                theme=theme,
                card_size=card_size,
                last_edited=stamp,
                created_at=stamp,
            ),
            cards=[new_card(preset)],
        )
        if not await self.commit_new_deck(deck, success_message=f"Created deck '{name}'"):
            return None
        return deck

    async def commit_new_deck(
        self,
        deck: Deck,
        success_message: str | None = None,
        activate: bool = True,
        fields: Sequence[str] = ("deck-create",),
    ) -> bool:
        """Write a brand new deck and, when activate is set, make it canonical."""
        async with self.busy(fields):
            try:
                await self.storage.put(Collection.DECKS, deck)
            except KnownError as e:
                self._fail(e, f"Failed to save deck: {e.message}")
                return False
            if activate:
                self.current_deck.set(deck)

        logger.info("Saved new deck %s (%d cards)", deck.id, len(deck.cards))
        if success_message:
            self.notifier.success(success_message)
        return True

    async def delete_deck(self, deck_id: str, fields: Sequence[str] = ("deck-delete",)) -> bool:
        """Delete a stored deck. Clears the canonical deck if it was the one deleted."""
        async with self.busy(fields):
            try:
                deleted = await self.storage.delete(Collection.DECKS, deck_id)
            except KnownError as e:
                self._fail(e, f"Failed to delete deck: {e.message}")
                return False

        if not deleted:
            self._fail(NotFoundError("Deck", deck_id))
            return False

        current = self.current_deck.get()
        if current is not None and current.id == deck_id:
            self.current_deck.set(None)
        self.notifier.success("Deck deleted")
        return True

    async def duplicate_deck(
        self,
        deck_id: str | None = None,
        new_name: str | None = None,
        fields: Sequence[str] = ("deck-duplicate",),
    ) -> Deck | None:
        """
        Store a copy of a deck under fresh deck and card ids.

        Defaults to the canonical deck. The canonical deck does not change.
        """
        current = self.current_deck.get()
        async with self.busy(fields):
            try:
                if deck_id is None or (current is not None and current.id == deck_id):
                    source = current
                else:
                    stored = await self.storage.get(Collection.DECKS, deck_id)
                    source = stored if isinstance(stored, Deck) else None
                if source is None:
                    if deck_id is None:
                        self._fail(NoActiveDeckError("No active deck to duplicate"))
                    else:
                        self._fail(NotFoundError("Deck", deck_id))
                    return None

                stamp = now_ms()
                duplicate = Deck(
                    id=new_id(),
                    meta=copy.deepcopy(source.meta),
                    cards=[clone_card(card) for card in source.cards],
                )
                duplicate.meta.name = new_name or f"{source.meta.name} (Copy)"
                duplicate.meta.created_at = stamp
                duplicate.meta.last_edited = stamp
                await self.storage.put(Collection.DECKS, duplicate, allow_empty=True)
            except KnownError as e:
                self._fail(e, f"Failed to duplicate deck: {e.message}")
                return None

        self.notifier.success(f"Created '{duplicate.meta.name}'")
        return duplicate

    # --- Deck mutations ---

    async def update_deck_meta(
        self,
        updates: Mapping[str, Any],
        loading_fields: Sequence[str] = (),
        loading_message: str | None = None,
        success_message: str | None = None,
    ) -> bool:
        """Merge metadata updates into the canonical deck."""

        def build(deck: Deck) -> Deck:
            deck.meta = apply_meta_updates(deck.meta, updates)
            return deck

        # Metadata edits (a theme change, say) must work on an empty deck
        return await self._canon_update(
            build, loading_fields, loading_message, success_message, allow_empty=True
        )

    async def update_card(
        self,
        card_id: str,
        updates: Mapping[str, Any],
        loading_fields: Sequence[str] = (),
        loading_message: str | None = None,
        success_message: str | None = None,
    ) -> bool:
        """Merge updates into one card of the canonical deck."""
        return await self.update_cards(
            {card_id: updates}, loading_fields, loading_message, success_message
        )

    async def update_cards(
        self,
        batch: Mapping[str, Mapping[str, Any]],
        loading_fields: Sequence[str] = (),
        loading_message: str | None = None,
        success_message: str | None = None,
    ) -> bool:
        """
        Apply updates to several cards in one write.

        Args:
            batch: {card_id: updates}; every id must exist in the canonical deck
        """

        def build(deck: Deck) -> Deck:
            known = set(deck.card_ids())
            for card_id in batch:
                if card_id not in known:
                    raise NotFoundError("Card", card_id)
            deck.cards = [
                apply_card_updates(card, batch[card.id]) if card.id in batch else card
                for card in deck.cards
            ]
            return deck

        return await self._canon_update(build, loading_fields, loading_message, success_message)

    async def add_card(
        self,
        preset: GamePreset | None = None,
        loading_fields: Sequence[str] = ("cards",),
    ) -> Card | None:
        """Append a placeholder card. Refused once the share link is already too large."""
        deck = self.current_deck.get()
        if deck is None:
            self._fail(NoActiveDeckError("No active deck to update"))
            return None

        size = measure_size(deck)
        if classify(size, self.limits) is SizeStatus.ERROR:
            self._fail(SizeLimitError(size, self.limits.error_bytes))
            return None

        card = new_card(preset)

        def build(next_deck: Deck) -> Deck:
            next_deck.cards.append(copy.deepcopy(card))
            return next_deck

        if not await self._canon_update(build, loading_fields, None, None):
            return None
        return card

    async def delete_cards(
        self,
        card_ids: Sequence[str],
        loading_fields: Sequence[str] = ("cards",),
        success_message: str | None = None,
    ) -> bool:
        """Remove cards from the canonical deck. An empty id list is a no-op."""
        if self.current_deck.get() is None:
            self._fail(NoActiveDeckError("No active deck to update"))
            return False
        if not card_ids:
            return True

        doomed = set(card_ids)

        def build(deck: Deck) -> Deck:
            known = set(deck.card_ids())
            for card_id in card_ids:
                if card_id not in known:
                    raise NotFoundError("Card", card_id)
            deck.cards = [card for card in deck.cards if card.id not in doomed]
            return deck

        return await self._canon_update(
            build, loading_fields, None, success_message, allow_empty=True
        )

    async def copy_cards(
        self,
        card_ids: Sequence[str],
        target_deck_id: str,
        new_deck_name: str | None = None,
        loading_fields: Sequence[str] = ("copy-cards",),
    ) -> Deck | None:
        """
        Copy cards from the canonical deck into another deck.

        Args:
            card_ids: Cards of the canonical deck to copy, in output order
            target_deck_id: Existing deck id, the canonical deck's own id,
                or "new" to create a deck
            new_deck_name: Name for the deck created when target is "new"

        Returns:
            The written target deck, or None on failure
        """
        deck = self.current_deck.get()
        if deck is None:
            self._fail(NoActiveDeckError("No active deck to copy from"))
            return None
        if not card_ids:
            self._fail(
                ValidationFailedError(
                    [ValidationIssue("card_ids", "No cards selected")], record="Copy"
                ),
                "No cards selected",
                warn=True,
            )
            return None

        sources = [deck.find_card(card_id) for card_id in card_ids]
        missing = [card_id for card_id, source in zip(card_ids, sources) if source is None]
        if missing:
            self._fail(NotFoundError("Card", missing[0]))
            return None
        copies = [clone_card(source) for source in sources if source is not None]

        if target_deck_id == deck.id:

            def build(next_deck: Deck) -> Deck:
                next_deck.cards.extend(copies)
                return next_deck

            message = f"Duplicated {len(copies)} card(s)"
            if not await self._canon_update(build, loading_fields, None, message):
                return None
            return self.current_deck.get()

        async with self.busy(loading_fields):
            try:
                if target_deck_id == NEW_DECK:
                    stamp = now_ms()
                    target = Deck(
                        id=new_id(),
                        meta=DeckMeta(
                            name=new_deck_name or "New Deck",
                            theme=deck.meta.theme,
                            card_size=deck.meta.card_size,
                            last_edited=stamp,
                            created_at=stamp,
                        ),
                        cards=copies,
                    )
                else:
                    stored = await self.storage.get(Collection.DECKS, target_deck_id)
                    if not isinstance(stored, Deck):
                        raise NotFoundError("Deck", target_deck_id)
                    target = stored
                    target.cards.extend(copies)
                    target.meta.last_edited = next_edit_stamp(target.meta)
                await self.storage.put(Collection.DECKS, target)
            except NotFoundError as e:
                self._fail(e, "Target deck not found")
                return None
            except KnownError as e:
                self._fail(e, f"Failed to copy cards: {e.message}")
                return None

        self.notifier.success(f"Copied {len(copies)} card(s) to '{target.meta.name}'")
        return target
