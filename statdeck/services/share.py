"""
Share and import flows.

Inbound: a share link or file is decoded into a ShareReceipt, a one-shot
preview that is either imported under fresh ids or cancelled. Nothing is
written before import.

Outbound: a deck is measured, checked for local-only images and turned into
a link or a JSON file.

    PREVIEWING --import_deck()--> IMPORTED
        |
        +------cancel()---------> CANCELLED
"""

import copy
import logging
from dataclasses import dataclass
from enum import Enum

from statdeck.models.deck import Deck, new_id, now_ms
from statdeck.models.failure import (
    DecodeError,
    InvalidTransitionError,
    KnownError,
    MigrationRequiredError,
    ValidationFailedError,
)
from statdeck.models.validation import validate_deck
from statdeck.services.coordinator import CanonicalStateCoordinator, clone_card
from statdeck.services.notifications import Notifier
from statdeck.services.transport import (
    BrowserSupport,
    MigrationReport,
    SizeStatus,
    TransportForm,
    TransportLimits,
    browser_support,
    classify,
    decode,
    detect_migration_needed,
    encode,
    export_filename,
    measure_size,
)

logger = logging.getLogger(__name__)


class ReceiptState(str, Enum):
    PREVIEWING = "previewing"
    IMPORTED = "imported"
    CANCELLED = "cancelled"


def ensure_portable(deck: Deck) -> MigrationReport:
    """
    Check that every image in a deck resolves for a recipient.

    Raises:
        MigrationRequiredError: If any card still uses a local-only image
    """
    report = detect_migration_needed(deck)
    if report.needs_migration:
        raise MigrationRequiredError(report.blob_count)
    return report


def fresh_copy(deck: Deck) -> Deck:
    """Copy of a deck under new deck and card ids, stamped as edited now."""
    fresh = Deck(
        id=new_id(),
        meta=copy.deepcopy(deck.meta),
        cards=[clone_card(card) for card in deck.cards],
    )
    fresh.meta.last_edited = max(now_ms(), fresh.meta.last_edited)
    if not fresh.meta.created_at:
        fresh.meta.created_at = fresh.meta.last_edited
    return fresh


class ShareReceipt:
    """
    Preview of a received deck.

    The receipt holds the decoded deck only. It touches neither storage nor
    the canonical deck until import_deck() is called.
    """

    def __init__(
        self,
        deck: Deck,
        coordinator: CanonicalStateCoordinator,
        notifier: Notifier,
    ) -> None:
        self.deck = deck
        self.state = ReceiptState.PREVIEWING
        self.imported_deck_id: str | None = None
        self.failure: KnownError | None = None
        self._coordinator = coordinator
        self._notifier = notifier

    @property
    def migration(self) -> MigrationReport:
        return detect_migration_needed(self.deck)

    def _refuse(self, action: str) -> None:
        self.failure = InvalidTransitionError(action, self.state.value)
        self._notifier.warning(self.failure.message)

    async def import_deck(self, activate: bool = True) -> str | None:
        """
        Save the previewed deck as a new local deck.

        Returns:
            The new deck id, or None if the import failed or was refused.
            A failed import leaves the receipt previewing so it can be retried.
        """
        if self.state is not ReceiptState.PREVIEWING:
            self._refuse("import")
            return None

        issues = validate_deck(self.deck.to_dict())
        if issues:
            self.failure = ValidationFailedError(issues, record="Shared deck")
            self._notifier.error(
                f"Import failed: {', '.join(issue.message for issue in issues)}"
            )
            return None

        imported = fresh_copy(self.deck)
        committed = await self._coordinator.commit_new_deck(
            imported,
            success_message=f"Imported '{imported.meta.name}'",
            activate=activate,
            fields=("deck-import",),
        )
        if not committed:
            self.failure = self._coordinator.last_failure
            return None

        report = detect_migration_needed(imported)
        if report.needs_migration:
            self._notifier.warning(
                f"{report.blob_count} card image(s) in this deck only exist on the sender's "
                "machine and will not display"
            )

        self.state = ReceiptState.IMPORTED
        self.imported_deck_id = imported.id
        logger.info("Imported shared deck %s as %s", self.deck.id, imported.id)
        return imported.id

    def cancel(self) -> bool:
        """Discard the preview. No storage or canonical state is touched."""
        if self.state is not ReceiptState.PREVIEWING:
            self._refuse("cancel")
            return False
        self.state = ReceiptState.CANCELLED
        return True


@dataclass(frozen=True)
class ShareReport:
    """
    Everything a share dialog shows about a deck.

    Attributes:
        url: Query-form share link
        size: UTF-8 byte length of url
        status: Size classification of url
        browsers: Per-target support for a link of this size
        migration: Image portability report
    """

    url: str
    size: int
    status: SizeStatus
    browsers: list[BrowserSupport]
    migration: MigrationReport

    @property
    def shareable(self) -> bool:
        return self.status is not SizeStatus.ERROR and not self.migration.needs_migration


class ShareService:
    """Entry point for receiving and sending decks."""

    def __init__(
        self,
        coordinator: CanonicalStateCoordinator,
        notifier: Notifier | None = None,
        limits: TransportLimits | None = None,
        origin: str | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.notifier = notifier or coordinator.notifier
        self.limits = limits or coordinator.limits
        self.origin = origin

    def receive(self, transport: str) -> ShareReceipt | None:
        """Decode a share link or file into a previewing receipt."""
        try:
            deck = decode(transport)
        except DecodeError as e:
            self.notifier.error(e.message)
            return None
        return ShareReceipt(deck, self.coordinator, self.notifier)

    def _resolve(self, deck: Deck | None) -> Deck | None:
        deck = deck if deck is not None else self.coordinator.deck
        if deck is None:
            self.notifier.error("No active deck to share")
        return deck

    def prepare_share(self, deck: Deck | None = None) -> ShareReport | None:
        """Measure and inspect a deck (the canonical deck by default)."""
        deck = self._resolve(deck)
        if deck is None:
            return None

        url = encode(deck, TransportForm.QUERY, self.origin)
        size = len(url.encode("utf-8"))
        return ShareReport(
            url=url,
            size=size,
            status=classify(size, self.limits),
            browsers=browser_support(size, self.limits),
            migration=detect_migration_needed(deck),
        )

    def share_url(
        self, deck: Deck | None = None, form: TransportForm = TransportForm.QUERY
    ) -> str | None:
        """
        Build a share link.

        Refused while any card has a local-only image. Oversized links are
        still returned, with a warning.
        """
        deck = self._resolve(deck)
        if deck is None:
            return None
        try:
            ensure_portable(deck)
        except MigrationRequiredError as e:
            self.notifier.warning(e.message)
            return None

        status = classify(measure_size(deck, self.origin), self.limits)
        if status is SizeStatus.ERROR:
            self.notifier.warning(
                "This link is too long for most browsers. Export the deck as a file instead."
            )
        elif status is SizeStatus.WARNING:
            self.notifier.warning("This link may not open in every browser.")
        return encode(deck, form, self.origin)

    def export_json(self, deck: Deck | None = None) -> tuple[str, str] | None:
        """
        Build a JSON file export.

        Returns:
            (file name, file content), or None while local-only images remain
        """
        deck = self._resolve(deck)
        if deck is None:
            return None
        try:
            ensure_portable(deck)
        except MigrationRequiredError as e:
            self.notifier.warning(e.message)
            return None
        return export_filename(deck), encode(deck, TransportForm.FILE)
