"""
Tests for the failure taxonomy.

Every failure the core produces is a KnownError with a FailureKind, and the
HTTP bridge renders it as an ApiResponse envelope.
"""

from statdeck.models.failure import (
    ApiResponse,
    DecodeError,
    FailureKind,
    KnownError,
    MigrationRequiredError,
    InvalidTransitionError,
    NoActiveDeckError,
    NotFoundError,
    OfficialRecordError,
    OutcomeType,
    SizeLimitError,
    StorageUnavailableError,
    StorageWriteError,
    ValidationFailedError,
)
from statdeck.models.validation import ValidationIssue


class TestFailureEnvelope:
    """Tests for the ApiResponse failure envelope."""

    def test_success_response_structure(self) -> None:
        """Success response has correct structure."""
        response = ApiResponse.success({"deck_id": "abc"})

        assert response.outcome == OutcomeType.SUCCESS
        assert response.data == {"deck_id": "abc"}
        assert response.failure is None

    def test_known_failure_response_structure(self) -> None:
        """Known failure response has correct structure."""
        response = ApiResponse.known_failure(
            kind=FailureKind.NOT_FOUND,
            message="Deck not found",
            detail="Deck 'xyz' does not exist",
        )

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.data is None
        assert response.failure is not None
        assert response.failure.kind == FailureKind.NOT_FOUND


class TestKnownErrors:
    """Each error subclass carries its kind and HTTP status."""

    def test_validation_failed(self) -> None:
        """Validation failures list every violated rule."""
        error = ValidationFailedError(
            [ValidationIssue("meta.theme", "Invalid theme"), ValidationIssue("cards", "Too many")]
        )

        assert error.kind is FailureKind.VALIDATION_FAILED
        assert error.status_code == 422
        assert error.message == "Validation failed: Invalid theme, Too many"
        assert error.detail == "Deck has 2 invalid field(s): meta.theme, cards"

    def test_storage_errors(self) -> None:
        """Storage failures distinguish reads from writes."""
        assert StorageUnavailableError("down").status_code == 503
        assert StorageWriteError("rejected").kind is FailureKind.STORAGE_WRITE_FAILED

    def test_decode_error_suggests_fresh_link(self) -> None:
        """Decode failures tell the user what to do."""
        error = DecodeError("Invalid deck data in link")

        assert error.status_code == 400
        assert "share link" in error.suggestion

    def test_not_found(self) -> None:
        """Not-found errors name the entity."""
        error = NotFoundError("Card", "c-1")

        assert error.message == "Card not found"
        assert error.detail == "Card 'c-1' does not exist"

    def test_migration_required(self) -> None:
        """Migration failures carry the blob count."""
        error = MigrationRequiredError(3)

        assert error.kind is FailureKind.MIGRATION_REQUIRED
        assert error.detail == "3 card image(s) are stored locally"

    def test_to_response(self) -> None:
        """Known errors convert to failure envelopes."""
        response = KnownError(FailureKind.NO_ACTIVE_DECK, "No active deck").to_response()

        assert response.outcome == OutcomeType.KNOWN_FAILURE
        assert response.failure.message == "No active deck"

    def test_no_active_deck(self) -> None:
        """Edits without a loaded deck are their own kind."""
        error = NoActiveDeckError("No active deck to update")

        assert error.kind is FailureKind.NO_ACTIVE_DECK
        assert error.status_code == 404

    def test_size_limit(self) -> None:
        """Size refusals keep the measured size and the limit."""
        error = SizeLimitError(31_000, 30_000)

        assert error.kind is FailureKind.SIZE_LIMIT_EXCEEDED
        assert error.status_code == 413
        assert (error.size, error.limit) == (31_000, 30_000)

    def test_invalid_transition(self) -> None:
        """A settled share receipt cannot import again."""
        error = InvalidTransitionError("import", "imported")

        assert error.kind is FailureKind.INVALID_TRANSITION
        assert error.message == "Cannot import: shared deck was already imported"
        assert error.status_code == 409

    def test_official_record(self) -> None:
        """Official content is read-only and points at duplication."""
        error = OfficialRecordError("Official presets cannot be deleted")

        assert error.kind is FailureKind.READ_ONLY
        assert error.status_code == 403
        assert "Duplicate" in error.suggestion
