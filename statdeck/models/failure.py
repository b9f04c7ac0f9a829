"""
Failure taxonomy shared by storage, codec, coordinator and HTTP bridge.

Every failure the core can produce is a KnownError subclass carrying a
FailureKind. Nothing here is fatal: the coordinator and share flow catch
these at their boundary and turn them into notifications, and the HTTP
bridge turns them into ApiResponse envelopes.

Kinds:
- VALIDATION_FAILED: structural rule violation, no state change
- STORAGE_UNAVAILABLE: backend cannot be opened or read
- STORAGE_WRITE_FAILED: backend rejected a write
- DECODE_ERROR: malformed share payload, never partially imported
- NOT_FOUND: a referenced deck or card id does not exist
- NO_ACTIVE_DECK: an edit was attempted with no deck loaded
- MIGRATION_REQUIRED: deck still has local-only images and cannot be shared
- SIZE_LIMIT_EXCEEDED: the deck's share link is already too large to grow
- INVALID_TRANSITION: a finished share receipt was asked to import or cancel
- READ_ONLY: official presets and configs cannot be changed or deleted
"""

from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

from statdeck.models.validation import ValidationIssue


class FailureKind(str, Enum):
    """Classification of failure types."""

    VALIDATION_FAILED = "validation_failed"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    DECODE_ERROR = "decode_error"
    NOT_FOUND = "not_found"
    NO_ACTIVE_DECK = "no_active_deck"
    MIGRATION_REQUIRED = "migration_required"
    SIZE_LIMIT_EXCEEDED = "size_limit_exceeded"
    INVALID_TRANSITION = "invalid_transition"
    READ_ONLY = "read_only"
    UNKNOWN = "unknown"


class OutcomeType(str, Enum):
    """High-level outcome classification."""

    SUCCESS = "success"
    KNOWN_FAILURE = "known_failure"


T = TypeVar("T")


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope used by the local HTTP bridge."""

    outcome: OutcomeType = Field(
        ...,
        description="High-level classification of the result",
    )
    data: T | None = Field(
        default=None,
        description="Response data (present on success)",
    )
    failure: FailureDetail | None = Field(
        default=None,
        description="Failure details (present on non-success)",
    )

    @classmethod
    def success(cls, data: T) -> "ApiResponse[T]":
        """Create a success response."""
        return cls(outcome=OutcomeType.SUCCESS, data=data)

    @classmethod
    def known_failure(
        cls,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> "ApiResponse[Any]":
        """Create a known failure response."""
        return cls(
            outcome=OutcomeType.KNOWN_FAILURE,
            failure=FailureDetail(
                kind=kind,
                message=message,
                detail=detail,
                suggestion=suggestion,
            ),
        )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ApiResponse[Any]:
        """Convert to an ApiResponse."""
        return ApiResponse.known_failure(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class ValidationFailedError(KnownError):
    """Raised before any write when a record breaks a structural rule."""

    def __init__(self, issues: list[ValidationIssue], record: str = "Deck"):
        self.issues = issues
        super().__init__(
            kind=FailureKind.VALIDATION_FAILED,
            message=f"Validation failed: {', '.join(issue.message for issue in issues)}",
            detail=f"{record} has {len(issues)} invalid field(s): "
            + ", ".join(issue.field for issue in issues),
            status_code=422,
        )


class StorageUnavailableError(KnownError):
    """The persistence backend could not be opened or read."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.STORAGE_UNAVAILABLE,
            message=message,
            detail=detail,
            suggestion="Check that the local database file is reachable and retry.",
            status_code=503,
        )


class StorageWriteError(KnownError):
    """The persistence backend reported a failure while writing."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.STORAGE_WRITE_FAILED,
            message=message,
            detail=detail,
            suggestion="Retry the change. Nothing was saved.",
            status_code=500,
        )


class DecodeError(KnownError):
    """A share URL or file could not be turned into a valid deck."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.DECODE_ERROR,
            message=message,
            detail=detail,
            suggestion="Ask the sender for a fresh share link or file.",
            status_code=400,
        )


class NotFoundError(KnownError):
    """A deck or card id does not exist."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"{entity} not found",
            detail=f"{entity} '{entity_id}' does not exist",
            status_code=404,
        )


class MigrationRequiredError(KnownError):
    """The deck references images that will not resolve for a recipient."""

    def __init__(self, blob_count: int):
        self.blob_count = blob_count
        super().__init__(
            kind=FailureKind.MIGRATION_REQUIRED,
            message="Please migrate blob-based images to URLs first",
            detail=f"{blob_count} card image(s) are stored locally",
            suggestion="Replace local images with hosted image URLs before sharing.",
            status_code=409,
        )


class NoActiveDeckError(KnownError):
    """An edit needs a canonical deck and none is loaded."""

    def __init__(self, message: str = "No active deck"):
        super().__init__(
            kind=FailureKind.NO_ACTIVE_DECK,
            message=message,
            suggestion="Select a deck first.",
            status_code=404,
        )


class SizeLimitError(KnownError):
    """The deck's share link is already past the error threshold."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            kind=FailureKind.SIZE_LIMIT_EXCEEDED,
            message="URL size limit approaching. Consider creating a new deck.",
            detail=f"Share link is {size} bytes; the limit is {limit}",
            status_code=413,
        )


class InvalidTransitionError(KnownError):
    """A share receipt already left the preview state."""

    def __init__(self, action: str, state: str):
        self.action = action
        self.state = state
        super().__init__(
            kind=FailureKind.INVALID_TRANSITION,
            message=f"Cannot {action}: shared deck was already {state}",
            status_code=409,
        )


class OfficialRecordError(KnownError):
    """Official presets and configs ship with the app and stay."""

    def __init__(self, message: str):
        super().__init__(
            kind=FailureKind.READ_ONLY,
            message=message,
            suggestion="Duplicate it and edit the copy instead.",
            status_code=403,
        )
