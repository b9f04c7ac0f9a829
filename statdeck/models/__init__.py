from statdeck.models.deck import (
    CARD_SIZES,
    LOCAL_IMAGE_HANDLE,
    THEMES,
    Card,
    CardMechanic,
    CardStat,
    Deck,
    DeckMeta,
    DurableImage,
    ImageRef,
    LocalImage,
    MechanicType,
    RulesetRef,
    StatDefinition,
    is_durable_url,
    new_id,
    now_ms,
)
from statdeck.models.failure import (
    ApiResponse,
    DecodeError,
    FailureDetail,
    FailureKind,
    KnownError,
    MigrationRequiredError,
    NotFoundError,
    OutcomeType,
    StorageUnavailableError,
    StorageWriteError,
    ValidationFailedError,
)
from statdeck.models.library import (
    GamePreset,
    StatblockConfig,
    StatblockVocabulary,
    VocabularyEntry,
)
from statdeck.models.validation import (
    ValidationIssue,
    validate_card,
    validate_deck,
    validate_game_preset,
    validate_statblock_config,
    validate_vocabulary,
)

__all__ = [
    "ApiResponse",
    "CARD_SIZES",
    "Card",
    "CardMechanic",
    "CardStat",
    "DecodeError",
    "Deck",
    "DeckMeta",
    "DurableImage",
    "FailureDetail",
    "FailureKind",
    "GamePreset",
    "ImageRef",
    "KnownError",
    "LOCAL_IMAGE_HANDLE",
    "LocalImage",
    "MechanicType",
    "MigrationRequiredError",
    "NotFoundError",
    "OutcomeType",
    "RulesetRef",
    "StatDefinition",
    "StatblockConfig",
    "StatblockVocabulary",
    "StorageUnavailableError",
    "StorageWriteError",
    "THEMES",
    "ValidationFailedError",
    "ValidationIssue",
    "VocabularyEntry",
    "is_durable_url",
    "new_id",
    "now_ms",
    "validate_card",
    "validate_deck",
    "validate_game_preset",
    "validate_statblock_config",
    "validate_vocabulary",
]
