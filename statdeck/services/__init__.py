"""
Statdeck services.

Canonical deck state, sharing, and the preset library.
"""

from statdeck.services.coordinator import (
    CanonicalStateCoordinator,
    LoadingState,
    apply_card_updates,
    apply_meta_updates,
    clone_card,
    new_card,
)
from statdeck.services.library import (
    PresetLibrary,
    default_config,
    mechanic_from_config,
    official_configs,
    official_presets,
    vocabulary_for,
    vocabulary_from_simple,
)
from statdeck.services.notifications import Notification, NotificationLevel, Notifier
from statdeck.services.observable import Observable
from statdeck.services.share import (
    ReceiptState,
    ShareReceipt,
    ShareReport,
    ShareService,
    ensure_portable,
    fresh_copy,
)
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
    encode_deck_json,
    export_filename,
    measure_size,
)

__all__ = [
    "BrowserSupport",
    "CanonicalStateCoordinator",
    "LoadingState",
    "MigrationReport",
    "Notification",
    "NotificationLevel",
    "Notifier",
    "Observable",
    "PresetLibrary",
    "ReceiptState",
    "ShareReceipt",
    "ShareReport",
    "ShareService",
    "SizeStatus",
    "TransportForm",
    "TransportLimits",
    "apply_card_updates",
    "apply_meta_updates",
    "browser_support",
    "classify",
    "clone_card",
    "decode",
    "default_config",
    "detect_migration_needed",
    "encode",
    "encode_deck_json",
    "ensure_portable",
    "export_filename",
    "fresh_copy",
    "measure_size",
    "mechanic_from_config",
    "new_card",
    "official_configs",
    "official_presets",
    "vocabulary_for",
    "vocabulary_from_simple",
]
