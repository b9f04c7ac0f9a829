"""
Shared dependencies for the HTTP bridge.

The bridge serves one local user, so a single coordinator (and with it a
single canonical deck) is shared by every request. Tests replace it through
app.dependency_overrides[get_coordinator].
"""

from typing import Annotated

from fastapi import Depends

from statdeck.db.database import storage
from statdeck.services.coordinator import CanonicalStateCoordinator
from statdeck.services.library import PresetLibrary
from statdeck.services.notifications import Notifier
from statdeck.services.share import ShareService

coordinator = CanonicalStateCoordinator(storage, Notifier())


def get_coordinator() -> CanonicalStateCoordinator:
    return coordinator


def get_share_service(
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> ShareService:
    return ShareService(coordinator)


def get_library(
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> PresetLibrary:
    return PresetLibrary(coordinator.storage, coordinator.notifier)
