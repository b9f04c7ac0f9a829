"""
Share API endpoints.

Outbound: share link details and JSON export for stored decks.
Inbound: preview and import of share links or exported files.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from statdeck.api.decks import coordinator_failure, load_stored_deck
from statdeck.api.deps import get_coordinator, get_share_service
from statdeck.services.coordinator import CanonicalStateCoordinator
from statdeck.services.share import ShareReceipt, ShareService, ensure_portable
from statdeck.services.transport import (
    TransportForm,
    decode,
    detect_migration_needed,
    encode,
    export_filename,
)

router = APIRouter(prefix="/share", tags=["share"])


class BrowserSupportResponse(BaseModel):
    target: str
    limit: int
    supported: bool


class ShareInfoResponse(BaseModel):
    """Share link details for one deck."""

    deck_id: str
    url: str
    size: int
    status: str
    shareable: bool
    browsers: list[BrowserSupportResponse]
    blob_count: int
    missing_image_count: int


class TransportRequest(BaseModel):
    """A share link, fragment, query string, or exported file content."""

    transport: str = Field(..., min_length=1)


class ImportRequest(TransportRequest):
    activate: bool = True


class PreviewResponse(BaseModel):
    deck: dict[str, Any]
    card_count: int
    blob_count: int
    missing_image_count: int


class ImportResponse(BaseModel):
    deck_id: str
    name: str
    card_count: int
    blob_count: int


@router.get("/decks/{deck_id}", response_model=ShareInfoResponse)
async def get_share_info(
    deck_id: str,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
    share: Annotated[ShareService, Depends(get_share_service)],
) -> ShareInfoResponse:
    """Measure a deck's share link and report image portability."""
    deck = await load_stored_deck(coordinator, deck_id)
    report = share.prepare_share(deck)
    if report is None:
        raise coordinator_failure(coordinator)
    return ShareInfoResponse(
        deck_id=deck.id,
        url=report.url,
        size=report.size,
        status=report.status.value,
        shareable=report.shareable,
        browsers=[
            BrowserSupportResponse(target=b.target, limit=b.limit, supported=b.supported)
            for b in report.browsers
        ],
        blob_count=report.migration.blob_count,
        missing_image_count=report.migration.missing_image_count,
    )


@router.get("/decks/{deck_id}/export")
async def export_deck(
    deck_id: str,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> Response:
    """
    Download a deck as a JSON file.

    Returns 409 while any card still uses a local-only image.
    """
    deck = await load_stored_deck(coordinator, deck_id)
    ensure_portable(deck)
    return Response(
        content=encode(deck, TransportForm.FILE),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(deck)}"'},
    )


@router.post("/preview", response_model=PreviewResponse)
async def preview_shared_deck(request: TransportRequest) -> PreviewResponse:
    """
    Decode a shared deck without saving it.

    Returns 400 if the payload cannot be decoded.
    """
    deck = decode(request.transport)
    report = detect_migration_needed(deck)
    return PreviewResponse(
        deck=deck.to_dict(),
        card_count=len(deck.cards),
        blob_count=report.blob_count,
        missing_image_count=report.missing_image_count,
    )


@router.post("/import", response_model=ImportResponse)
async def import_shared_deck(
    request: ImportRequest,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> ImportResponse:
    """
    Save a shared deck locally under fresh deck and card ids.

    Returns 400 if the payload cannot be decoded. Other failures keep the
    kind and status of the error that stopped the import.
    """
    receipt = ShareReceipt(decode(request.transport), coordinator, coordinator.notifier)
    deck_id = await receipt.import_deck(activate=request.activate)
    if deck_id is None:
        raise receipt.failure or coordinator_failure(coordinator)
    return ImportResponse(
        deck_id=deck_id,
        name=receipt.deck.meta.name,
        card_count=len(receipt.deck.cards),
        blob_count=receipt.migration.blob_count,
    )
