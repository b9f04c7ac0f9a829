from statdeck.api.decks import router as decks_router
from statdeck.api.health import router as health_router
from statdeck.api.library import router as library_router
from statdeck.api.share import router as share_router

__all__ = [
    "decks_router",
    "health_router",
    "library_router",
    "share_router",
]
