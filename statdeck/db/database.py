"""
Application-wide storage instance.

Provides the StorageEngine used by the HTTP bridge and jobs. Construction is
lazy, so importing this module never opens the database.
"""

from statdeck.config import settings
from statdeck.db.engine import StorageEngine

storage = StorageEngine(settings.database_url, echo=settings.debug)


def get_storage() -> StorageEngine:
    """
    Dependency that provides the storage engine.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(storage: StorageEngine = Depends(get_storage)):
            ...
    """
    return storage


async def init_db() -> None:
    """
    Open the database and apply schema upgrades.

    Should be called once at application startup.
    """
    await storage.ping()


async def close_db() -> None:
    await storage.close()
