from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="STATDECK_")

    app_name: str = "statdeck"
    debug: bool = False

    # Local database file; nothing is ever stored off the user's machine
    database_url: str = "sqlite+aiosqlite:///statdeck.db"

    # Origin prepended to share URLs
    share_origin: str = "http://localhost:5173"

    # Share URL size classification (bytes)
    share_warning_bytes: int = 25_000
    share_error_bytes: int = 30_000

    # Known URL length limits per browser target (bytes)
    share_browser_limits: dict[str, int] = {
        "Chrome/Edge": 32_768,
        "Firefox": 65_536,
        "Safari": 80_000,
        "Opera": 32_768,
        "Mobile Safari": 64_000,
        "Mobile Chrome": 32_768,
    }


settings = Settings()


# =============================================================================
# DECK LIMITS
# =============================================================================

# Hard cap on cards per deck, enforced on every write and every decode
MAX_CARDS_PER_DECK = 60

MAX_DECK_NAME_LENGTH = 100
MAX_CARD_NAME_LENGTH = 100
MAX_CARD_ROLE_LENGTH = 100
MAX_CARD_DESC_LENGTH = 2000

# Per-card collection limits keep printed layouts from overflowing
MAX_TRAITS = 10
MAX_SECRETS = 10
MAX_TEXT_ITEM_LENGTH = 300
MAX_STATS = 8
MAX_MECHANICS = 12
MAX_MECHANIC_NAME_LENGTH = 50
