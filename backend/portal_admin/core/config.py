"""
Application settings loaded from environment variables.

Uses pydantic-settings so that every config value is validated at startup.
All secrets stay in .env on the server — never in frontend code.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    Firebase credentials are resolved in this order:
        FIREBASE_CREDENTIALS_JSON → FIREBASE_CREDENTIALS_PATH → ADC
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── Application ─────────────────────────────────────────
    APP_NAME: str = "Portal Admin API"
    DEBUG: bool = False
    ENVIRONMENT: str = "dev"

    # ── Firebase (Firestore + Auth) ─────────────────────────
    FIREBASE_PROJECT_ID: str = ""
    FIREBASE_CREDENTIALS_PATH: str = ""
    FIREBASE_CREDENTIALS_JSON: str = ""

    # ── Cloudinary (blob storage) ───────────────────────────
    # API secret stays server-side — never exposed to clients.
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # ── Screens ─────────────────────────────────────────────
    LIVE_SYNC_ENABLED: bool = True
    DEFAULT_PAGE_SIZE: int = 25
    MAX_PAGE_SIZE: int = 100

    # ── Report approvals ────────────────────────────────────
    AUTO_APPROVE_WORKING_DAYS: int = 5


# Singleton — imported everywhere as `from portal_admin.core.config import settings`
settings = Settings()
