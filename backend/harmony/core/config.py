"""
Application configuration using Pydantic Settings.

The realtime store backend is selected by REALTIME_BACKEND; when the
Firebase database is not configured every store operation falls back to
the local SQLite store.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "production"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Realtime Database
    # ===========================================
    # Realtime backend: "firebase" | "memory"
    # - firebase: Firebase Realtime Database through the Firebase Admin SDK
    # - memory: in-process tree (development and tests)
    REALTIME_BACKEND: Literal["firebase", "memory"] = "firebase"

    # e.g. https://harmony-default-rtdb.firebaseio.com
    FIREBASE_DATABASE_URL: str = ""

    # Service account JSON; empty uses Application Default Credentials
    FIREBASE_CREDENTIALS_PATH: str = ""
    FIREBASE_TIMEOUT_SECONDS: float = 10.0

    # ===========================================
    # Local Fallback Store
    # ===========================================
    LOCAL_STORE_URL: str = "sqlite+aiosqlite:///./harmony_local.db"

    # ===========================================
    # AI Backend
    # ===========================================
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-1.5-flash"
    GEMINI_MAX_OUTPUT_TOKENS: int = 600
    GEMINI_TEMPERATURE: float = 0.7

    # Server-side chat continuity, keyed by "{user_id}-{session_id}"
    CHAT_SESSION_CACHE_TTL_SECONDS: int = 60 * 60
    CHAT_SESSION_CACHE_MAX_ENTRIES: int = 1000

    # ===========================================
    # Chat Orchestrator
    # ===========================================
    SEND_SAFETY_TIMEOUT_SECONDS: float = 15.0
    THINKING_FADE_SECONDS: float = 0.3
    HISTORY_REFRESH_DEBOUNCE_SECONDS: float = 0.5
    EDIT_SETTLE_SECONDS: float = 0.1

    # ===========================================
    # Auth
    # ===========================================
    AUTH_PROVIDER: Literal["mock", "clerk"] = "mock"
    CLERK_ISSUER: str = ""
    CLERK_JWKS_URL: str = ""
    CLERK_AUDIENCE: str = ""

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"]
    )

    @property
    def is_firebase_configured(self) -> bool:
        """Check if the Firebase realtime database can be used."""
        return self.REALTIME_BACKEND == "firebase" and bool(self.FIREBASE_DATABASE_URL)

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
