from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase settings
    SUPABASE_URL: str
    SUPABASE_JWKS_URL: str | None = None
    SUPABASE_DB_URL: str

    # Public site (used to build press kit and dashboard links)
    SITE_URL: str = "http://localhost:3000"

    # Notification email (Resend)
    RESEND_API_KEY: str | None = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    NOTIFICATION_FROM_ADDRESS: str = "QuickEPK <onboarding@resend.dev>"
    NOTIFICATION_QUEUE_SIZE: int = 1000
    EMAIL_TIMEOUT: float = 10.0

    # Viewer geolocation (best effort)
    GEOLOCATION_API_URL: str = "http://ip-api.com/json"
    GEOLOCATION_TIMEOUT: float = 3.0

    # Viewer IP pseudonymization
    IP_HASH_MODE: Literal["fold", "hmac"] = "fold"
    HASHING_SECRET: str | None = None

    # Client IP extraction behind a load balancer
    TRUST_X_FORWARDED_FOR: bool = False
    TRUSTED_PROXY_IPS: list[str] = []

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # derive sensible defaults if not provided
    def jwks_url(self) -> str:
        if self.SUPABASE_JWKS_URL:
            return self.SUPABASE_JWKS_URL
        base = self.SUPABASE_URL.rstrip("/")
        return f"{base}/auth/v1/.well-known/jwks.json"

    def presskit_url(self, slug: str) -> str:
        """Public URL of a published press kit."""
        return f"{self.SITE_URL.rstrip('/')}/{slug}"

    def dashboard_url(self) -> str:
        return f"{self.SITE_URL.rstrip('/')}/dashboard"

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # Tracking traffic is light locally
            config.update({"min_size": 1, "max_size": 5, "timeout": 15.0})

        return config


settings = Settings()
