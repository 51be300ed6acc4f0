import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Settings:
    """Centralised application configuration sourced from environment variables."""

    def __init__(self) -> None:
        load_dotenv()
        self.storage_backend = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        if self.storage_backend not in ("sqlite", "memory"):
            raise RuntimeError("STORAGE_BACKEND must be either 'sqlite' or 'memory'")
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/codeshare.db")).resolve()
        self.session_ttl_hours = self._get_int("SESSION_TTL_HOURS", default=24)
        self.reset_token_ttl_hours = self._get_int("RESET_TOKEN_TTL_HOURS", default=24)
        self.rate_limit_max_attempts = self._get_int("RATE_LIMIT_MAX_ATTEMPTS", default=5)
        self.rate_limit_window_minutes = self._get_int("RATE_LIMIT_WINDOW_MINUTES", default=15)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.event_log_max_entries = self._get_int("EVENT_LOG_MAX_ENTRIES", default=100)
        self.seed_sample_data = self._get_bool("SEED_SAMPLE_DATA", default=True)
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.admin_token = os.getenv("ADMIN_TOKEN") or None
        self.frontend_base_url = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")
        self.smtp_host = os.getenv("SMTP_HOST")
        self.smtp_port = self._get_int("SMTP_PORT", default=587)
        self.smtp_username = os.getenv("SMTP_USERNAME")
        self.smtp_password = os.getenv("SMTP_PASSWORD")
        self.smtp_from_email = os.getenv("SMTP_FROM_EMAIL")
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")
