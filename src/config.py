from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./data.sqlite"

    # Admin session
    jwt_secret: str = "change-me-in-prod"
    admin_password_hash: Optional[str] = None  # bcrypt hash, see tools/make_admin_hash.py
    cookie_name: str = "cvl_admin"
    token_ttl_hours: int = 8

    cors_origin: Optional[str] = None
    max_body_bytes: int = 20 * 1024
    # Set when running behind a reverse proxy so X-Forwarded-For is honored
    trust_proxy: bool = False

    idea_cooldown_sec: int = 60

    public_rate_limit: int = 60
    public_rate_window_sec: int = 60
    login_rate_limit: int = 20
    login_rate_window_sec: int = 10 * 60

    # Web Push (VAPID)
    vapid_public_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_subject: Optional[str] = "mailto:admin@example.com"
    push_ttl_sec: int = 60 * 60

    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    def is_push_configured(self) -> bool:
        """Check if all VAPID credentials are present."""
        return bool(
            self.vapid_public_key and self.vapid_private_key and self.vapid_subject
        )

    def cors_origins(self) -> list[str]:
        if not self.cors_origin:
            return []
        return [o.strip() for o in self.cors_origin.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore
