from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_GATEWAY_API_KEY = "of-gateway-dev-key"
DEFAULT_ADMIN_EMAILS = [
    "admin@orderflow.local",
    "sales@orderflow.local",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="OF_", extra="ignore")

    app_name: str = "OrderFlow"
    env: str = "dev"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./orderflow.db"

    # Identity is verified upstream; the gateway forwards the user's email.
    auth_enabled: bool = True
    gateway_api_key: str = DEFAULT_GATEWAY_API_KEY
    dev_identity_email: str | None = None
    admin_emails: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ADMIN_EMAILS),
        description="Static admin allow-list, matched case-insensitively",
    )

    notifications_enabled: bool = False
    notification_base_url: str = "http://localhost:54321"
    notification_path: str = "/functions/v1/send-order-sms"
    notification_api_key: str | None = None
    notification_timeout_seconds: int = 10

    currency_label: str = "Kč"

    @field_validator("admin_emails")
    @classmethod
    def _normalize_admin_emails(cls, value: list[str]) -> list[str]:
        return sorted({email.strip().lower() for email in value if email and email.strip()})

    def model_post_init(self, __context) -> None:
        if self.env.lower() == "dev":
            return

        if self.auth_enabled and self.gateway_api_key == DEFAULT_GATEWAY_API_KEY:
            raise ValueError(
                "insecure default secrets are not allowed outside dev mode; set env vars: OF_GATEWAY_API_KEY"
            )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
