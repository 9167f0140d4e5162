"""Inspection-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
}


class InspectionSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="INSPECTION_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/inspections.db"

    # API
    api_title: str = "Inspection-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Auth
    token_ttl: int = 28800  # 8 hours

    # Media storage
    media_root: str = "./data/media"
    max_media_bytes: int = 50 * 1024 * 1024
    max_document_bytes: int = 5 * 1024 * 1024
    max_signature_chars: int = 700000

    # Notifications: recipients are users whose email ends with this domain.
    # Empty disables finalization emails.
    notify_email_domain: str = ""
    email_provider: str = ""  # "sendgrid" or "resend"
    email_api_key: str = ""
    email_from: str = "notificacoes@example.com"
    email_from_name: str = "Inspeções"
    app_url: str = "http://localhost:5173"

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 200

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"INSPECTION_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secret key — set INSPECTION_SECRET_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> InspectionSettings:
    settings = InspectionSettings()
    settings.validate_for_production()
    return settings
