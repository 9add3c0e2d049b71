"""Application configuration management."""

import json
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_ORIGIN_MARKERS = [
    # HubSpot app surfaces
    "hubspot.com",
    "hubspotusercontent",
    "hs-sites.com",
    "hubspotpreview",
    # Our own backend (viewer pages upload back to it)
    "azurewebsites.net",
    "nutrient-hubspot-backend",
    # Local development
    "localhost",
    "127.0.0.1",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "HubSpot Viewer Bridge"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"

    # Network settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # HubSpot private app credentials
    HUBSPOT_PRIVATE_APP_TOKEN: str = ""
    HUBSPOT_API_BASE_URL: str = "https://api.hubapi.com"
    HUBSPOT_TIMEOUT_SECONDS: float = 30.0

    # Public URL of this service, embedded in CRM card action links
    PUBLIC_BASE_URL: str = "https://nutrient-hubspot-backend.azurewebsites.net"

    # Hosted viewer SDK
    NUTRIENT_CDN_BASE_URL: str = "https://cdn.cloud.pspdfkit.com/pspdfkit-web@1.10.0/"

    # CORS: an Origin is accepted when it contains any of these markers
    CORS_ALLOWED_ORIGIN_MARKERS: Annotated[list[str], NoDecode] = DEFAULT_ORIGIN_MARKERS

    # Uploads
    UPLOAD_FOLDER_PATH: str = "/nutrient-edited-files"
    MAX_UPLOAD_MB: int = 50

    # CRM card
    CRM_CARD_MAX_FILES: int = 10
    CRM_CARD_IFRAME_WIDTH: int = 1200
    CRM_CARD_IFRAME_HEIGHT: int = 800

    # Viewer tokens
    TOKEN_SWEEP_INTERVAL_SECONDS: int = 300
    TOKEN_MINT_RATE_LIMIT: str = "60/minute"

    # Logging
    LOG_LEVEL: str = "INFO"

    @field_validator("CORS_ALLOWED_ORIGIN_MARKERS", mode="before")
    @classmethod
    def parse_origin_markers(cls, v: Any) -> Any:
        """Parse origin markers from a JSON list or comma-separated string."""
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                return json.loads(v)
            return [m.strip() for m in v.split(",") if m.strip()]
        return v

    @field_validator("PUBLIC_BASE_URL", "HUBSPOT_API_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def hubspot_configured(self) -> bool:
        """True when a HubSpot private app token is present."""
        return bool(self.HUBSPOT_PRIVATE_APP_TOKEN)

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_MB * 1024 * 1024


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get current settings instance."""
    return settings
