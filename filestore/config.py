"""Application configuration using Pydantic settings."""

from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from filestore.core.exceptions import ConfigurationError

# Well-known first-party public client usable for the username/password flow
DEFAULT_CLIENT_ID = "d3590ed6-52b3-4102-aeff-aad2292ab01c"
DEFAULT_AUTHORITY = "https://login.microsoftonline.com/organizations"
DEFAULT_ACCEPT_LANGUAGE = "de-DE,de;q=0.9"


class BackendType(str, Enum):
    """Supported storage backends."""

    SHAREPOINT = "sharepoint"


class SharePointConfig(BaseModel):
    """Connection parameters for one SharePoint site.

    Every field takes part in the session fingerprint, so two configs that
    differ in any field get separate sessions.
    """

    model_config = ConfigDict(frozen=True)

    site_url: str
    username: str
    password: str = Field(repr=False)
    client_id: str = DEFAULT_CLIENT_ID
    authority: str = DEFAULT_AUTHORITY
    timeout_seconds: float = 60.0
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    @field_validator("site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize site URL so endpoint paths can be appended directly."""
        return v.rstrip("/")

    @property
    def backend(self) -> BackendType:
        return BackendType.SHAREPOINT


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "staging", "production"] = "development"

    # SharePoint
    sharepoint_site_url: str = ""
    sharepoint_username: str = ""
    sharepoint_password: str = ""
    sharepoint_client_id: str = DEFAULT_CLIENT_ID
    sharepoint_authority: str = DEFAULT_AUTHORITY
    sharepoint_timeout_seconds: float = 60.0
    sharepoint_accept_language: str = DEFAULT_ACCEPT_LANGUAGE

    # Logging
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        return v.upper() if isinstance(v, str) else "INFO"

    @field_validator("sharepoint_site_url", mode="before")
    @classmethod
    def normalize_site_url(cls, v: str) -> str:
        """Strip whitespace and trailing slash from the site URL."""
        return v.strip().rstrip("/") if isinstance(v, str) else v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_sharepoint_configured(self) -> bool:
        """Check if SharePoint connection settings are present."""
        return bool(
            self.sharepoint_site_url
            and self.sharepoint_username
            and self.sharepoint_password
        )

    def sharepoint_config(self) -> SharePointConfig:
        """Build the SharePoint connection config from settings.

        Raises:
            ConfigurationError: If site URL, username or password is missing
        """
        missing = [
            name
            for name, value in (
                ("SHAREPOINT_SITE_URL", self.sharepoint_site_url),
                ("SHAREPOINT_USERNAME", self.sharepoint_username),
                ("SHAREPOINT_PASSWORD", self.sharepoint_password),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "SharePoint is not configured, missing: " + ", ".join(missing)
            )

        return SharePointConfig(
            site_url=self.sharepoint_site_url,
            username=self.sharepoint_username,
            password=self.sharepoint_password,
            client_id=self.sharepoint_client_id,
            authority=self.sharepoint_authority,
            timeout_seconds=self.sharepoint_timeout_seconds,
            accept_language=self.sharepoint_accept_language,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
