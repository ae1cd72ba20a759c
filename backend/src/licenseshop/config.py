"""
Application configuration loaded from environment variables.

All configuration is validated at startup to fail fast on misconfiguration.
SMTP options are collapsed into a single typed SMTPConfig so the delivery
pipeline never reads the environment directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from licenseshop.domain.errors import ConfigurationError


@dataclass(frozen=True)
class SMTPConfig:
    """Recognized mail transport options."""
    host: str
    port: int
    secure: bool
    auth_user: str | None
    auth_pass: str | None
    from_address: str


class Settings(BaseSettings):
    """
    Application settings with validation.

    All settings are loaded from environment variables with the same name.
    Use .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # SMTP
    smtp_host: str | None = Field(
        default=None,
        description="SMTP server host. Leave unset to run in no-op delivery mode"
    )
    smtp_port: int = Field(
        default=587,
        ge=1,
        le=65535,
        description="SMTP server port"
    )
    smtp_secure: bool | None = Field(
        default=None,
        description="Use implicit TLS. Defaults to True on port 465"
    )
    smtp_user: str | None = Field(default=None, description="SMTP login user")
    smtp_pass: str | None = Field(default=None, description="SMTP login password")
    email_from: str | None = Field(
        default=None,
        description="Sender address. Falls back to smtp_user"
    )

    # DNS
    dns_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Lifetime of a single MX lookup"
    )
    dns_nameservers: list[str] = Field(
        default_factory=list,
        description="Nameserver IPs for MX lookups (JSON list). System resolver if empty"
    )

    # Assets
    asset_path: Path = Field(
        default=Path("./attached_assets"),
        description="Local directory holding static assets such as the logo"
    )
    logo_filename: str = Field(
        default="nk2it-logo.png",
        description="Logo file name, relative to asset_path"
    )

    # Server
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed error messages"
    )

    @property
    def smtp_configured(self) -> bool:
        """True when a mail transport should be created."""
        return bool(self.smtp_host)

    def smtp_config(self) -> SMTPConfig | None:
        """
        Build the typed SMTP configuration.

        Returns:
            SMTPConfig, or None when no host is configured (no-op mode).

        Raises:
            ConfigurationError: If a host is set but the rest is inconsistent.
        """
        if not self.smtp_host:
            return None

        from_address = self.email_from or self.smtp_user
        if not from_address:
            raise ConfigurationError(
                "SMTP_HOST is set but neither EMAIL_FROM nor SMTP_USER is configured"
            )
        if self.smtp_user and not self.smtp_pass:
            raise ConfigurationError("SMTP_USER is set without SMTP_PASS")

        secure = self.smtp_secure
        if secure is None:
            secure = self.smtp_port == 465

        return SMTPConfig(
            host=self.smtp_host,
            port=self.smtp_port,
            secure=secure,
            auth_user=self.smtp_user,
            auth_pass=self.smtp_pass,
            from_address=from_address,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once at startup and cached for subsequent calls.
    This ensures consistent configuration across the application lifecycle.
    """
    return Settings()
