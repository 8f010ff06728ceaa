"""
Shared configuration management for the Key Vault key store.
"""

from datetime import timedelta
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class KeyStoreSettings(BaseSettings):
    """Key store settings, read from ``KEYSTORE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="KEYSTORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"
    host: str = "0.0.0.0"
    port: int = 8020

    # Vault
    vault_url: Optional[str] = None
    certificate_name: str = "token-signing"
    signing_algorithm: str = "RS512"

    # Rollover and caching
    signing_key_rollover_hours: int = Field(default=24, ge=0)
    cache_ttl_seconds: int = Field(default=86400, gt=0)

    # Vault authentication
    auth_mode: Literal["default", "client_secret"] = "default"
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def rollover_window(self) -> timedelta:
        return timedelta(hours=self.signing_key_rollover_hours)

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(seconds=self.cache_ttl_seconds)


def get_settings(**overrides) -> KeyStoreSettings:
    """Get key store settings, applying explicit overrides over the environment."""
    return KeyStoreSettings(**overrides)
