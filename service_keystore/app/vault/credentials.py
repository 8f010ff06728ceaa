"""
Vault credential construction.
"""

from azure.core.credentials_async import AsyncTokenCredential
from azure.identity.aio import ClientSecretCredential, DefaultAzureCredential

from shared.config import KeyStoreSettings
from shared.errors import ConfigurationError


def build_credential(settings: KeyStoreSettings) -> AsyncTokenCredential:
    """Build the Azure credential selected by ``settings.auth_mode``.

    ``default`` covers managed/service identity and developer logins;
    ``client_secret`` acquires tokens for an app registration.
    """
    if settings.auth_mode == "client_secret":
        missing = [
            name for name in ("tenant_id", "client_id", "client_secret")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(
                "Client secret authentication requires tenant, client id and secret",
                details={"missing": missing}
            )
        return ClientSecretCredential(
            tenant_id=settings.tenant_id,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
        )

    return DefaultAzureCredential()
