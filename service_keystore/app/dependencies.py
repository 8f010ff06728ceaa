"""
FastAPI wiring for the key store.

``add_signing_credential_from_key_vault`` registers a provider on the
application; route handlers of the token-issuing host then declare
``Depends(require_signing_credential)`` or ``Depends(get_validation_key_set)``.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from azure.core.credentials_async import AsyncTokenCredential
from fastapi import Depends, FastAPI, Request

from shared.errors import ConfigurationError, SigningKeyUnavailableError
from shared.metrics import KeyStoreMetrics

from .cache.memory_cache import MemoryCache
from .keys.resolver import DEFAULT_SIGNING_ALGORITHM
from .models import SigningCredential, ValidationKeySet
from .provider import DEFAULT_CACHE_TTL, CachingKeyProvider
from .vault.azure import AzureKeyVaultCertificateSource
from .vault.source import VaultCertificateSource


def register_key_provider(
    app: FastAPI,
    source: VaultCertificateSource,
    certificate_name: str,
    signing_key_rollover_hours: int,
    *,
    cache: Optional[MemoryCache] = None,
    cache_ttl: timedelta = DEFAULT_CACHE_TTL,
    algorithm: str = DEFAULT_SIGNING_ALGORITHM,
    metrics: Optional[KeyStoreMetrics] = None,
) -> CachingKeyProvider:
    """Attach a caching key provider over ``source`` to ``app.state``."""
    provider = CachingKeyProvider(
        source,
        certificate_name,
        rollover_window=timedelta(hours=signing_key_rollover_hours),
        cache_ttl=cache_ttl,
        algorithm=algorithm,
        cache=cache,
        metrics=metrics,
    )
    app.state.certificate_source = source
    app.state.key_provider = provider
    return provider


def add_signing_credential_from_key_vault(
    app: FastAPI,
    vault_url: str,
    certificate_name: str,
    signing_key_rollover_hours: int,
    credential: AsyncTokenCredential,
    **kwargs,
) -> CachingKeyProvider:
    """Serve signing and validation keys from an Azure Key Vault certificate.

    Args:
        app: Application to register the provider on.
        vault_url: The vault URI, e.g. ``https://myvault.vault.azure.net``.
        certificate_name: Name of the signing certificate in the vault.
        signing_key_rollover_hours: Key rollover grace period in hours.
        credential: Azure credential used for both vault clients.
    """
    if not vault_url:
        raise ConfigurationError("A vault URL is required")
    source = AzureKeyVaultCertificateSource(vault_url, credential)
    return register_key_provider(app, source, certificate_name, signing_key_rollover_hours, **kwargs)


def get_key_provider(request: Request) -> CachingKeyProvider:
    provider = getattr(request.app.state, "key_provider", None)
    if provider is None:
        raise ConfigurationError("Key store is not configured")
    return provider


async def require_signing_credential(
    provider: CachingKeyProvider = Depends(get_key_provider),
) -> SigningCredential:
    """Resolve the active signing credential or fail the request with 503."""
    credential = await provider.get_signing_credential()
    if credential is None:
        raise SigningKeyUnavailableError(details={"certificate": provider.certificate_name})
    return credential


async def get_validation_key_set(
    provider: CachingKeyProvider = Depends(get_key_provider),
) -> ValidationKeySet:
    return await provider.get_validation_keys()
