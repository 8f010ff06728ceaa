"""
Caching key provider.

Serves the signing credential and the validation key set for one certificate
name, each from its own cache slot with an absolute expiration. A miss runs
the full list, select and resolve pipeline against the vault.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from shared.errors import KeyStoreException
from shared.logging import get_logger
from shared.metrics import KeyStoreMetrics

from .cache.memory_cache import MemoryCache
from .keys.resolver import DEFAULT_SIGNING_ALGORITHM, KeyMaterialResolver
from .models import CertificateVersion, SigningCredential, ValidationKeySet
from .selection import CertificateVersionSelector
from .vault.source import VaultCertificateSource

DEFAULT_CACHE_TTL = timedelta(hours=24)
DEFAULT_ROLLOVER_WINDOW = timedelta(hours=24)

SIGNING_SLOT = "signing"
VALIDATION_SLOT = "validation"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CachingKeyProvider:
    """Signing credentials and validation keys backed by a certificate source."""

    def __init__(
        self,
        source: VaultCertificateSource,
        certificate_name: str,
        *,
        rollover_window: timedelta = DEFAULT_ROLLOVER_WINDOW,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        algorithm: str = DEFAULT_SIGNING_ALGORITHM,
        cache: Optional[MemoryCache] = None,
        resolver: Optional[KeyMaterialResolver] = None,
        metrics: Optional[KeyStoreMetrics] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not certificate_name:
            raise ValueError("certificate_name is required")
        if cache_ttl <= timedelta(0):
            raise ValueError("cache_ttl must be positive")

        self.source = source
        self.certificate_name = certificate_name
        self.cache_ttl = cache_ttl
        self.selector = CertificateVersionSelector(rollover_window)
        self.resolver = resolver or KeyMaterialResolver(source, algorithm, metrics=metrics)
        self.cache = cache if cache is not None else MemoryCache()
        self.metrics = metrics
        self.logger = get_logger("keystore.provider")
        self._clock = clock

    @property
    def rollover_window(self) -> timedelta:
        return self.selector.rollover_window

    def _cache_key(self, slot: str) -> str:
        return f"{slot}:{self.certificate_name}"

    def _lookup(self, slot: str):
        entry = self.cache.get(self._cache_key(slot), self._clock())
        if self.metrics:
            self.metrics.record_cache_lookup(slot, hit=entry is not None)
        if entry is not None:
            self.logger.debug("Key cache hit", slot=slot, certificate=self.certificate_name)
        return entry

    def _store(self, slot: str, value) -> None:
        # Absolute expiration counted from population, never extended by reads
        self.cache.set(self._cache_key(slot), value, self._clock() + self.cache_ttl)

    async def _list_versions(self) -> List[CertificateVersion]:
        try:
            versions = await self.source.list_versions(self.certificate_name)
        except KeyStoreException:
            if self.metrics:
                self.metrics.record_vault_fetch("list_versions", "error")
            raise
        if self.metrics:
            self.metrics.record_vault_fetch("list_versions", "ok")
        return versions

    async def get_signing_credential(self) -> Optional[SigningCredential]:
        """Return the active signing credential, or None when nothing is enabled.

        A None result is not cached so the next call asks the vault again.
        """
        entry = self._lookup(SIGNING_SLOT)
        if entry is not None:
            return entry.value

        versions = await self._list_versions()
        now = self._clock()
        version = self.selector.select_signing_version(versions, now)
        if version is None:
            self.logger.warning(
                "No enabled certificate version available for signing",
                certificate=self.certificate_name,
                versions_seen=len(versions)
            )
            return None

        if not self.selector.is_past_rollover(version, now):
            self.logger.warning(
                "Signing with a certificate version younger than the rollover window",
                certificate=self.certificate_name,
                version=version.version,
                created_on=version.created_on.isoformat() if version.created_on else None,
                rollover_hours=self.rollover_window.total_seconds() / 3600
            )

        key = await self.resolver.resolve_signing(version)
        credential = SigningCredential(certificate_name=self.certificate_name, key=key)
        self._store(SIGNING_SLOT, credential)

        self.logger.info(
            "Signing credential refreshed",
            certificate=self.certificate_name,
            version=version.version,
            kid=credential.key_id,
            algorithm=credential.algorithm
        )
        return credential

    async def get_validation_keys(self) -> ValidationKeySet:
        """Return key material for every enabled version, most recent first.

        Empty results are cached like any other.
        """
        entry = self._lookup(VALIDATION_SLOT)
        if entry is not None:
            return entry.value

        versions = await self._list_versions()
        keys = []
        for version in self.selector.select_validation_versions(versions):
            keys.append(await self.resolver.resolve_validation(version))

        key_set = ValidationKeySet(keys=tuple(keys))
        self._store(VALIDATION_SLOT, key_set)

        self.logger.info(
            "Validation keys refreshed",
            certificate=self.certificate_name,
            count=len(key_set),
            kids=[key.key_id for key in key_set]
        )
        return key_set

    def invalidate(self) -> None:
        """Drop both cache slots so the next calls go to the vault."""
        self.cache.remove(self._cache_key(SIGNING_SLOT))
        self.cache.remove(self._cache_key(VALIDATION_SLOT))
        self.logger.info("Key cache invalidated", certificate=self.certificate_name)
