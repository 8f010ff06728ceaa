"""
Certificate source interface and an in-memory implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from shared.errors import KeyMaterialUnavailable

from ..models import CertificateVersion


class VaultCertificateSource(ABC):
    """Lists certificate versions and fetches their key material."""

    @abstractmethod
    async def list_versions(self, certificate_name: str) -> List[CertificateVersion]:
        """Return every stored version of ``certificate_name`` in any order."""

    @abstractmethod
    async def fetch_key_material(self, version: CertificateVersion) -> bytes:
        """Return PKCS#12 (DER) or PEM bytes for ``version``."""

    async def list_enabled_versions(self, certificate_name: str) -> List[CertificateVersion]:
        versions = await self.list_versions(certificate_name)
        return [version for version in versions if version.enabled]

    async def close(self) -> None:
        """Release any held clients."""


class InMemoryCertificateSource(VaultCertificateSource):
    """Dictionary-backed source for local development and tests."""

    def __init__(self):
        self._versions: Dict[str, List[CertificateVersion]] = {}
        self._material: Dict[Tuple[str, str], bytes] = {}
        self.list_calls = 0
        self.fetch_calls = 0

    def add_version(self, version: CertificateVersion, material: Optional[bytes] = None) -> None:
        self._versions.setdefault(version.name, []).append(version)
        if material is not None:
            self._material[(version.name, version.version)] = material

    def remove_certificate(self, certificate_name: str) -> None:
        for version in self._versions.pop(certificate_name, []):
            self._material.pop((version.name, version.version), None)

    async def list_versions(self, certificate_name: str) -> List[CertificateVersion]:
        self.list_calls += 1
        return list(self._versions.get(certificate_name, []))

    async def fetch_key_material(self, version: CertificateVersion) -> bytes:
        self.fetch_calls += 1
        try:
            return self._material[(version.name, version.version)]
        except KeyError:
            raise KeyMaterialUnavailable(
                "No key material stored for certificate version",
                details={"certificate": version.identifier}
            ) from None
