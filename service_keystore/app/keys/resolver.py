"""
Turns certificate versions into usable key material.

The resolver holds no state between calls; every resolve performs one fetch
from the certificate source. Caching belongs to the key provider.
"""

from __future__ import annotations

import re
from typing import Any, List, Optional, Tuple

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs12

from shared.errors import KeyMaterialUnavailable, KeyStoreException
from shared.logging import get_logger
from shared.metrics import KeyStoreMetrics

from ..models import CertificateVersion, KeyMaterial
from ..vault.source import VaultCertificateSource

DEFAULT_SIGNING_ALGORITHM = "RS512"

SUPPORTED_ALGORITHMS = {
    "RS256", "RS384", "RS512",
    "PS256", "PS384", "PS512",
    "ES256", "ES384", "ES512",
}

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----.+?-----END \1-----",
    re.DOTALL,
)


def _load_pem_bundle(data: bytes) -> Tuple[Optional[Any], List[x509.Certificate]]:
    private_key = None
    certificates: List[x509.Certificate] = []
    for match in _PEM_BLOCK.finditer(data):
        label = match.group(1)
        block = match.group(0)
        if label == b"CERTIFICATE":
            certificates.append(x509.load_pem_x509_certificate(block))
        elif label.endswith(b"PRIVATE KEY") and private_key is None:
            private_key = serialization.load_pem_private_key(block, password=None)
    return private_key, certificates


def _load_pkcs12_bundle(data: bytes) -> Tuple[Optional[Any], List[x509.Certificate]]:
    last_error: Optional[Exception] = None
    # Key Vault exports PFX files either unprotected or with an empty password
    for password in (None, b""):
        try:
            private_key, certificate, additional = pkcs12.load_key_and_certificates(data, password)
        except ValueError as e:
            last_error = e
            continue
        certificates = ([certificate] if certificate is not None else []) + list(additional)
        return private_key, certificates
    raise ValueError(f"Unreadable PKCS#12 bundle: {last_error}")


def load_key_bundle(data: bytes) -> Tuple[Optional[Any], Optional[x509.Certificate]]:
    """Parse PEM or PKCS#12 bytes into a private key and leaf certificate."""
    if data.lstrip().startswith(b"-----BEGIN"):
        private_key, certificates = _load_pem_bundle(data)
    else:
        private_key, certificates = _load_pkcs12_bundle(data)

    leaf = certificates[0] if certificates else None
    if private_key is not None and certificates:
        # Prefer the certificate that belongs to the private key
        expected = private_key.public_key().public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        for certificate in certificates:
            candidate = certificate.public_key().public_bytes(
                serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
            )
            if candidate == expected:
                leaf = certificate
                break
    return private_key, leaf


_EC_CURVES = {
    "ES256": "secp256r1",
    "ES384": "secp384r1",
    "ES512": "secp521r1",
}


def _matches_algorithm(public_key: Any, algorithm: str) -> bool:
    if algorithm.startswith(("RS", "PS")):
        return isinstance(public_key, rsa.RSAPublicKey)
    if algorithm in _EC_CURVES:
        return (
            isinstance(public_key, ec.EllipticCurvePublicKey)
            and public_key.curve.name == _EC_CURVES[algorithm]
        )
    return False


class KeyMaterialResolver:
    """Fetches and materializes key objects for certificate versions."""

    def __init__(
        self,
        source: VaultCertificateSource,
        algorithm: str = DEFAULT_SIGNING_ALGORITHM,
        metrics: Optional[KeyStoreMetrics] = None,
    ):
        if algorithm not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {algorithm}")
        self.source = source
        self.algorithm = algorithm
        self.metrics = metrics
        self.logger = get_logger("keystore.resolver")

    async def resolve_signing(self, version: CertificateVersion) -> KeyMaterial:
        """Resolve key material that can sign; requires the private key."""
        material = await self._resolve(version)
        if not material.has_private_key:
            self.logger.error("Certificate version has no private key", certificate=version.identifier)
            raise KeyMaterialUnavailable(
                "Certificate version has no exportable private key",
                details={"certificate": version.identifier}
            )
        return material

    async def resolve_validation(self, version: CertificateVersion) -> KeyMaterial:
        """Resolve key material for signature validation; a public key suffices."""
        return await self._resolve(version)

    async def _fetch(self, version: CertificateVersion) -> bytes:
        try:
            data = await self.source.fetch_key_material(version)
        except KeyStoreException:
            if self.metrics:
                self.metrics.record_vault_fetch("fetch_key_material", "error")
            raise
        if self.metrics:
            self.metrics.record_vault_fetch("fetch_key_material", "ok")
        return data

    async def _resolve(self, version: CertificateVersion) -> KeyMaterial:
        data = await self._fetch(version)
        details = {"certificate": version.identifier}

        try:
            private_key, certificate = load_key_bundle(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            self.logger.error("Failed to parse key material", certificate=version.identifier, error=str(e))
            raise KeyMaterialUnavailable("Key material could not be parsed", details=details) from e

        if certificate is not None:
            public_key = certificate.public_key()
        elif private_key is not None:
            public_key = private_key.public_key()
        else:
            raise KeyMaterialUnavailable("Key material contains no key", details=details)

        if not _matches_algorithm(public_key, self.algorithm):
            raise KeyMaterialUnavailable(
                f"Key type does not support {self.algorithm}",
                details={**details, "key_type": type(public_key).__name__}
            )

        return KeyMaterial(
            version=version,
            algorithm=self.algorithm,
            key_id=self._key_id(version, certificate),
            public_key=public_key,
            private_key=private_key,
            certificate=certificate,
        )

    @staticmethod
    def _key_id(version: CertificateVersion, certificate: Optional[x509.Certificate]) -> str:
        if certificate is not None:
            return certificate.fingerprint(hashes.SHA1()).hex().upper()
        if version.x509_thumbprint:
            return version.x509_thumbprint.hex().upper()
        return version.version
