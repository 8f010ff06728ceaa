"""
Data model for certificate versions and the key material derived from them.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from jose import jwk

from shared.errors import KeyMaterialUnavailable


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _jwk_key_algorithm(algorithm: str) -> str:
    # PSS and PKCS#1 v1.5 share the RSA key format; python-jose only knows RS*
    if algorithm.startswith("PS"):
        return "RS" + algorithm[2:]
    return algorithm


@dataclass(frozen=True)
class CertificateVersion:
    """Snapshot of one stored version of a named certificate."""

    name: str
    version: str
    enabled: bool
    created_on: Optional[datetime] = None
    x509_thumbprint: Optional[bytes] = None

    @property
    def identifier(self) -> str:
        return f"{self.name}/{self.version}"


@dataclass(frozen=True)
class KeyMaterial:
    """A key handle bound to the algorithm it must be used with."""

    version: CertificateVersion
    algorithm: str
    key_id: str
    public_key: Any
    private_key: Optional[Any] = field(default=None, repr=False)
    certificate: Optional[x509.Certificate] = field(default=None, repr=False)

    @property
    def has_private_key(self) -> bool:
        return self.private_key is not None

    def public_key_pem(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def private_key_pem(self) -> bytes:
        if self.private_key is None:
            raise KeyMaterialUnavailable(
                "Key material has no private key",
                details={"certificate": self.version.identifier}
            )
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def to_jwk(self) -> Dict[str, Any]:
        """Public JWK for this key; private parameters are never included."""
        data = jwk.construct(self.public_key_pem(), algorithm=_jwk_key_algorithm(self.algorithm)).to_dict()
        data["kid"] = self.key_id
        data["use"] = "sig"
        data["alg"] = self.algorithm
        if self.certificate is not None:
            der = self.certificate.public_bytes(serialization.Encoding.DER)
            data["x5t"] = _b64url(self.certificate.fingerprint(hashes.SHA1()))
            data["x5c"] = [base64.b64encode(der).decode("ascii")]
        return data


@dataclass(frozen=True)
class SigningCredential:
    """The key material currently designated for producing signatures."""

    certificate_name: str
    key: KeyMaterial
    active: bool = True

    @property
    def key_id(self) -> str:
        return self.key.key_id

    @property
    def algorithm(self) -> str:
        return self.key.algorithm


@dataclass(frozen=True)
class ValidationKeySet:
    """All key material accepted for signature validation, most recent first."""

    keys: Tuple[KeyMaterial, ...] = ()

    def __iter__(self) -> Iterator[KeyMaterial]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __contains__(self, key_id: object) -> bool:
        return any(key.key_id == key_id for key in self.keys)

    def find(self, key_id: str) -> Optional[KeyMaterial]:
        for key in self.keys:
            if key.key_id == key_id:
                return key
        return None

    def to_jwks(self) -> Dict[str, List[Dict[str, Any]]]:
        return {"keys": [key.to_jwk() for key in self.keys]}
