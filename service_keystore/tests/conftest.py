"""
Shared fixtures for key store tests.
"""

from datetime import timedelta
from typing import Optional

import pytest
from cryptography.hazmat.primitives import hashes

from shared.test_helpers import FakeClock, KeyFactory
from service_keystore.app.models import CertificateVersion
from service_keystore.app.vault.source import InMemoryCertificateSource

CERTIFICATE_NAME = "token-signing"


class KeyPair:
    """A private key with its self-signed certificate."""

    def __init__(self, private_key, common_name: str):
        self.private_key = private_key
        self.certificate = KeyFactory.certificate(private_key, common_name)

    @property
    def pkcs12(self) -> bytes:
        return KeyFactory.pkcs12_bundle(self.private_key, self.certificate)

    @property
    def pem(self) -> bytes:
        return KeyFactory.pem_bundle(self.private_key, self.certificate)

    @property
    def thumbprint(self) -> str:
        return self.certificate.fingerprint(hashes.SHA1()).hex().upper()


@pytest.fixture(scope="session")
def rsa_pairs():
    """Three RSA key pairs, generated once per session."""
    return [KeyPair(KeyFactory.rsa_key(), f"token-signing-{i}") for i in range(3)]


@pytest.fixture(scope="session")
def ec_pair():
    return KeyPair(KeyFactory.ec_key(), "token-signing-ec")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_version(clock):
    """Build a version created ``age_hours`` before the fake clock's now."""

    def _make(version: str, age_hours: Optional[float], enabled: bool = True) -> CertificateVersion:
        created_on = None if age_hours is None else clock.now - timedelta(hours=age_hours)
        return CertificateVersion(
            name=CERTIFICATE_NAME,
            version=version,
            enabled=enabled,
            created_on=created_on,
        )

    return _make


@pytest.fixture
def source():
    return InMemoryCertificateSource()
