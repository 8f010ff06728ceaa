"""
Vault access package.

The core only depends on ``VaultCertificateSource``. The Azure adapter is a
thin translation of SDK objects and errors into the key store's own types.
"""

from .source import InMemoryCertificateSource, VaultCertificateSource

__all__ = ["VaultCertificateSource", "InMemoryCertificateSource"]
