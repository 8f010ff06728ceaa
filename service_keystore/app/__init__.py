"""
Key store application package.

- app.selection: Rollover-aware choice of the signing certificate version.
- app.keys: Parsing vault key material into usable key objects.
- app.provider: Time-bounded cache around the vault round-trip.
- app.vault: Certificate source interface and the Azure Key Vault adapter.
- app.dependencies: FastAPI wiring for token-issuing hosts.
- app.main: Service entrypoint publishing the JWKS document.

Importing this package must not perform network calls; the vault is only
contacted when keys are requested.
"""

from .models import CertificateVersion, KeyMaterial, SigningCredential, ValidationKeySet
from .provider import CachingKeyProvider
from .selection import CertificateVersionSelector, select_signing_version, select_validation_versions

__all__ = [
    "CertificateVersion",
    "KeyMaterial",
    "SigningCredential",
    "ValidationKeySet",
    "CachingKeyProvider",
    "CertificateVersionSelector",
    "select_signing_version",
    "select_validation_versions",
]
