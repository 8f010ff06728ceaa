"""
Azure Key Vault certificate source.

Version metadata comes from the certificates API; the exportable key material
of a certificate version lives in the secret of the same name and version.
"""

from __future__ import annotations

import base64
import binascii
from typing import List, Optional

from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
)
from azure.keyvault.certificates.aio import CertificateClient
from azure.keyvault.secrets.aio import SecretClient

from shared.errors import KeyMaterialUnavailable, VaultAccessError
from shared.logging import get_logger

from ..models import CertificateVersion
from .source import VaultCertificateSource

PKCS12_CONTENT_TYPE = "application/x-pkcs12"
PEM_CONTENT_TYPE = "application/x-pem-file"


class AzureKeyVaultCertificateSource(VaultCertificateSource):
    """Reads certificate versions and their private keys from Azure Key Vault."""

    def __init__(
        self,
        vault_url: str,
        credential: AsyncTokenCredential,
        *,
        certificate_client: Optional[CertificateClient] = None,
        secret_client: Optional[SecretClient] = None,
    ):
        self.vault_url = vault_url
        self.credential = credential
        self.logger = get_logger("keystore.vault")
        self._certificates = certificate_client or CertificateClient(vault_url=vault_url, credential=credential)
        self._secrets = secret_client or SecretClient(vault_url=vault_url, credential=credential)

    async def list_versions(self, certificate_name: str) -> List[CertificateVersion]:
        versions: List[CertificateVersion] = []
        try:
            async for properties in self._certificates.list_properties_of_certificate_versions(certificate_name):
                versions.append(
                    CertificateVersion(
                        name=properties.name,
                        version=properties.version,
                        enabled=bool(properties.enabled),
                        created_on=properties.created_on,
                        x509_thumbprint=properties.x509_thumbprint,
                    )
                )
        except ResourceNotFoundError:
            self.logger.warning("Certificate not found in vault", certificate=certificate_name)
            return []
        except AzureError as e:
            self.logger.error("Failed to list certificate versions", certificate=certificate_name, error=str(e))
            raise VaultAccessError(
                f"Failed to list versions of certificate '{certificate_name}'",
                details={"vault_url": self.vault_url, "certificate": certificate_name}
            ) from e

        self.logger.debug("Listed certificate versions", certificate=certificate_name, count=len(versions))
        return versions

    async def fetch_key_material(self, version: CertificateVersion) -> bytes:
        details = {"vault_url": self.vault_url, "certificate": version.identifier}
        try:
            secret = await self._secrets.get_secret(version.name, version.version)
        except ClientAuthenticationError as e:
            raise VaultAccessError("Vault authentication failed", details=details) from e
        except ResourceNotFoundError as e:
            raise KeyMaterialUnavailable(
                "Certificate version has no exportable key material", details=details
            ) from e
        except HttpResponseError as e:
            if e.status_code == 403:
                raise KeyMaterialUnavailable(
                    "Not permitted to read certificate key material", details=details
                ) from e
            raise VaultAccessError("Failed to fetch certificate key material", details=details) from e
        except AzureError as e:
            raise VaultAccessError("Failed to fetch certificate key material", details=details) from e

        if not secret.value:
            raise KeyMaterialUnavailable("Certificate secret is empty", details=details)

        content_type = secret.properties.content_type
        if content_type == PEM_CONTENT_TYPE or secret.value.lstrip().startswith("-----BEGIN"):
            return secret.value.encode("utf-8")

        try:
            return base64.b64decode(secret.value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise KeyMaterialUnavailable(
                "Certificate secret is not valid base64 PKCS#12",
                details={**details, "content_type": content_type}
            ) from e

    async def close(self) -> None:
        await self._certificates.close()
        await self._secrets.close()
