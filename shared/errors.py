"""
Shared error handling for the Key Vault key store.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class KeyStoreException(Exception):
    """Base exception for key store errors."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class VaultAccessError(KeyStoreException):
    """Network or authentication failure while talking to the vault."""

    status_code = 503

    def __init__(self, message: str = "Vault access failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VAULT_ACCESS_ERROR", message, details)


class KeyMaterialUnavailable(KeyStoreException):
    """A certificate version has no usable key material."""

    status_code = 502

    def __init__(self, message: str = "Key material unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("KEY_MATERIAL_UNAVAILABLE", message, details)


class SigningKeyUnavailableError(KeyStoreException):
    """No enabled certificate version can be used for signing."""

    status_code = 503

    def __init__(self, message: str = "No signing key available", details: Optional[Dict[str, Any]] = None):
        super().__init__("SIGNING_KEY_UNAVAILABLE", message, details)


class ConfigurationError(KeyStoreException):
    """Invalid or incomplete key store configuration."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
