"""
Key store service.

Publishes the validation key set as a JWKS document and exposes metadata of
the active signing key. Token issuance itself lives in the host application,
which reuses the dependencies from ``app.dependencies``.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from shared.config import KeyStoreSettings, get_settings
from shared.errors import ConfigurationError, KeyStoreException
from shared.logging import clear_context, configure_logging, get_logger, set_request_id
from shared.metrics import get_metrics_collector

from .dependencies import (
    add_signing_credential_from_key_vault,
    get_validation_key_set,
    register_key_provider,
    require_signing_credential,
)
from .models import SigningCredential, ValidationKeySet
from .vault.credentials import build_credential
from .vault.source import VaultCertificateSource

SERVICE_NAME = "keystore"


class KeyStoreService:
    """Key store service implementation."""

    def __init__(
        self,
        settings: Optional[KeyStoreSettings] = None,
        source: Optional[VaultCertificateSource] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger(f"{SERVICE_NAME}.service")
        self.metrics = get_metrics_collector(SERVICE_NAME)
        self._credential = None

        configure_logging(SERVICE_NAME, self.settings.log_level)

        self.app = FastAPI(
            title="Key Store Service",
            description="Signing and validation keys from Azure Key Vault",
            version="1.0.0",
            docs_url="/docs" if self.settings.env == "local" else None,
            redoc_url=None,
            lifespan=self._lifespan,
        )

        self._setup_key_provider(source)
        self._setup_middleware()
        self._setup_routes()

    def _setup_key_provider(self, source: Optional[VaultCertificateSource]):
        options = dict(
            cache_ttl=self.settings.cache_ttl,
            algorithm=self.settings.signing_algorithm,
            metrics=self.metrics,
        )
        if source is not None:
            self.provider = register_key_provider(
                self.app,
                source,
                self.settings.certificate_name,
                self.settings.signing_key_rollover_hours,
                **options
            )
            return

        if not self.settings.vault_url:
            raise ConfigurationError("A vault URL is required")
        self._credential = build_credential(self.settings)
        self.provider = add_signing_credential_from_key_vault(
            self.app,
            self.settings.vault_url,
            self.settings.certificate_name,
            self.settings.signing_key_rollover_hours,
            self._credential,
            **options
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        self.logger.info(
            "Key store starting",
            certificate=self.settings.certificate_name,
            rollover_hours=self.settings.signing_key_rollover_hours
        )
        yield
        await self.provider.source.close()
        if self._credential is not None:
            await self._credential.close()
        self.logger.info("Key store stopped")

    def _setup_middleware(self):
        """Set up middleware."""

        @self.app.middleware("http")
        async def add_request_id(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            try:
                response = await call_next(request)
            finally:
                clear_context()
            response.headers["X-Request-ID"] = request_id
            return response

    def _setup_routes(self):
        """Set up routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {
                "service": SERVICE_NAME,
                "status": "ok",
                "certificate": self.settings.certificate_name
            }

        @self.app.get("/.well-known/jwks.json")
        async def jwks(key_set: ValidationKeySet = Depends(get_validation_key_set)):
            """Validation keys as a JSON Web Key Set."""
            return key_set.to_jwks()

        @self.app.get("/keys/signing")
        async def signing_key(credential: SigningCredential = Depends(require_signing_credential)):
            """Public metadata of the active signing key."""
            version = credential.key.version
            return {
                "certificate": credential.certificate_name,
                "version": version.version,
                "kid": credential.key_id,
                "alg": credential.algorithm,
                "created_on": version.created_on.isoformat() if version.created_on else None
            }

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        @self.app.exception_handler(KeyStoreException)
        async def key_store_exception_handler(request: Request, exc: KeyStoreException):
            """Handle KeyStoreException."""
            self.logger.error(
                "Key store error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump()
            )

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower()
        )


def create_app(
    settings: Optional[KeyStoreSettings] = None,
    source: Optional[VaultCertificateSource] = None,
) -> FastAPI:
    """Create FastAPI application."""
    return KeyStoreService(settings, source).app


if __name__ == "__main__":
    KeyStoreService().run()
