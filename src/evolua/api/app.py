"""
FastAPI application factory and main app configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..adapters.db.memory import InMemoryStore
from ..adapters.security import SignatureVirusScanner
from ..adapters.storage import AzureBlobObjectStorage, InMemoryObjectStorage
from ..core.config import Settings, get_settings, settings_summary
from ..core.exceptions import EvoluaException
from ..core.structured_logger import configure_logging
from ..core.utils.crypto import get_fernet
from ..domain.errors import DomainError
from ..middleware.auth_middleware import AuthenticationMiddleware
from ..middleware.request_id_middleware import RequestIDMiddleware
from .errors import error_details, status_for_domain_error, status_for_infrastructure_error
from .routers import documents, health, medical_records, patients
from .utils.responses import fail

logger = logging.getLogger("evolua")


async def _connect_mongo(app: FastAPI, settings: Settings) -> None:
    import certifi
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient

    from ..adapters.db.mongo.models import DOCUMENT_MODELS

    mongo_uri = settings.database.uri
    if mongo_uri.startswith("mongodb+srv://"):
        client = AsyncIOMotorClient(
            mongo_uri,
            serverSelectionTimeoutMS=15000,
            tls=True,
            tlsCAFile=certifi.where(),
            tlsAllowInvalidCertificates=False,
        )
    else:
        client = AsyncIOMotorClient(mongo_uri, serverSelectionTimeoutMS=15000)

    await init_beanie(database=client[settings.database.db_name], document_models=DOCUMENT_MODELS)
    app.state.mongo_client = client
    logger.info("Database connection established (db=%s)", settings.database.db_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings
    logger.info("Starting Evolua v%s", __version__)
    logger.info("Configuration: %s", settings_summary(settings))

    try:
        if settings.database.enabled:
            await _connect_mongo(app, settings)
        else:
            logger.warning("MONGO_URI not set; using in-memory repositories")

        if isinstance(app.state.object_storage, AzureBlobObjectStorage):
            await app.state.object_storage.ensure_container_exists()
            logger.info("Azure Blob Storage initialized")
    except Exception:
        logger.exception("Application startup failed")
        raise

    yield

    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
    logger.info("Shutting down Evolua")


def _build_object_storage(settings: Settings):
    fernet = None
    if settings.document.encrypt_at_rest:
        fernet = get_fernet(settings.document.encryption_key or None)
    if settings.azure_blob.enabled:
        return AzureBlobObjectStorage(settings.azure_blob, fernet=fernet)
    return InMemoryObjectStorage(fernet=fernet)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.logging.level, settings.logging.format)

    app = FastAPI(
        title="Evolua Patient Management",
        description="Patient, medical record and clinical document management for speech-therapy clinics",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.memory_store = None if settings.database.enabled else InMemoryStore()
    app.state.mongo_client = None
    app.state.object_storage = _build_object_storage(settings)
    app.state.virus_scanner = SignatureVirusScanner(settings.document.virus_signatures)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
    )
    app.add_middleware(AuthenticationMiddleware)
    # Added last so it wraps authentication and every response carries the id.
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(patients.router)
    app.include_router(medical_records.router)
    app.include_router(documents.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = status_for_domain_error(exc)
        logger.info("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
        return fail(
            request,
            error=exc.error_code or "DOMAIN_ERROR",
            message=exc.message,
            details=error_details(exc),
            status_code=status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        field_errors = {}
        for error in exc.errors():
            loc = [str(x) for x in error.get("loc", []) if x not in ("body", "query", "path")]
            field_errors.setdefault(".".join(loc) or "request", []).append(error.get("msg", "Invalid value"))
        logger.info("Request validation failed on %s %s: %s", request.method, request.url.path, field_errors)
        return fail(
            request,
            error="VALIDATION_FAILED",
            message="Input validation failed",
            details={"field_errors": field_errors},
            status_code=400,
        )

    @app.exception_handler(EvoluaException)
    async def infrastructure_error_handler(request: Request, exc: EvoluaException):
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
        return fail(
            request,
            error=exc.error_code or "INTERNAL_ERROR",
            message=exc.message,
            details=exc.details,
            status_code=status_for_infrastructure_error(exc),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s: %r", request.method, request.url.path, exc, exc_info=exc)
        return fail(
            request,
            error="INTERNAL_ERROR",
            message="An unexpected error has occurred. Please try again later.",
            status_code=500,
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": "Evolua Patient Management",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "health": "/health",
        }

    return app


# Create the app instance
app = create_app()
