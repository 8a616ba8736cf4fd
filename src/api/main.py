"""FastAPI application entry point for the clinic diagnostic service."""

import logging

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.diagnostic import router as diagnostic_router
from src.config.settings import get_settings
from src.engine.diagnostic.config import DEFAULT_POLICY

APP_VERSION = "0.1.0"

settings = get_settings()

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# --- Structured logging ---
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if settings.ENVIRONMENT == "dev"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value],
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger()

# --- FastAPI app ---
app = FastAPI(
    title="Clinic Diagnostic API",
    description="Operational bottleneck diagnostics for aesthetic and wellness clinics.",
    version=APP_VERSION,
)

# --- CORS middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.ENVIRONMENT == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(diagnostic_router)


# --- Infrastructure Endpoints (global) ---


@app.get("/health")
async def health_check() -> dict:
    """Liveness probe. The engine has no external dependencies to check."""
    return {
        "status": "ok",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT.value,
        "checks": {
            "api": True,
            "ontology": settings.ONTOLOGY_ENABLED,
        },
    }


@app.get("/api/version")
async def get_version() -> dict[str, str]:
    """Return application and policy versions for the running deployment."""
    logger.debug("version requested", policy_version=DEFAULT_POLICY.policy_version)
    return {
        "name": "ClinicDiagnostic",
        "version": APP_VERSION,
        "policy_version": DEFAULT_POLICY.policy_version,
        "environment": settings.ENVIRONMENT.value,
    }
