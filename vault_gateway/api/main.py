"""FastAPI application factory"""

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from vault_gateway.api.dependencies import Vault, build_vault, get_request_id
from vault_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from vault_gateway.api.v1 import accounts, admin, oracle
from vault_gateway.domain.exceptions import (
    DomainException,
    FeedNotConfiguredError,
    FeedUnavailableError,
    InvalidRunStateError,
    NoValidCachedDataError,
    TransactionNotFoundError,
    TransferFailedError,
    UnauthorizedError,
)
from vault_gateway.infrastructure.observability.logging import setup_logging
from vault_gateway.infrastructure.observability.metrics import record_rejection
from vault_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level, settings.service_name)

# Domain errors not listed here map to 422
ERROR_STATUS: Dict[Type[DomainException], int] = {
    UnauthorizedError: 403,
    InvalidRunStateError: 409,
    FeedNotConfiguredError: 404,
    NoValidCachedDataError: 404,
    TransactionNotFoundError: 404,
    TransferFailedError: 502,
    FeedUnavailableError: 503,
}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Translate an aborted domain operation into an HTTP error response"""
    status_code = ERROR_STATUS.get(type(exc), 422)
    error = type(exc).__name__
    record_rejection(error)

    log = logging.error if status_code >= 500 else logging.warning
    log(f"Operation rejected: {exc}", extra={"request_id": get_request_id(request), "error": error})
    return JSONResponse(status_code=status_code, content={"error": error, "detail": str(exc)})


def create_app(vault: Vault | None = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Vault Gateway",
        description="Custodial vault ledger with validated price feeds",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.vault = vault or build_vault(settings)

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "service": settings.service_name,
            "run_state": app.state.vault.state.run_state.value,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(accounts.router, prefix="/v1", tags=["accounts"])
    app.include_router(admin.router, prefix="/v1", tags=["admin"])
    app.include_router(oracle.router, prefix="/v1", tags=["oracle"])

    return app


app = create_app()
