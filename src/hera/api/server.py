"""FastAPI server for hera.

Build the app with create_app(); `hera serve` runs it under uvicorn.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hera import __version__
from hera.api.responses import error_body
from hera.api.routes import entities, organizations, relationships, smart_codes, transactions
from hera.config import Settings
from hera.database.base import Database
from hera.database.factories import create_database
from hera.domain.errors import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InvariantError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from hera.domain.status import StatusMachine

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"

ERROR_STATUS_CODES = {
    ValidationError: 400,
    InvariantError: 400,
    AuthorizationError: 401,
    NotFoundError: 404,
    ConflictError: 409,
    UpstreamError: 500,
}


def status_code_for(error: DomainError) -> int:
    """Return the HTTP status code of a domain error."""
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(error, error_type):
            return status_code
    return 400


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.message, exc.details, getattr(exc, "suggestion", None)),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(status_code=400, content=error_body("Invalid request", details))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(f"Internal server error: {exc}"))


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    status_machines: Optional[dict[str, StatusMachine]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; read from the environment when omitted
        db: Database to serve; created from settings when omitted
        status_machines: Workflow status machines keyed by entity type

    Returns:
        FastAPI application
    """
    settings = settings or Settings.from_env()
    database = db or create_database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        database.connect()
        database.initialize_schema()
        logger.info("hera API %s starting", __version__)
        yield
        database.disconnect()
        logger.info("hera API shutting down")

    app = FastAPI(
        title="hera API",
        description="Multi-tenant entities, dynamic data, relationships and transactions",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.status_machines = dict(status_machines or {})

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(organizations.router, prefix=f"{API_PREFIX}/organizations", tags=["Organizations"])
    app.include_router(entities.router, prefix=f"{API_PREFIX}/entities", tags=["Entities"])
    app.include_router(relationships.router, prefix=f"{API_PREFIX}/relationships", tags=["Relationships"])
    app.include_router(transactions.router, prefix=f"{API_PREFIX}/transactions", tags=["Transactions"])
    app.include_router(smart_codes.router, prefix=f"{API_PREFIX}/smart-codes", tags=["Smart codes"])

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"success": True, "data": {"status": "healthy", "version": __version__}}

    return app
