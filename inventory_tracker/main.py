"""
Inventory Tracker API application.

Run with ``uvicorn inventory_tracker.main:app --host 0.0.0.0 --port 8000`` or
the ``inventory-tracker`` script, which binds to APP_HOST and APP_PORT.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import DBAPIError
from contextlib import asynccontextmanager
from datetime import timedelta
import logging
import uvicorn

# Use relative imports within the service package
from . import routes
from .config import Settings
from .database import Database, mask_url
from .errors import InventoryTrackerError, StoreUnavailable, ValidationError
from .tokens import TokenService
from .validation import field_errors

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info(f"Inventory Tracker starting up ({settings.app_env})...")
    logger.info(f"Listening on {settings.app_host}:{settings.app_port}")
    await app.state.database.open()
    yield
    logger.info("Inventory Tracker shutting down...")
    await app.state.database.close() # Clean up engine resources


def _error_body(code: str, detail: str, errors=None) -> dict:
    body = {"detail": detail, "code": code}
    if errors is not None:
        body["errors"] = errors
    return body


def _field_dict(error) -> dict:
    # Field names go out in the same camelCase as the JSON bodies
    field = to_camel(error.field) if "_" in error.field else error.field
    return {"field": field, "message": error.message}


def register_exception_handlers(app: FastAPI) -> None:
    settings: Settings = app.state.settings

    @app.exception_handler(InventoryTrackerError)
    async def handle_inventory_error(request: Request, exc: InventoryTrackerError):
        errors = [_field_dict(e) for e in exc.errors] if isinstance(exc, ValidationError) else None
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message, errors),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [_field_dict(e) for e in field_errors(exc.errors())]
        return JSONResponse(
            status_code=ValidationError.status_code,
            content=_error_body(ValidationError.code, "Validation failed", errors),
        )

    async def handle_store_error(request: Request, exc: Exception):
        # Persistence collaborator unreachable or failing: no retries, generic 500
        logger.error(f"Store error on {request.method} {request.url.path}", exc_info=exc)
        err = StoreUnavailable()
        body = _error_body(err.code, err.message)
        if not settings.is_production:
            body["debug"] = str(getattr(exc, "orig", None) or exc)
        return JSONResponse(status_code=err.status_code, content=body)

    for exc_class in (DBAPIError, ConnectionError, TimeoutError):
        app.add_exception_handler(exc_class, handle_store_error)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = _error_body("INTERNAL_ERROR", "Internal server error")
        if not settings.is_production:
            body["debug"] = repr(exc)
        return JSONResponse(status_code=500, content=body)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Builds the app. The store handle and token service are created here, not at import."""
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)

    app = FastAPI(
        title="Inventory Tracker",
        description="Per-user inventory records with low-stock tracking and summary statistics.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.database_url, echo=settings.db_echo)
    app.state.token_service = TokenService(
        settings.jwt_secret,
        lifetime=timedelta(days=settings.jwt_expires_days),
        algorithm=settings.jwt_algorithm,
    )
    logger.debug(f"App configured for database {mask_url(settings.database_url)}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(routes.meta_router)
    app.include_router(routes.auth_router)
    app.include_router(routes.items_router)
    return app


app = create_app()


def run() -> None:
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
