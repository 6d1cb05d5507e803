from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import configure_logging, get_settings, validate_config_on_startup, ConfigurationError
from app.database import init_database
from app.dependencies import get_inventory_store
from app.routers import edges, health, metrics, nodes, topology
from app.services.demo_data import seed_demo_data
from app.services.inventory import NotFoundError, StoreError
from app.validators import ValidationError


logger = logging.getLogger(__name__)


VERSION = "0.1.0"

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    configure_logging(settings)

    # Startup - validate config first
    try:
        validate_config_on_startup(settings)
    except ConfigurationError:
        # Re-raise to prevent server from starting with invalid config
        raise

    db = init_database(settings.resolved_db_path)
    if settings.enable_mock_data:
        await asyncio.to_thread(seed_demo_data, get_inventory_store())

    yield

    # Shutdown
    db.dispose()


app = FastAPI(
    title="Homelab Inventory API",
    version=VERSION,
    lifespan=lifespan,
)

# Parse CORS origins from settings
# Default restricts to localhost dev servers; in production set CORS_ALLOWED_ORIGINS env var
cors_origins = [
    origin.strip()
    for origin in settings.cors_allowed_origins.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
)

app.include_router(nodes.router)
app.include_router(edges.router)
app.include_router(topology.router)
app.include_router(metrics.router)
app.include_router(health.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle payload validation failures with 400 and every field error."""
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=400,
        content={
            "detail": exc.message,
            "errors": [error.to_dict() for error in exc.errors],
        },
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing request bodies are client errors too."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "body",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": errors},
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=404,
        content={"detail": f"{exc.kind.capitalize()} not found"},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    """Handle database failures with 500; the cause is logged, not returned."""
    logger.error(f"Store error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal storage error"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.get("/api/ping")
async def ping():
    """Simple health check for load balancers."""
    return {"status": "ok", "version": VERSION}


@app.exception_handler(404)
async def custom_404_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes get the same JSON error body as the rest of the API."""
    return JSONResponse(status_code=404, content={"detail": "Not found"})
