"""FastAPI main application."""

import logging
from contextlib import asynccontextmanager
from decimal import Decimal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fundmanager.api.v1 import comparison, holdings, portfolios
from fundmanager.config import settings
from fundmanager.core.database import close_db, init_db
from fundmanager.core.exceptions import FundManagerError
from fundmanager.core.logging_config import setup_logging
from fundmanager.middleware.error_handler import ErrorHandlerMiddleware
from fundmanager.middleware.request_logging import RequestLoggingMiddleware

_logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    _logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION} ({settings.ENVIRONMENT})")

    await init_db()

    yield

    _logger.info(f"Shutting down {settings.APP_NAME}")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error handler - catch uncaught exceptions
app.add_middleware(ErrorHandlerMiddleware)

# Request logging - request id and timing for every request
app.add_middleware(RequestLoggingMiddleware)


def _make_json_serializable(obj):
    """Recursively convert non-JSON-serializable types to serializable ones."""
    if isinstance(obj, dict):
        return {k: _make_json_serializable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_make_json_serializable(i) for i in obj]
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Exception):
        return str(obj)
    return obj


@app.exception_handler(FundManagerError)
async def fund_manager_exception_handler(request: Request, exc: FundManagerError):
    if exc.status_code >= 500:
        _logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    else:
        _logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    _logger.debug("Validation error on %s: %s", request.url, exc.errors())
    errors = _make_json_serializable(exc.errors())
    return JSONResponse(
        status_code=422,
        content={"detail": errors},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(portfolios.router, prefix="/api/v1/portfolios", tags=["Portfolios"])
app.include_router(holdings.router, prefix="/api/v1/portfolios", tags=["Holdings"])
app.include_router(comparison.router, prefix="/api/v1/comparison", tags=["Company Comparison"])
