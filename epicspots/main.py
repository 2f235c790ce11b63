"""Epic Spots — FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from epicspots.api.v1.auth import router as auth_router
from epicspots.api.v1.reservations import router as reservations_router
from epicspots.api.v1.spots import router as spots_router
from epicspots.api.v1.users import router as users_router
from epicspots.config import settings
from epicspots.reservations.errors import ReservationError
from epicspots.reservations.store import SpotLocks

# Configure root logger so all epicspots.* loggers output to stderr.
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    yield
    # Shutdown — dispose engine connections
    from epicspots.database import engine

    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Book spots by the night without double-booking.",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Per-spot locks serializing check-then-write units across concurrent requests.
app.state.spot_locks = SpotLocks()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservationError)
async def reservation_error_handler(request: Request, exc: ReservationError) -> JSONResponse:
    """Render domain failures as ``{"detail": ..., "kind": ...}`` with their HTTP status."""
    if exc.retryable:
        logger.warning("%s %s failed transiently: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers={"Retry-After": "1"})
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.kind)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed reservation requests are 400 ``invalid_request``; elsewhere FastAPI's 422."""
    if not request.url.path.startswith(reservations_router.prefix):
        return await request_validation_exception_handler(request, exc)
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid reservation request",
            "kind": "invalid_request",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


# Routers
app.include_router(auth_router)
app.include_router(spots_router)
app.include_router(reservations_router)
app.include_router(users_router)


@app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
