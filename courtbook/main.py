"""Main FastAPI application for the court booking engine."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from courtbook import __version__
from courtbook.errors import BookingEngineError
from courtbook.models import Error
from courtbook.rate_limit import limiter
from courtbook.routers import admin, bookings, clubs, forum, health, notifications
from courtbook.services.registry import registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await registry.start()
    try:
        yield
    finally:
        await registry.stop()


app = FastAPI(
    title="Court Booking API",
    description="Court availability, bookings, cancellations and open games for sports clubs",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(BookingEngineError)
async def engine_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=Error(error=exc.kind, message=exc.message, details=exc.details).model_dump(),
    )


for _router in (health.router, clubs.router, bookings.router, admin.router, forum.router, notifications.router):
    app.include_router(_router)
