"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from utilbill.api.routes import billing, health
from utilbill.core.config import settings
from utilbill.core.database import Base, engine

# Import models for Base.metadata.create_all - order matters for foreign keys
from utilbill.models import (  # noqa: F401
    Building,
    LeaseContract,
    MeterReading,
    Unit,
    UtilityType,
)
from utilbill.services.errors import BillingError


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    logging.basicConfig(level=settings.LOG_LEVEL)
    # Startup: Create database tables
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Utility and CAM billing engine",
    lifespan=lifespan,
)


@app.exception_handler(BillingError)
async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Render billing errors like HTTPExceptions."""
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include API routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(billing.router, prefix="/api")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "utilbill.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
