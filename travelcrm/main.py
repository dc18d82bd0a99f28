"""
TravelCRM - Travel agency client pipeline and commission tracking

Main FastAPI application with:
- Role-based authentication (manager/dataentry/sales)
- Client intake, assignment and status pipeline
- Profit, commission and salary statistics
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import select

from travelcrm.api import api_router
from travelcrm.config import settings
from travelcrm.db import get_db_context
from travelcrm.db.retry import TRANSIENT_ERRORS
from travelcrm.errors import CRMError, Internal, InvalidArgument, Unavailable
from travelcrm.models import User, UserRole
from travelcrm.services import store
from travelcrm.utils.password import hash_password

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def bootstrap() -> None:
    """Create the manager account and the exchange rate record if missing."""
    async with get_db_context() as db:
        result = await db.execute(select(User).where(User.role == UserRole.MANAGER).limit(1))
        manager = result.scalar_one_or_none()

        if not manager:
            logger.info("Creating manager account...")
            db.add(
                User(
                    email=settings.manager_email.strip().lower(),
                    password_hash=hash_password(settings.manager_password),
                    name=settings.manager_name,
                    role=UserRole.MANAGER,
                    disabled=False,
                    login_count=0,
                )
            )
            logger.info(f"Manager account created: {settings.manager_email}")

        await store.ensure_exchange_rates(db)
        await db.commit()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Creates the manager account if none exists
    - Initializes exchange rates with zero values
    """
    logger.info("Starting TravelCRM...")
    await bootstrap()
    logger.info("TravelCRM started successfully!")

    yield

    logger.info("Shutting down TravelCRM...")


async def crm_error_handler(request: Request, exc: CRMError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.context}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.context}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidArgument()
    logger.info(f"Invalid request on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def transient_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc!r}")
    error = Unavailable()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    error = Internal()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


def create_app() -> FastAPI:
    app = FastAPI(
        title="TravelCRM",
        description="Travel agency client pipeline and commission tracking",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    app.add_exception_handler(CRMError, crm_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    for exc_class in TRANSIENT_ERRORS:
        app.add_exception_handler(exc_class, transient_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "travelcrm.main:app",
        host="0.0.0.0",
        port=8000,
        reload=not settings.is_production,
    )
