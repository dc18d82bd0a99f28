"""API router aggregation."""

from fastapi import APIRouter

from travelcrm.api.auth import router as auth_router
from travelcrm.api.clients import router as clients_router
from travelcrm.api.dashboard import router as dashboard_router
from travelcrm.api.employees import router as employees_router
from travelcrm.api.health import router as health_router
from travelcrm.api.profile import router as profile_router
from travelcrm.api.settings import router as settings_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(clients_router)
api_router.include_router(employees_router)
api_router.include_router(dashboard_router)
api_router.include_router(profile_router)
api_router.include_router(settings_router)

__all__ = ["api_router"]
