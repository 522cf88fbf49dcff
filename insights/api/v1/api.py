from fastapi import APIRouter

from insights.api.v1.endpoints import webhook
from insights.api.v1.endpoints import profiles
from insights.api.v1.endpoints import departments
from insights.api.v1.endpoints import stats

api_router = APIRouter()

api_router.include_router(webhook.router, prefix="/sahha/webhook", tags=["webhook"])
api_router.include_router(profiles.router, prefix="/sahha/profiles", tags=["profiles"])
api_router.include_router(departments.router, prefix="/departments", tags=["departments"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
