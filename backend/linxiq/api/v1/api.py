"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from linxiq.api.v1 import assignments, health, reports, results, sessions

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(
    assignments.router, prefix="/assignments", tags=["assignments"]
)
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
api_router.include_router(results.router, prefix="/results", tags=["results"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
