"""
Main API router aggregator
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    cases,
    participants,
    interactions,
    tasks,
    reports,
    calendar,
    dashboard,
    health,
)

api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(cases.router, prefix="/cases", tags=["Cases"])
api_router.include_router(participants.router, prefix="/cases", tags=["Participants"])
api_router.include_router(interactions.router, prefix="/interactions", tags=["Interactions"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])
api_router.include_router(calendar.router, prefix="/calendar", tags=["Calendar"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(health.router, prefix="/health", tags=["Health"])
