"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from app.api.v1 import health, questions, session

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(session.router, prefix="/session", tags=["session"])
