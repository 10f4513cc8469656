"""
API v1 Router
"""

from fastapi import APIRouter
from spendsight.api.v1.endpoints import ml

api_router = APIRouter()

api_router.include_router(
    ml.router,
    prefix="/ml",
    tags=["machine-learning"]
)
