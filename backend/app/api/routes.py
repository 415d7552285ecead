"""
Main API router configuration.
"""

from fastapi import APIRouter
from app.api.endpoints import (
    auth,
    items,
    item_relations,
    comments,
    notifications,
    ai_models,
    ai_processing,
    user,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(items.router, prefix="/items", tags=["items"])
api_router.include_router(comments.router, prefix="/items", tags=["comments"])
api_router.include_router(ai_processing.router, prefix="/items", tags=["ai-processing"])
api_router.include_router(item_relations.router, prefix="/item-relations", tags=["item-relations"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(ai_models.router, prefix="/ai-models", tags=["ai-models"])
api_router.include_router(user.router, prefix="/user", tags=["user"])
