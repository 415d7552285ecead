"""
AI model catalog endpoints.
"""

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_model_registry
from app.core.database import get_db
from app.models.user import User
from app.schemas.ai import AIModelResponse, AIModelStatusUpdate, DiscoveredModelResponse
from app.services.auth_service import get_current_user
from app.services.model_registry_service import ModelRegistryService

router = APIRouter()


@router.get("", response_model=List[AIModelResponse])
async def list_models(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: ModelRegistryService = Depends(get_model_registry),
):
    """Catalog rows with the status seen by the last discovery."""
    return await registry.list_catalog(db)


@router.patch("/{model_id}/status", status_code=status.HTTP_204_NO_CONTENT)
async def update_model_status(
    model_id: UUID,
    data: AIModelStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: ModelRegistryService = Depends(get_model_registry),
):
    """Activate or deactivate a model."""
    await registry.set_active(db, model_id, data.is_active)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/discover", response_model=List[DiscoveredModelResponse])
async def discover_models(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    registry: ModelRegistryService = Depends(get_model_registry),
):
    """Run a discovery and sync cycle now."""
    models = await registry.refresh(db)
    return [DiscoveredModelResponse(name=m.name, is_active=m.is_active, status=m.status) for m in models]
