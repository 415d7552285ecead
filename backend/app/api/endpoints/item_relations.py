"""
Item relation endpoints.
"""

from uuid import UUID
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.schemas.item import ItemRelationCreate, ItemRelationResponse
from app.services.auth_service import get_current_user
from app.services.item_service import item_service

router = APIRouter()


@router.post("", response_model=ItemRelationResponse, status_code=status.HTTP_201_CREATED)
async def create_relation(
    data: ItemRelationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Link two of the current user's items."""
    return await item_service.create_relation(db, current_user.id, data)


@router.delete("/{relation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_relation(
    relation_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await item_service.delete_relation(db, current_user.id, relation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
