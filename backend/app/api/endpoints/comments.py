"""
Comment endpoints, mounted under /items.
"""

from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.schemas.item import CommentCreate, CommentResponse
from app.services.auth_service import get_current_user
from app.services.item_service import item_service

router = APIRouter()


@router.get("/{item_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Comments on an item, newest first."""
    await item_service.get_owned_item(db, item_id, current_user.id)
    return await item_service.get_comments(db, item_id)


@router.post("/{item_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    item_id: UUID,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await item_service.get_owned_item(db, item_id, current_user.id)
    return await item_service.add_comment(db, item, current_user, data)
