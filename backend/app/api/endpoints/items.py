"""
Item API endpoints.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_connection_manager
from app.core.database import get_db
from app.models.user import User
from app.schemas.item import ItemCreate, ItemDetailResponse, ItemFilters, ItemResponse, ItemUpdate
from app.services.auth_service import get_current_user
from app.services.item_service import item_service
from app.utils.websocket_manager import ConnectionManager

router = APIRouter()


async def _announce(manager: ConnectionManager, user_id: UUID, action: str, item_id: UUID) -> None:
    await manager.send_to_user(user_id, {
        "type": "itemUpdate",
        "payload": {"action": action, "itemId": str(item_id)},
    })


@router.get("", response_model=List[ItemResponse])
async def list_items(
    type: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    importance: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    sort_by: str = Query("updated_at", pattern="^(updated_at|created_at|due_date|title|importance|status|type)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the current user's items. "ALL" disables a filter."""
    filters = ItemFilters(
        type=type,
        status=status_filter,
        importance=importance,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return await item_service.list_items(db, current_user.id, filters)


@router.post("", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ItemCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    item = await item_service.create_item(db, current_user.id, data)
    await _announce(manager, current_user.id, "created", item.id)
    return item


@router.get("/{item_id}", response_model=ItemDetailResponse)
async def get_item(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get an item with its relation view, comments, insights and logs."""
    item = await item_service.get_owned_item(db, item_id, current_user.id)
    return await item_service.get_item_detail(db, item)


@router.patch("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: UUID,
    data: ItemUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    item = await item_service.get_owned_item(db, item_id, current_user.id)
    item = await item_service.update_item(db, item, data)
    await _announce(manager, current_user.id, "updated", item.id)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    item = await item_service.get_owned_item(db, item_id, current_user.id)
    await item_service.delete_item(db, item)
    await _announce(manager, current_user.id, "deleted", item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
