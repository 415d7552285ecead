"""
Item storage service: items, relations, comments and the AI records attached to them.
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy import case, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import commit_or_raise
from app.models.ai_processing import AIAnalysisResult, AIProcessingLog
from app.models.item import Comment, Item, ItemImportance, ItemRelation, RelationType
from app.models.user import User
from app.schemas.ai import AIAnalysisResultResponse, AIProcessingLogResponse
from app.schemas.item import (
    CommentCreate,
    CommentResponse,
    ItemCreate,
    ItemDetailResponse,
    ItemFilters,
    ItemRelationCreate,
    ItemResponse,
    ItemUpdate,
    RelatedItem,
    RelationView,
)
from app.utils.exceptions import ForbiddenError, NotFoundError, ValidationError

# stored relation type -> (bucket seen from the source item, bucket seen from the target item)
RELATION_BUCKETS = {
    RelationType.PARENT_OF.value: ("children", "parents"),
    RelationType.CHILD_OF.value: ("parents", "children"),
    RelationType.RELATED_TO.value: ("related", "related"),
    RelationType.BLOCKS.value: ("blocks", "blocked_by"),
    RelationType.DEPENDS_ON.value: ("blocked_by", "blocks"),
}

# Columns a partial update may omit but never clear
_NON_NULL_FIELDS = ("title", "type", "status", "importance", "tags")

_IMPORTANCE_RANK = case(
    {
        ItemImportance.LOW.value: 0,
        ItemImportance.MEDIUM.value: 1,
        ItemImportance.HIGH.value: 2,
        ItemImportance.CRITICAL.value: 3,
    },
    value=Item.importance,
    else_=1,
)


def _escape_like(term: str) -> str:
    """Make % and _ in a search term match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_relation_view(
    item_id: UUID,
    relations: Sequence[ItemRelation],
    items_by_id: Dict[UUID, Item],
) -> RelationView:
    """Group the edges touching ``item_id`` by how they read from that item."""
    view = RelationView()
    for relation in relations:
        outgoing = relation.from_item_id == item_id
        other_id = relation.to_item_id if outgoing else relation.from_item_id
        other = items_by_id.get(other_id)
        buckets = RELATION_BUCKETS.get(relation.relation_type)
        if other is None or buckets is None:
            continue

        bucket = buckets[0] if outgoing else buckets[1]
        getattr(view, bucket).append(RelatedItem(
            id=relation.id,
            from_item_id=relation.from_item_id,
            to_item_id=relation.to_item_id,
            relation_type=relation.relation_type,
            item=ItemResponse.model_validate(other),
        ))
    return view


class ItemService:
    """CRUD for items and everything hanging off them."""

    async def get_item(self, db: AsyncSession, item_id: UUID) -> Item:
        item = await db.get(Item, item_id)
        if item is None:
            raise NotFoundError("Item", str(item_id))
        return item

    async def get_owned_item(self, db: AsyncSession, item_id: UUID, user_id: UUID) -> Item:
        """Load an item, refusing access to anyone but its owner."""
        item = await self.get_item(db, item_id)
        if item.user_id != user_id:
            raise ForbiddenError()
        return item

    async def list_items(self, db: AsyncSession, user_id: UUID, filters: ItemFilters) -> List[Item]:
        """List a user's items with optional filters, search and sorting."""
        query = select(Item).where(Item.user_id == user_id)

        if filters.type and filters.type != "ALL":
            query = query.where(Item.type == filters.type)
        if filters.status and filters.status != "ALL":
            query = query.where(Item.status == filters.status)
        if filters.importance and filters.importance != "ALL":
            query = query.where(Item.importance == filters.importance)
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            query = query.where(or_(
                Item.title.ilike(pattern, escape="\\"),
                Item.description.ilike(pattern, escape="\\"),
            ))

        sort_column = _IMPORTANCE_RANK if filters.sort_by == "importance" else getattr(Item, filters.sort_by)
        query = query.order_by(sort_column.asc() if filters.sort_order == "asc" else sort_column.desc())

        result = await db.execute(query)
        return list(result.scalars().all())

    async def create_item(self, db: AsyncSession, user_id: UUID, data: ItemCreate) -> Item:
        now = datetime.utcnow()
        item = Item(
            user_id=user_id,
            title=data.title,
            description=data.description,
            type=data.type.value,
            status=data.status.value,
            importance=data.importance.value,
            tags=list(data.tags),
            due_date=data.due_date,
            created_at=now,
            updated_at=now,
        )
        db.add(item)
        await commit_or_raise(db)
        logger.info(f"Created item {item.id} for user {user_id}")
        return item

    async def update_item(self, db: AsyncSession, item: Item, data: ItemUpdate) -> Item:
        """Apply a partial update and bump updated_at."""
        update_data = data.model_dump(exclude_unset=True)
        for field in _NON_NULL_FIELDS:
            if field in update_data and update_data[field] is None:
                raise ValidationError("must not be null", field=field)

        for field, value in update_data.items():
            if hasattr(value, "value"):
                value = value.value
            setattr(item, field, value)

        item.updated_at = datetime.utcnow()
        await commit_or_raise(db)
        return item

    async def delete_item(self, db: AsyncSession, item: Item) -> None:
        """Delete an item; relations, comments, logs, insights and notifications cascade."""
        await db.execute(delete(Item).where(Item.id == item.id))
        await commit_or_raise(db)
        logger.info(f"Deleted item {item.id}")

    async def create_relation(self, db: AsyncSession, user_id: UUID, data: ItemRelationCreate) -> ItemRelation:
        if data.from_item_id == data.to_item_id:
            raise ValidationError("An item cannot be related to itself", field="to_item_id")

        await self.get_owned_item(db, data.from_item_id, user_id)
        await self.get_owned_item(db, data.to_item_id, user_id)

        relation = ItemRelation(
            from_item_id=data.from_item_id,
            to_item_id=data.to_item_id,
            relation_type=data.relation_type.value,
        )
        db.add(relation)
        await commit_or_raise(db)
        return relation

    async def delete_relation(self, db: AsyncSession, user_id: UUID, relation_id: UUID) -> None:
        relation = await db.get(ItemRelation, relation_id)
        if relation is None:
            raise NotFoundError("Item relation", str(relation_id))

        await self.get_owned_item(db, relation.from_item_id, user_id)
        await db.delete(relation)
        await commit_or_raise(db)

    async def get_relation_view(self, db: AsyncSession, item_id: UUID) -> RelationView:
        result = await db.execute(
            select(ItemRelation).where(
                or_(ItemRelation.from_item_id == item_id, ItemRelation.to_item_id == item_id)
            )
        )
        relations = list(result.scalars().all())

        other_ids = {r.from_item_id for r in relations} | {r.to_item_id for r in relations}
        other_ids.discard(item_id)
        items_by_id: Dict[UUID, Item] = {}
        if other_ids:
            items_result = await db.execute(select(Item).where(Item.id.in_(other_ids)))
            items_by_id = {i.id: i for i in items_result.scalars().all()}

        return build_relation_view(item_id, relations, items_by_id)

    async def get_comments(self, db: AsyncSession, item_id: UUID) -> List[CommentResponse]:
        """Comments on an item, newest first, with the author's username."""
        result = await db.execute(
            select(Comment, User.username)
            .join(User, Comment.user_id == User.id)
            .where(Comment.item_id == item_id)
            .order_by(Comment.created_at.desc())
        )
        return [
            CommentResponse(
                id=comment.id,
                item_id=comment.item_id,
                user_id=comment.user_id,
                username=username,
                content=comment.content,
                created_at=comment.created_at,
            )
            for comment, username in result.all()
        ]

    async def add_comment(self, db: AsyncSession, item: Item, user: User, data: CommentCreate) -> CommentResponse:
        comment = Comment(
            item_id=item.id,
            user_id=user.id,
            content=data.content,
            created_at=datetime.utcnow(),
        )
        db.add(comment)
        await commit_or_raise(db)
        return CommentResponse(
            id=comment.id,
            item_id=comment.item_id,
            user_id=comment.user_id,
            username=user.username,
            content=comment.content,
            created_at=comment.created_at,
        )

    async def get_insights(self, db: AsyncSession, item_id: UUID) -> List[AIAnalysisResult]:
        result = await db.execute(
            select(AIAnalysisResult)
            .where(AIAnalysisResult.item_id == item_id)
            .order_by(AIAnalysisResult.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_logs(self, db: AsyncSession, item_id: UUID, level: Optional[str] = None) -> List[AIProcessingLog]:
        """Processing logs of an item, newest first, soft-deleted rows hidden."""
        query = select(AIProcessingLog).where(
            AIProcessingLog.item_id == item_id,
            AIProcessingLog.is_deleted == False,  # noqa: E712
        )
        if level and level != "ALL":
            query = query.where(AIProcessingLog.log_level == level)

        result = await db.execute(query.order_by(AIProcessingLog.timestamp.desc()))
        return list(result.scalars().all())

    async def soft_delete_log(self, db: AsyncSession, item_id: UUID, log_id: UUID) -> None:
        log = await db.get(AIProcessingLog, log_id)
        if log is None or log.item_id != item_id:
            raise NotFoundError("AI processing log", str(log_id))

        log.is_deleted = True
        await commit_or_raise(db)

    async def get_item_detail(self, db: AsyncSession, item: Item) -> ItemDetailResponse:
        """Item together with its relation view, comments, insights and logs."""
        return ItemDetailResponse(
            **ItemResponse.model_validate(item).model_dump(),
            relations=await self.get_relation_view(db, item.id),
            comments=await self.get_comments(db, item.id),
            ai_insights=[AIAnalysisResultResponse.model_validate(i) for i in await self.get_insights(db, item.id)],
            ai_logs=[AIProcessingLogResponse.model_validate(log) for log in await self.get_logs(db, item.id)],
        )


item_service = ItemService()
