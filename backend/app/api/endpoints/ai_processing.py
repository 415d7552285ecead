"""
AI processing endpoints, mounted under /items.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from app.api.deps import get_ai_processing_service, get_connection_manager, get_notification_service
from app.core.database import get_db
from app.core.rate_limit import limiter, PROCESS_LIMIT
from app.models.notification import InteractionType, NotificationChannel
from app.models.user import User
from app.schemas.ai import (
    AIAnalysisResultResponse,
    AIProcessingLogResponse,
    ProcessingConfig,
    ProcessingResultResponse,
    ProcessRequest,
)
from app.schemas.notification import NotificationPayload
from app.services.ai_processing_service import AIProcessingService, strategy_for_importance
from app.services.auth_service import get_current_user
from app.services.item_service import item_service
from app.services.notification_service import NotificationService
from app.utils.websocket_manager import ConnectionManager

router = APIRouter()


@router.post("/{item_id}/process", response_model=ProcessingResultResponse)
@limiter.limit(PROCESS_LIMIT)
async def process_item(
    request: Request,
    item_id: UUID,
    data: Optional[ProcessRequest] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    processor: AIProcessingService = Depends(get_ai_processing_service),
    notifications: NotificationService = Depends(get_notification_service),
    manager: ConnectionManager = Depends(get_connection_manager),
):
    """Run an item through the active local models."""
    item = await item_service.get_owned_item(db, item_id, current_user.id)
    data = data or ProcessRequest()

    config = ProcessingConfig(
        strategy=strategy_for_importance(item.importance),
        models=data.models,
        parameters=data.parameters,
    )
    result = await processor.process_item(db, item, config)

    await manager.send_to_user(current_user.id, {
        "type": "aiUpdate",
        "payload": {
            "itemId": str(item.id),
            "insightCount": len(result.insights),
            "logCount": len(result.logs),
            "strategy": result.strategy.value,
        },
    })

    delivered = await notifications.send_notification(db, current_user.id, NotificationPayload(
        title="AI Analysis Complete",
        content=f'The analysis of "{item.title}" has been completed.',
        item_id=item.id,
        interaction_type=InteractionType.INFO,
        channels=[NotificationChannel.IN_APP, NotificationChannel.BROWSER],
    ))
    if not delivered:
        logger.warning(f"Completion notification for item {item.id} was not stored")

    return ProcessingResultResponse(
        strategy=result.strategy,
        insights=[AIAnalysisResultResponse.model_validate(i) for i in result.insights],
        logs=[AIProcessingLogResponse.model_validate(log) for log in result.logs],
    )


@router.get("/{item_id}/ai-insights", response_model=List[AIAnalysisResultResponse])
async def get_insights(
    item_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Insights of an item, newest first."""
    await item_service.get_owned_item(db, item_id, current_user.id)
    insights = await item_service.get_insights(db, item_id)
    return [AIAnalysisResultResponse.model_validate(i) for i in insights]


@router.get("/{item_id}/ai-logs", response_model=List[AIProcessingLogResponse])
async def get_logs(
    item_id: UUID,
    level: Optional[str] = Query(None, pattern="^(ALL|DEBUG|INFO|IMPORTANT|CRITICAL)$"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Processing logs of an item, newest first."""
    await item_service.get_owned_item(db, item_id, current_user.id)
    logs = await item_service.get_logs(db, item_id, level)
    return [AIProcessingLogResponse.model_validate(log) for log in logs]


@router.delete("/{item_id}/ai-logs/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(
    item_id: UUID,
    log_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Hide a log entry."""
    await item_service.get_owned_item(db, item_id, current_user.id)
    await item_service.soft_delete_log(db, item_id, log_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
