"""
Database models for the LifeOS application.
"""

from .user import User, UserSettings
from .item import Item, ItemRelation, Comment, ItemType, ItemStatus, ItemImportance, RelationType
from .model_registry import AIModel, ModelType
from .ai_processing import AIProcessingLog, AIAnalysisResult, LogLevel, ProcessingStrategy
from .notification import Notification, NotificationChannel, InteractionType

__all__ = [
    "User",
    "UserSettings",
    "Item",
    "ItemRelation",
    "Comment",
    "ItemType",
    "ItemStatus",
    "ItemImportance",
    "RelationType",
    "AIModel",
    "ModelType",
    "AIProcessingLog",
    "AIAnalysisResult",
    "LogLevel",
    "ProcessingStrategy",
    "Notification",
    "NotificationChannel",
    "InteractionType",
]
