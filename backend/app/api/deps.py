"""
Shared FastAPI dependencies.

Long-lived services are created once in ``main.create_app`` and kept on
``app.state``; handlers reach them through these functions so tests can
override them.
"""

from fastapi import Request
from starlette.requests import HTTPConnection

from app.services.ai_processing_service import AIProcessingService
from app.services.model_registry_service import ModelRegistryService
from app.services.notification_service import NotificationService
from app.utils.websocket_manager import ConnectionManager


def get_connection_manager(connection: HTTPConnection) -> ConnectionManager:
    return connection.app.state.connection_manager


def get_model_registry(request: Request) -> ModelRegistryService:
    return request.app.state.model_registry


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_ai_processing_service(request: Request) -> AIProcessingService:
    return request.app.state.ai_processing_service
