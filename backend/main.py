"""
Main FastAPI application entry point for LifeOS.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import uvicorn

from app.core.config import settings
from app.core.database import create_tables
from app.core.exceptions import (
    lifeos_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)
from app.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from app.core.rate_limit import limiter
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler
from app.api.routes import api_router
from app.api.endpoints import websocket
from app.services.ai_processing_service import AIProcessingService
from app.services.llm_service import LLMService
from app.services.model_registry_service import ModelRegistryService
from app.services.notification_service import NotificationService
from app.services.telegram_service import TelegramService
from app.utils.exceptions import LifeOSException
from app.utils.websocket_manager import ConnectionManager
from fastapi.exceptions import RequestValidationError

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting LifeOS application")

    await create_tables()

    if settings.OLLAMA_DISCOVERY_ENABLED:
        app.state.model_registry.start()
    else:
        logger.info("Ollama model discovery disabled")

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    await app.state.model_registry.stop()
    await app.state.connection_manager.shutdown()
    await app.state.llm_service.close()
    await app.state.telegram_service.close()


def create_app() -> FastAPI:
    app = FastAPI(
        title="LifeOS API",
        description="Personal productivity backend with local AI analysis",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )

    # Long-lived services, reached through app.api.deps
    app.state.connection_manager = ConnectionManager()
    app.state.telegram_service = TelegramService()
    app.state.llm_service = LLMService()
    app.state.model_registry = ModelRegistryService()
    app.state.notification_service = NotificationService(
        app.state.connection_manager, app.state.telegram_service
    )
    app.state.ai_processing_service = AIProcessingService(app.state.llm_service)

    # Add rate limiter to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Add custom middleware (order matters - first added is outermost)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add exception handlers
    app.add_exception_handler(LifeOSException, lifeos_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Include API routes
    app.include_router(api_router, prefix="/api/v1")
    app.include_router(websocket.router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        registry = app.state.model_registry
        return {
            "status": "healthy",
            "version": VERSION,
            "ollama": {
                "last_discovery_ok": registry.last_discovery_ok,
                "models": len(registry.get_models()),
            },
            "websocket_connections": app.state.connection_manager.connection_count(),
        }

    # Root endpoint
    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "LifeOS API",
            "docs": "/docs",
            "health": "/health"
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
