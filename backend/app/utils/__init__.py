"""
Utility modules for the LifeOS application.
"""

from .exceptions import (
    LifeOSException,
    NotFoundError,
    ForbiddenError,
    AuthenticationError,
    ValidationError,
    PersistenceError,
    NoModelsAvailableError,
    LLMServiceError,
    UpstreamError,
    NetworkError,
    LLMTimeoutError,
)

__all__ = [
    "LifeOSException",
    "NotFoundError",
    "ForbiddenError",
    "AuthenticationError",
    "ValidationError",
    "PersistenceError",
    "NoModelsAvailableError",
    "LLMServiceError",
    "UpstreamError",
    "NetworkError",
    "LLMTimeoutError",
]
