"""
Custom exception classes for the LifeOS application.
"""

from typing import Optional


class LifeOSException(Exception):
    """Base exception for all LifeOS errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(LifeOSException):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, resource_id: Optional[str] = None, detail: Optional[str] = None):
        message = f"{resource} not found" if resource_id is None else f"{resource} not found: {resource_id}"
        super().__init__(message, detail)
        self.resource = resource
        self.resource_id = resource_id


class ForbiddenError(LifeOSException):
    """Raised when a user touches a resource they do not own."""

    def __init__(self, message: str = "Forbidden", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthenticationError(LifeOSException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message, detail)


class ValidationError(LifeOSException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field


class PersistenceError(LifeOSException):
    """Raised when the database rejects a write."""


class NoModelsAvailableError(LifeOSException):
    """Raised when no active local model matches a processing request."""

    def __init__(self, message: str = "No active Ollama models available for processing", detail: Optional[str] = None):
        super().__init__(message, detail)


class LLMServiceError(LifeOSException):
    """Raised when LLM service operations fail."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"LLM service error: {message}", detail)


class UpstreamError(LLMServiceError):
    """The inference server answered with a non-success status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        super().__init__(f"Ollama API error: {status_code}", detail)
        self.status_code = status_code


class NetworkError(LLMServiceError):
    """The inference server could not be reached."""


class LLMTimeoutError(LLMServiceError):
    """A request to the inference server exceeded its time bound."""
