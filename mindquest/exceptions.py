"""
Standardized exception hierarchy for mindquest
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class MindQuestError(Exception):
    """
    Base exception for all mindquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise MindQuestError(
            message="Failed to save mood",
            user_id="uid-123",
            operation="record_mood",
            context={"mood": 4}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "Something went wrong. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(MindQuestError):
    """
    Raised when user input fails validation

    Examples:
    - Empty journal text
    - Blank display name
    - Mood value outside 1..5

    Example:
        raise ValidationError(
            message="Journal entry cannot be empty.",
            field="entry",
            value="   ",
            user_id="uid-123"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=message,
            context={"field": field, "value": value},
            **kwargs
        )


class ActionNotAllowedError(MindQuestError):
    """Action is not available in the current progression state"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message=message,
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class PersistenceError(MindQuestError):
    """
    Base class for document store errors
    """
    pass


class StoreConnectionError(PersistenceError):
    """Document store connection failed"""

    def __init__(self, message: str = "Document store connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble reaching your saved progress. Please try again in a moment.",
            **kwargs
        )


class WriteError(PersistenceError):
    """Document write failed"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", "Could not save your progress. Please try again.")
        super().__init__(message=message, **kwargs)


class DocumentNotFoundError(PersistenceError):
    """Requested document or record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(MindQuestError):
    """
    Base class for external API failures
    """

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.status_code = status_code
        kwargs.setdefault(
            "user_message",
            f"We're having trouble connecting to {service or 'an external service'}. Please try again later."
        )
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class GenerationError(ExternalAPIError):
    """Generation endpoint call failed (network error, non-2xx, no text)"""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("service", "the generation endpoint")
        super().__init__(message=message, **kwargs)


class InvalidGenerationResponseError(GenerationError):
    """Generated text is not JSON or is missing required fields"""

    def __init__(self, message: str, raw_text: Optional[str] = None, **kwargs):
        self.raw_text = raw_text
        super().__init__(
            message=message,
            user_message="The generated content could not be understood.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(MindQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> MindQuestError:
    """
    Wrap external exceptions (psycopg, httpx, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate MindQuestError subclass

    Example:
        try:
            await conn.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="update_document", user_id=uid)
    """
    import httpx
    import psycopg

    if isinstance(error, MindQuestError):
        return error

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return StoreConnectionError(
            message=f"Document store connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return WriteError(
            message=f"Document store query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.HTTPStatusError):
        return GenerationError(
            message=f"Generation endpoint returned error: {error.response.status_code}",
            status_code=error.response.status_code,
            user_id=user_id,
            operation=operation,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return GenerationError(
            message=f"Generation request failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    # Generic fallback
    else:
        return MindQuestError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
