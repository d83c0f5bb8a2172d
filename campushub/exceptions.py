"""
CampusHub - Custom Exceptions and Exception Handlers
"""
import structlog
from flask import request
from flask_limiter.errors import RateLimitExceeded
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from campushub.api_responses import ErrorCode, error_response, validation_errors_from_pydantic

logger = structlog.get_logger('exceptions')


class CampusHubException(Exception):
    """Base exception for CampusHub"""
    status_code = 400

    def __init__(self, message: str, code: str = "CAMPUSHUB_ERROR", status_code: int = None):
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationException(CampusHubException):
    """Request validation failed; carries per-field errors"""
    def __init__(self, message: str = "Validation failed", errors: list = None):
        super().__init__(message, code=ErrorCode.VALIDATION_ERROR, status_code=400)
        self.errors = errors or []
        logger.warning(f"Validation error: {message} {self.errors}")


class FileValidationException(CampusHubException):
    """Uploaded file missing, of the wrong type, or too large"""
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.VALIDATION_ERROR, status_code=400)
        logger.warning(f"File validation error: {message}")


class ResourceNotFoundException(CampusHubException):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, code=ErrorCode.NOT_FOUND, status_code=404)


class StorageException(CampusHubException):
    """Object storage (file bytes) failures"""
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.STORAGE_ERROR, status_code=500)
        logger.error(f"Storage error: {message}")


class StorageConfigurationException(StorageException):
    """Object storage cannot be configured at startup"""


class DatabaseException(CampusHubException):
    """Database-related exceptions"""
    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.DATABASE_ERROR, status_code=500)
        logger.error(f"Database error: {message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(RequestEntityTooLarge)
    def handle_request_too_large(e):
        max_size = app.config.get('CAMPUSHUB_MAX_FILE_SIZE', 0) // (1024 * 1024)
        return error_response(
            ErrorCode.VALIDATION_ERROR,
            message=f"File size too large. Maximum size is {max_size}MB.",
            status_code=400,
        )

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(e):
        logger.warning(f"Rate limit exceeded on {request.path}: {e.description}")
        return error_response(
            ErrorCode.RATE_LIMIT_EXCEEDED,
            message=f"Rate limit exceeded: {e.description}",
            status_code=429,
            log_error=False,
        )

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return error_response(
            e.name.upper().replace(' ', '_'),
            message=e.description,
            status_code=e.code,
            log_error=False,
        )

    @app.errorhandler(ValidationError)
    def handle_pydantic_validation(e):
        return error_response(
            ErrorCode.VALIDATION_ERROR,
            message="Validation failed",
            details=validation_errors_from_pydantic(e),
            status_code=400,
        )

    @app.errorhandler(CampusHubException)
    def handle_campushub_exception(e):
        return error_response(
            e.code,
            message=e.message,
            error=e.message,
            details=getattr(e, 'errors', None),
            status_code=e.status_code,
            log_error=False,
        )

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return error_response(
            ErrorCode.INTERNAL_ERROR,
            message='An unexpected error occurred',
            error=str(e),
            status_code=500,
            log_error=False,
        )
