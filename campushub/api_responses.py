"""
API Response Utilities - Standardized error handling and responses

Every body carries `success`, `code` and `message`; error bodies add an
`error` string and, for validation failures, a list of per-field `errors`.
"""

from flask import jsonify
from functools import wraps
from pydantic import ValidationError
import structlog

logger = structlog.get_logger('api')


# API Error Codes
class ErrorCode:
    SUCCESS = "SUCCESS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    STORAGE_ERROR = "STORAGE_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


DEFAULT_MESSAGES = {
    ErrorCode.NOT_FOUND: "Resource not found",
    ErrorCode.VALIDATION_ERROR: "Validation failed",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.STORAGE_ERROR: "Storage operation failed",
    ErrorCode.DATABASE_ERROR: "Database operation failed",
    ErrorCode.RATE_LIMIT_EXCEEDED: "Rate limit exceeded",
}


def success_response(data=None, message=None, status_code=200):
    """
    Standard success response format for API endpoints
    """
    response = {"code": ErrorCode.SUCCESS, "success": True, "message": message or "OK"}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def error_response(
    error_code=ErrorCode.INTERNAL_ERROR,
    message=None,
    error=None,
    details=None,
    status_code=400,
    log_error=True,
):
    """
    Standard error response format for API endpoints
    """
    message = message or DEFAULT_MESSAGES.get(error_code, "Request failed")
    response = {
        "code": error_code,
        "success": False,
        "message": message,
        "error": error or message,
    }

    if details:
        response["errors"] = details

    if log_error and error_code in [ErrorCode.INTERNAL_ERROR, ErrorCode.VALIDATION_ERROR]:
        logger.error(f"{error_code}: {message} | Error: {error} | Details: {details}")

    return jsonify(response), status_code


def validation_errors_from_pydantic(exc: ValidationError):
    """Flatten a pydantic ValidationError into [{field, message, value}]"""
    errors = []
    for err in exc.errors(include_url=False):
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        value = err.get("input")
        if isinstance(value, dict):
            value = None
        errors.append({"field": field, "message": err.get("msg"), "value": value})
    return errors


def handle_api_errors(f):
    """
    Decorator to standardize error handling for API endpoints
    Built-in exceptions raised by endpoint code become consistent error responses;
    CampusHub exceptions propagate to the app-level handlers.
    """

    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValidationError as e:
            return validation_error_response(validation_errors_from_pydantic(e))
        except ValueError as e:
            return error_response(ErrorCode.VALIDATION_ERROR, message=str(e), status_code=400)
        except KeyError as e:
            return error_response(
                ErrorCode.VALIDATION_ERROR, message=f"Missing required parameter: {str(e)}", status_code=400
            )

    return wrapper


def validation_error_response(errors, message="Validation failed"):
    """
    Convenience function for validation errors
    """
    return error_response(
        ErrorCode.VALIDATION_ERROR,
        message=message,
        details=errors,
        status_code=400,
    )


def not_found_response(resource_type="Resource", resource_id=None):
    """
    Convenience function for not found errors
    """
    if resource_id is not None:
        message = f"{resource_type} with ID '{resource_id}' not found"
    else:
        message = f"{resource_type} not found"
    return error_response(ErrorCode.NOT_FOUND, message=message, status_code=404)
