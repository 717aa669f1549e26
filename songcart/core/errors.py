"""
Application error taxonomy

Every layer raises (or returns) one of these so routes can render a
consistent message and the retry policy can tell transient failures
from permanent ones.
"""

from typing import Any, Optional

import httpx


class AppError(Exception):
    """Base application error"""

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int,
        is_retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.is_retryable = is_retryable

    def to_dict(self) -> dict:
        return {
            "error": get_error_message(self),
            "code": self.code,
            "actions": get_recovery_actions(self),
        }


class NetworkError(AppError):
    """Upstream could not be reached"""

    def __init__(self, message: str = "Network connection failed"):
        super().__init__(message, "NETWORK_ERROR", 0, True)


class ValidationError(AppError):
    """Malformed or missing input"""

    def __init__(self, message: str, fields: Optional[dict[str, str]] = None):
        super().__init__(message, "VALIDATION_ERROR", 400, False)
        self.fields = fields or {}


class AuthError(AppError):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, "AUTH_REQUIRED", 401, False)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "PERMISSION_DENIED", 403, False)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "NOT_FOUND", 404, False)


class RateLimitError(AppError):
    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, "RATE_LIMITED", 429, True)


class ServerError(AppError):
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, "SERVER_ERROR", 500, True)


class ConfigurationError(AppError):
    """A required upstream credential is missing"""

    def __init__(self, message: str = "Service not configured"):
        super().__init__(message, "NOT_CONFIGURED", 503, False)


ERROR_MESSAGES = {
    "NETWORK_ERROR": "Please check your internet connection and try again",
    "AUTH_REQUIRED": "Please log in to continue",
    "PERMISSION_DENIED": "You don't have permission to perform this action",
    "NOT_FOUND": "The requested resource was not found",
    "RATE_LIMITED": "Too many requests. Please wait a moment and try again",
    "SERVER_ERROR": "Something went wrong on our end. Please try again later",
    "VALIDATION_ERROR": "Please check your input and try again",
    "UNKNOWN_ERROR": "An unexpected error occurred. Please try again",
}

# PostgREST / Postgres error codes
_POSTGREST_ERRORS = {
    "PGRST301": lambda: AuthError("Authentication required"),
    "42501": lambda: PermissionDeniedError("Insufficient permissions"),
    "23505": lambda: ValidationError("This record already exists"),
    "23503": lambda: ValidationError("Invalid reference"),
    "22P02": lambda: ValidationError("Invalid input format"),
    "PGRST116": lambda: NotFoundError("Resource not found"),
}


def _from_status(status_code: int, message: str) -> AppError:
    if status_code == 401:
        return AuthError(message)
    if status_code == 403:
        return PermissionDeniedError(message)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 429:
        return RateLimitError(message)
    if status_code in (400, 422):
        return ValidationError(message)
    if status_code >= 500:
        error = ServerError(message)
        error.status_code = status_code
        return error
    return AppError(message, "UNKNOWN_ERROR", status_code, False)


def _is_postgrest_error(error: Any) -> bool:
    return isinstance(error, dict) and all(k in error for k in ("code", "message", "details"))


def handle_error(error: Any) -> AppError:
    """Normalise any raised or returned error into an AppError"""
    if isinstance(error, AppError):
        return error

    if _is_postgrest_error(error):
        factory = _POSTGREST_ERRORS.get(error["code"])
        if factory:
            return factory()
        if "rate limit" in str(error["message"]).lower():
            return RateLimitError()
        return ServerError(str(error["message"]))

    if isinstance(error, httpx.HTTPStatusError):
        return _from_status(error.response.status_code, str(error))

    if isinstance(error, httpx.TransportError):
        return NetworkError(str(error) or "Network connection failed")

    if isinstance(error, Exception):
        return AppError(str(error), "UNKNOWN_ERROR", 500, False)

    return AppError("An unexpected error occurred", "UNKNOWN_ERROR", 500, False)


def get_error_message(error: AppError) -> str:
    """User-facing message for an error"""
    return ERROR_MESSAGES.get(error.code, error.message)


def get_recovery_actions(error: AppError) -> list[dict]:
    """Actions a client can offer the user after a failure"""
    actions = []

    if error.is_retryable:
        actions.append({"label": "Retry", "action": "retry"})

    if error.code == "AUTH_REQUIRED":
        actions.append({"label": "Log In", "action": "login"})
    elif error.code == "NETWORK_ERROR":
        actions.append({"label": "Check Connection", "action": "check-connection"})
    elif error.code == "NOT_FOUND":
        actions.append({"label": "Go Back", "action": "go-back"})

    return actions
