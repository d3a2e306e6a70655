"""
Service-level exceptions.

Services raise these; a single handler in the app factory turns them into
``{"error": ..., **details}`` JSON responses with the matching status code.
"""
from typing import Any, Dict, List, Optional


class ServiceError(Exception):
    status_code = 500
    default_message = "An internal server error occurred"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.message}
        payload.update(self.details)
        return payload


class InvalidInput(ServiceError):
    status_code = 400
    default_message = "Invalid request"


class ValidationFailed(ServiceError):
    status_code = 400
    default_message = "Order validation failed"

    def __init__(self, errors: List[Dict[str, Any]], message: Optional[str] = None):
        super().__init__(message, errors=errors)
        self.errors = errors


class NotFound(ServiceError):
    status_code = 404
    default_message = "Not found"


class AuthenticationRequired(ServiceError):
    status_code = 401
    default_message = "Authentication required"


class Unauthorized(ServiceError):
    status_code = 403
    default_message = "Not authorized"


class Conflict(ServiceError):
    status_code = 409
    default_message = "Conflicting update, please try again"


class PersistenceError(ServiceError):
    status_code = 500
    default_message = "A database error occurred, please try again"


class NotificationFailure(ServiceError):
    """Raised by mail transports. Logged by the dispatcher, never returned to clients."""
    status_code = 502
    default_message = "Email delivery failed"
