"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these exceptions; ``main.py`` registers a handler that renders
them as ``{"message": ...}`` JSON with the exception's ``status_code``.
"""

from datetime import datetime
from typing import Any, Dict


class ServiceError(Exception):
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(ServiceError):
    """Missing or malformed input; the client must fix it and retry."""
    status_code = 400
    message = "Invalid request"


class ConflictError(ServiceError):
    status_code = 400
    message = "Email already registered"


class AuthError(ServiceError):
    """Bad credentials. The message never says which part was wrong."""
    status_code = 400
    message = "Invalid credentials"


class Unauthenticated(AuthError):
    status_code = 401
    message = "Authentication token missing"


class InvalidToken(AuthError):
    status_code = 403
    message = "Invalid token"


class TokenExpired(AuthError):
    """Token is well-formed but past its expiry; the client should refresh."""
    status_code = 403
    message = "Token expired"

    def __init__(self, expired_at: datetime, message: str | None = None):
        self.expired_at = expired_at
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "expiredAt": self.expired_at.isoformat()}


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"


class StoreUnavailable(ServiceError):
    status_code = 503
    message = "Database is unavailable"
