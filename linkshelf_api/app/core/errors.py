"""
Exception hierarchy shared by the database layer and the services.

Every error carries the HTTP status it maps to, so the API layer can
render any ``ServiceError`` without knowing which service raised it.
Messages are meant for clients and must not contain driver details.
"""

from fastapi import status


class ServiceError(Exception):
    """Base class for errors raised by services."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "server error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "bad request"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "missing token"


class InvalidCredentials(Unauthorized):
    default_message = "invalid credentials"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "not found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "conflict"


class ServerError(ServiceError):
    """Store failure or exhausted connection pool."""
