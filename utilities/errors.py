"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status, a machine-readable code and a
human-readable message. The API renders them as
``{"success": false, "error": message, "code": code}``.
"""

from typing import Dict, Optional


class BookSwapError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "SERVER_ERROR"
    message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or self.message
        self.code = code or self.code
        self.headers = headers
        super().__init__(self.message)


class ValidationFailed(BookSwapError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class NotAuthorized(BookSwapError):
    status_code = 401
    code = "NOT_AUTHORIZED"
    message = "Not authorized"


class InvalidCredentials(BookSwapError):
    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class NotFound(BookSwapError):
    """Also raised when a resource exists but belongs to someone else."""

    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class Conflict(BookSwapError):
    status_code = 409
    code = "USER_EXISTS"
    message = "Username or email already exists"


class TooManyRequests(BookSwapError):
    status_code = 429
    code = "RATE_LIMITED"
    message = "Too many requests, please try again later"


class ServerError(BookSwapError):
    pass


class ImageUploadError(ServerError):
    code = "UPLOAD_FAILED"
    message = "Image upload failed"
