"""Error types raised by the services and rendered by the web layer."""

from __future__ import annotations


class RecipeAPIError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(RecipeAPIError):
    """Malformed client input."""

    status_code = 400
    message = "Invalid request"


class AuthError(RecipeAPIError):
    status_code = 401
    message = "Invalid username or password"


class ForbiddenError(RecipeAPIError):
    status_code = 403
    message = "Not logged in"


class NotFoundError(RecipeAPIError):
    status_code = 404
    message = "Recipe not found"


class ConflictError(RecipeAPIError):
    status_code = 409
    message = "Username is already taken"


class StoreError(RecipeAPIError):
    """The document store rejected or failed an operation."""


class CacheError(RecipeAPIError):
    """The cache server failed for a reason other than a missing key."""


__all__ = [
    "AuthError",
    "CacheError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "RecipeAPIError",
    "StoreError",
    "ValidationError",
]
