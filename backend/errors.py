"""Domain error taxonomy shared by the services and the request layer.

Each error carries the HTTP status it maps to; the request layer turns any
``ForumError`` into a ``{"error": message}`` JSON body.
"""

from typing import Optional


class ForumError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ForumError):
    """A required field is missing or empty."""

    status_code = 400


class NotFoundError(ForumError):
    status_code = 404

    def __init__(self, message: str = "Post not found"):
        super().__init__(message)


class ConflictError(ForumError):
    """Duplicate upvote by the same identity."""

    status_code = 400


class AuthRequiredError(ForumError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class ForbiddenError(ForumError):
    status_code = 403


class UpstreamError(ForumError):
    """The AI provider failed or returned something unusable."""

    status_code = 500


class StoreError(ForumError):
    """Persistence or query failure; ``detail`` is only exposed in development."""

    status_code = 500

    def __init__(self, message: str = "Database error", detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail
