"""
Potluck Backend: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions, one per failure class the API reports.
How:   Each exception carries a client-safe message and a context dict for logs.
       Global handlers in main.py turn them into JSON error responses.
Who:   Raised by services and dependencies; caught only by the global handlers.

Exception Hierarchy:
    PotluckError (base)
    ├── ValidationError              → 400 Bad Request
    │   └── UnsupportedMediaTypeError → 400 Bad Request
    ├── AuthenticationError          → 401 Unauthorized
    │   └── InvalidTokenError        → 401 Unauthorized
    ├── AuthorizationError           → 403 Forbidden
    ├── NotFoundError                → 404 Not Found
    ├── UpstreamError                → 500 Internal Server Error
    │   ├── UploadError              (object storage)
    │   └── DatabaseError            (relational store)
    └── ConfigurationError           → 500 Internal Server Error

Subclasses usually only override `default_message`; pass `message=` to say
something more specific.
"""

from typing import Any, Dict, Optional


class PotluckError(Exception):
    """
    Base exception for all Potluck application errors.

    Attributes:
        message:  Client-safe description, returned in the error body
        context:  Debug details; logged, and echoed as `details` for 400s only
    """

    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.context = dict(context or {})
        super().__init__(self.message)


def _resource_context(
    resource: str,
    resource_id: Optional[str],
    context: Optional[Dict[str, Any]],
) -> Dict[str, Any]:
    ctx = dict(context or {}, resource=resource)
    if resource_id:
        ctx["resource_id"] = resource_id
    return ctx


class ValidationError(PotluckError):
    """
    Client input was rejected.

    When:    Missing form fields, malformed email, empty or oversized upload,
             duplicate email at signup, malformed UUID in a form field.
    """

    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.field = field
        ctx = dict(context or {})
        if field:
            ctx["field"] = field
        super().__init__(message, ctx)


class UnsupportedMediaTypeError(ValidationError):
    """The upload is neither an image nor a video, or not allowed at this endpoint."""

    def __init__(
        self,
        content_type: str,
        allowed: Optional[list] = None,
        field: str = "media",
    ):
        allowed = allowed or ["image/*", "video/*"]
        super().__init__(
            message=(
                f"Content type '{content_type or 'unknown'}' is not supported. "
                f"Allowed: {', '.join(allowed)}"
            ),
            field=field,
            context={"content_type": content_type, "allowed": allowed},
        )


class AuthenticationError(PotluckError):
    """No usable credentials: missing header, non-Bearer scheme, wrong password."""

    default_message = "Authentication required"


class InvalidTokenError(AuthenticationError):
    default_message = "Invalid or expired token"


class AuthorizationError(PotluckError):
    """An authenticated caller tried to change something it does not own."""

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"You are not allowed to modify this {resource}",
            _resource_context(resource, resource_id, context),
        )


class NotFoundError(PotluckError):
    """
    The requested row does not exist.

    SQLAlchemy returns None for missing rows; services convert that into
    this exception so the handler can answer 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        else:
            message = f"The requested {resource} was not found"
        super().__init__(message, _resource_context(resource, resource_id, context))


class UpstreamError(PotluckError):
    """
    A backing service (blob store, database) failed.

    The client sees only the generic message; the context (operation name,
    original error type) goes to the log.
    """


class UploadError(UpstreamError):
    default_message = "Failed to upload media. Please try again."


class DatabaseError(UpstreamError):
    """Context names the failed operation."""

    default_message = "A database error occurred. Please try again."


class ConfigurationError(PotluckError):
    """A required setting (e.g. the signing secret) is missing."""

    default_message = "The server is not configured correctly"
