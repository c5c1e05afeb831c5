"""
Trailpost Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Each failure a caller can observe has a type, an HTTP status and a
       human-readable message. Nothing is swallowed or retried internally.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and the auth dependency; caught by global handlers.

Exception Hierarchy:
    TrailpostError (base)
    ├── ValidationError          → 400 Bad Request (missing required field)
    ├── InvalidOperationError    → 400 Bad Request (e.g. following yourself)
    ├── AlreadyExistsError       → 400 Bad Request (duplicate follow / account)
    ├── UnauthorizedError        → 401 Unauthorized (missing/invalid token)
    ├── NotFoundError            → 404 Not Found
    ├── FileStorageError         → 500 Internal Server Error
    └── StoreError               → 500 Internal Server Error (opaque to caller)
"""

from typing import Any, Dict, Optional


class TrailpostError(Exception):
    """
    Base exception for all Trailpost application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, returned only for client errors)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(TrailpostError):
    """
    Raised when a required field is missing or empty.

    When:    Post with neither text nor photo, blank comment, missing
             registration field, unsupported upload.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidOperationError(TrailpostError):
    """
    Raised when a well-formed request asks for something the rules forbid.

    When:    A user tries to follow or unfollow themselves.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "This operation is not allowed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AlreadyExistsError(TrailpostError):
    """
    Raised when the requested state already holds.

    When:    Following a user that is already followed; registering a
             username or email that is taken.
    HTTP:    400 Bad Request

    Non-fatal: the caller's state is already what it asked for (follow) or
    the caller must pick another value (registration).
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UnauthorizedError(TrailpostError):
    """
    Raised when the caller's identity cannot be established.

    When:    No bearer token, malformed/expired/forged token, wrong password.
    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(TrailpostError):
    """
    Raised when a referenced user or post does not exist.

    HTTP:    404 Not Found

    SQLAlchemy returns None for missing records (not an exception).
    Services convert None → NotFoundError so routes stay free of checks.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class FileStorageError(TrailpostError):
    """
    Raised when the blob store cannot write a file.

    When:    Disk full, permission denied, directory not writable.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StoreError(TrailpostError):
    """
    Raised when the underlying database fails.

    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info (statement, constraint name) is logged
        server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
