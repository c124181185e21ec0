"""
Notecard — Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the failure modes of each collaborator.
How:   Each exception carries a user-facing message and an optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with matching HTTP status codes.
Who:   Raised by services, the auth gate and routes; caught by global handlers.

Exception Hierarchy:
    NotecardError (base)
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── AuthenticationError   → 401 Unauthorized (no or bad session)
    ├── NotFoundError         → 404 Not Found
    ├── StorageError          → 502 Bad Gateway (object storage failed)
    └── DatabaseError         → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class NotecardError(Exception):
    """
    Base exception for all Notecard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned for server errors)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NotecardError):
    """
    Raised when client input fails validation.

    When:    Unsupported attachment type, empty or oversized attachment,
             missing required form field.
    HTTP:    400 Bad Request
    """

    status_code = 400

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


class AuthenticationError(NotecardError):
    """
    Raised by the auth gate when no valid session is presented.

    When:    Missing token, bad signature, expired token, missing claims.
    HTTP:    401 Unauthorized
    """

    status_code = 401

    def __init__(
        self,
        message: str = "Sign in to continue",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(NotecardError):
    """
    Raised when a requested resource does not exist.

    When:    A storage object is requested that was never uploaded.
    HTTP:    404 Not Found
    """

    status_code = 404

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


class StorageError(NotecardError):
    """
    Raised when the object storage service fails.

    When:    Upload write fails, a URL cannot be signed, the S3 endpoint
             rejects a call.
    HTTP:    502 Bad Gateway

    The message stays generic; object keys and provider errors go to context.
    """

    status_code = 502

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(NotecardError):
    """
    Raised when data service operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock, etc.
    HTTP:    500 Internal Server Error

    The message returned to the client is always generic; details are logged.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
