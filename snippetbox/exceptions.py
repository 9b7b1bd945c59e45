"""
Snippetbox: Custom Exception Hierarchy
======================================

What:  Application-specific exceptions for the error scenarios handlers care about.
How:   Each exception carries a message and optional context dict. Handlers
       recover the domain errors (duplicate email, bad credentials, missing
       records) into user feedback; global exception handlers in main.py turn
       the rest into plain-text responses.

Exception Hierarchy:
    SnippetboxError (base)
    ├── NotFoundError            → 404 Not Found (or a redirect, per handler)
    ├── DuplicateEmailError      → field error on the signup form
    ├── InvalidCredentialsError  → non-field / field error on login and password forms
    ├── DecodeError              → 400 Bad Request (malformed form body)
    ├── ProgrammerError          → 500, never recovered (bad form destination)
    ├── DatabaseError            → 500 Internal Server Error
    └── AuthenticationRequired   → 303 See Other to /user/login

Form validation failures are not exceptions: a Form whose valid() is False is
re-rendered with status 422 by the handler that decoded it.
"""

from typing import Any, Dict, Optional


class SnippetboxError(Exception):
    """
    Base exception for all Snippetbox application errors.

    Attributes:
        message:  Human-readable description (safe to log, not always shown)
        context:  Additional debug info (logged but NEVER written to a response)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class NotFoundError(SnippetboxError):
    """
    Raised when a requested record does not exist.

    When:  Snippet id unknown or already expired; user id unknown.
    HTTP:  404 Not Found via the global handler, unless the route recovers it.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id is not None:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateEmailError(SnippetboxError):
    """Raised by UserService.insert when the users_uc_email constraint rejects the row."""

    def __init__(self, email: Optional[str] = None):
        ctx = {"email": email} if email else {}
        super().__init__(message="Email address is already in use", context=ctx)


class InvalidCredentialsError(SnippetboxError):
    """
    Raised when an email/password pair does not check out.

    The same error covers "no such email" and "wrong password" so callers
    cannot tell the two apart.
    """

    def __init__(self):
        super().__init__(message="Invalid credentials")


class DecodeError(SnippetboxError):
    """
    Raised when a submitted form value cannot be converted to its field type.

    HTTP:  400 Bad Request. The client sent something our own forms never
           produce (e.g. expires=abc), so there is nothing to re-render.
    """

    def __init__(
        self,
        message: str = "Malformed form submission",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ProgrammerError(SnippetboxError):
    """
    Raised when form decoding is pointed at something that is not a Form class.

    This is a bug in our code, not in the request. Nothing catches it: it
    reaches the top-level handler as a 500 in production and fails the test
    that exercises the route.
    """


class DatabaseError(SnippetboxError):
    """
    Raised when a database operation fails unexpectedly.

    The response body is always generic; the driver error is kept in
    `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationRequired(SnippetboxError):
    """
    Raised by the route guard when an anonymous request hits a protected page.

    The requested path is already stored in the session when this is raised;
    the handler in main.py only issues the redirect.
    """

    def __init__(self, path: str):
        super().__init__(message="Authentication required", context={"path": path})
        self.path = path
