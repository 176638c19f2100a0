from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class AuthenticationError(UserError):
    """Raised when the session is missing or rejected by the server."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when the signed-in user's role does not allow an action."""


class ApiError(UserError):
    """Raised when the server answers with a non-success status other than 401."""

    def __init__(self, status_code: int, message: str = "Request failed") -> None:
        super().__init__(f"{message} (HTTP {status_code})")
        self.status_code = status_code
