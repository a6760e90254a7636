# streamrokuo_admin/errors.py
from typing import Optional


class AdminConsoleError(Exception):
    """Base class; ``message`` is what operators see, verbatim."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputValidationError(AdminConsoleError):
    """Raised before any network call (malformed identifier, bad filter value)."""


class BackendError(AdminConsoleError):
    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class AuthError(BackendError):
    pass


class WatchUrlError(AdminConsoleError):
    pass


class LoginRequired(AdminConsoleError):
    def __init__(self, message: str = "Sign in required"):
        super().__init__(message)


class NotAuthorized(AdminConsoleError):
    title = "Not authorized"

    def __init__(self, message: str = "Your account does not have admin access."):
        super().__init__(message)
