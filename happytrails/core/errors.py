"""
Error taxonomy shared by the identity provider, the booking store and the pages.
"""


class AppError(Exception):
    """Base class for errors that are shown to the visitor."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    """A required booking field is missing or out of range."""


class AuthError(AppError):
    """Credentials were rejected or the identity provider could not be reached."""


class StoreError(AppError):
    """The booking/profile persistence operation failed."""


class LoginRequired(Exception):
    """Raised by the route guard; turned into a redirect to /login."""
