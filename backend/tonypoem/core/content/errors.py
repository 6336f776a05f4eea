"""
Exception taxonomy for content access and admin actions.

Pages catch these locally and turn them into messages; none of them is meant
to reach the ASGI server.
"""


class ContentError(Exception):
    """Base class for content layer failures."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: str = "", *, user_message: str = None):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class FetchError(ContentError):
    """Store read failed (network, credentials, query)."""

    user_message = "Failed to load content. Please try again later."


class WriteError(ContentError):
    """Create, update, delete or upload failed."""

    user_message = "Failed to save your changes. Please try again."


class NotFoundError(ContentError):
    """A requested single record does not exist."""

    user_message = "The requested item could not be found."


class AuthError(ContentError):
    """Credentials were rejected."""

    user_message = "Login failed. Please check your credentials."


class BusyError(ContentError):
    """The same mutation is already in progress."""

    user_message = "That action is already in progress. Please wait."
