"""
Identity Exceptions.

Errors raised by the Credential Manager, the Session Store and the
attribute store clients.
"""
from typing import Optional


class IdentityError(Exception):
    """Base class for all navigator_identity errors."""

    status: int = 500
    title: str = 'internal_error'

    def __init__(self, message: Optional[str] = None, *args) -> None:
        self.message = message or self.title
        super().__init__(self.message, *args)


class Unauthorized(IdentityError):
    """A password, reset token or scratch token did not match."""

    status = 401
    title = 'unauthorized'


class NotFound(IdentityError):
    """Session read against a tombstoned or absent key."""

    status = 404
    title = 'not_found'


class StoreUnavailable(IdentityError):
    """The attribute store failed or could not be reached.

    Never retried here: the caller decides what to do with it.
    """

    status = 503
    title = 'store_unavailable'


class BadRequest(IdentityError):
    """The request body is not valid JSON or misses required fields."""

    status = 400
    title = 'bad_request'
