"""Exceptions raised by the URL shortener."""

from __future__ import annotations


class ShortenerError(Exception):
    """Base class for every error the shortener reports."""

    default_message = "shortener error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class NotFoundError(ShortenerError):
    """No URL is stored under the requested short code."""

    default_message = "not found"


class ExpiredError(ShortenerError):
    """The URL exists but its expiry time has passed."""

    default_message = "url expired"


class AliasTakenError(ShortenerError):
    """The requested custom alias is already in use."""

    default_message = "alias already taken"


class ReservedPathError(ShortenerError):
    """The requested alias collides with a built-in route."""

    default_message = "alias is a reserved path"


class InvalidURLError(ShortenerError):
    """The URL is malformed, too long, or targets a forbidden host."""

    default_message = "invalid url"


class InvalidAliasError(ShortenerError):
    """The alias has the wrong length or characters."""

    default_message = "invalid alias"


class InvalidExpiresError(ShortenerError):
    """The expires_in duration is malformed or out of range."""

    default_message = "invalid expires_in duration"


class BatchTooLargeError(ShortenerError):
    """A batch request holds more items than allowed."""

    default_message = "batch exceeds maximum of 50 items"


class BatchEmptyError(ShortenerError):
    """A batch request holds no items."""

    default_message = "batch must contain at least one item"


class UnsafeURLError(ShortenerError):
    """The URL was flagged as dangerous by a safety checker."""

    default_message = "url flagged as unsafe"