"""Data types and collaborator interfaces of the shortener."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol, Sequence, runtime_checkable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class URL:
    """A shortened URL entry."""

    short_code: str
    original_url: str
    id: int = 0
    is_custom: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime | None = None
    click_count: int = 0
    title: str = ""
    description: str = ""


@dataclass
class CreateRequest:
    """Input for creating a shortened URL."""

    url: str
    custom_alias: str = ""
    expires_in: str = ""


@dataclass
class ListOptions:
    """Pagination settings; non-positive values fall back to defaults."""

    page: int = 0
    per_page: int = 0


@dataclass
class UpdateRequest:
    """Input for updating a shortened URL; only the expiry is mutable."""

    expires_in: str


@dataclass
class BatchResult:
    """Outcome of one item of a batch; exactly one of url and error is set."""

    url: URL | None = None
    error: Exception | None = None


@dataclass
class CreateParams:
    """Data for persisting a new URL; id and creation time come from storage."""

    short_code: str
    original_url: str
    is_custom: bool = False
    expires_at: datetime | None = None
    title: str = ""
    description: str = ""


@runtime_checkable
class Cache(Protocol):
    """Cache for URL lookups."""

    def get(self, key: str) -> str | None:
        """Return the cached value, or None on a miss."""

    def set(self, key: str, value: str, ttl: timedelta) -> None:
        """Store a value for ttl."""

    def delete(self, key: str) -> None:
        """Remove a cached value."""


@runtime_checkable
class URLChecker(Protocol):
    """Verifies a URL before it is persisted.

    Raises UnsafeURLError for a dangerous URL; transient failures must be
    swallowed so URL creation is not blocked.
    """

    def check(self, raw_url: str) -> None:
        """Raise UnsafeURLError if the URL is flagged."""


@runtime_checkable
class Encoder(Protocol):
    """Turns integer ids into short codes."""

    def encode(self, id: int) -> str:
        """Return the short code for id."""


@runtime_checkable
class PreviewFetcher(Protocol):
    """Fetches page metadata; returns empty strings on any failure."""

    def fetch(self, raw_url: str) -> tuple[str, str]:
        """Return (title, description) for the page."""


@runtime_checkable
class Storage(Protocol):
    """Persistence used by the shortener service."""

    def create_url(self, params: CreateParams) -> URL:
        """Insert a record and return it."""

    def get_by_code(self, code: str) -> URL:
        """Return the record, raising NotFoundError if missing."""

    def delete_by_code(self, code: str) -> None:
        """Delete the record, raising NotFoundError if missing."""

    def list_urls(self, limit: int, offset: int) -> list[URL]:
        """Return a page of records, newest first."""

    def count_urls(self) -> int:
        """Return the number of records."""

    def increment_clicks(self, code: str) -> None:
        """Add one to the click counter of a record."""

    def delete_expired(self, batch_size: int) -> int:
        """Delete up to batch_size expired records and return how many."""

    def get_counter(self) -> int:
        """Return the global id counter."""

    def increment_counter(self) -> int:
        """Increment the global id counter and return the new value."""

    def update_expiry(self, code: str, expires_at: datetime | None) -> URL:
        """Set or clear the expiry, raising NotFoundError if missing."""


@runtime_checkable
class Service(Protocol):
    """Operations for managing shortened URLs."""

    def create(self, req: CreateRequest) -> URL:
        """Create a shortened URL."""

    def get_by_code(self, code: str) -> URL:
        """Return a live URL by short code."""

    def delete(self, code: str) -> None:
        """Remove a URL by short code."""

    def list(self, opts: ListOptions | None = None) -> tuple[list[URL], int]:
        """Return a page of URLs and the total count."""

    def increment_clicks(self, code: str) -> None:
        """Add one to the click counter of a URL."""

    def create_batch(self, reqs: Sequence[CreateRequest]) -> list[BatchResult]:
        """Create several URLs, reporting failures per item."""

    def update(self, code: str, req: UpdateRequest) -> URL:
        """Update mutable fields of a URL."""


def _require_str(raw_url: object) -> str:
    if not isinstance(raw_url, str):
        raise TypeError(f"raw_url must be str, not {type(raw_url).__name__}")
    return raw_url


class NoopChecker:
    """URL checker that accepts every URL; used when checking is disabled."""

    def check(self, raw_url: str) -> None:
        """Accept any URL string; reject only values that are not strings."""
        _require_str(raw_url)


class NoopPreviewFetcher:
    """Preview fetcher that always returns empty metadata."""

    def fetch(self, raw_url: str) -> tuple[str, str]:
        """Return empty title and description for any URL string."""
        _require_str(raw_url)
        title = description = ""
        return title, description