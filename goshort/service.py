"""The URL shortening service."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Sequence

from goshort.errors import (
    AliasTakenError,
    BatchEmptyError,
    BatchTooLargeError,
    ExpiredError,
    InvalidExpiresError,
    NotFoundError,
)
from goshort.models import (
    URL,
    BatchResult,
    CreateParams,
    CreateRequest,
    Encoder,
    ListOptions,
    NoopChecker,
    NoopPreviewFetcher,
    PreviewFetcher,
    Storage,
    UpdateRequest,
    URLChecker,
)
from goshort.validator import validate_alias, validate_expires_in, validate_url

BATCH_MAX_SIZE = 50
DEFAULT_PER_PAGE = 20

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1


def parse_expires_in(value: str) -> timedelta:
    """Turn "<N>h" or "<N>d" into a timedelta."""
    number = _INT_RE.fullmatch(value[:-1]) if value else None
    n = int(number.group()) if number else 0
    if n <= 0 or n > _INT64_MAX:
        raise InvalidExpiresError(f'parse expires_in "{value}": invalid expires_in duration')
    unit = value[-1]
    try:
        if unit == "h":
            return timedelta(hours=n)
        if unit == "d":
            return timedelta(days=n)
    except OverflowError:
        raise InvalidExpiresError(
            f'parse expires_in "{value}": invalid expires_in duration'
        ) from None
    raise InvalidExpiresError(
        f'parse expires_in "{value}": unsupported unit "{unit}": invalid expires_in duration'
    )


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _expiry_from(expires_in: str) -> datetime:
    validate_expires_in(expires_in)
    return datetime.now(timezone.utc) + parse_expires_in(expires_in)


class ShortenerService:
    """Business logic for creating, resolving and managing short URLs."""

    def __init__(
        self,
        store: Storage,
        encoder: Encoder,
        preview: PreviewFetcher | None = None,
        checker: URLChecker | None = None,
    ) -> None:
        self._store = store
        self._encoder = encoder
        self._preview = preview if preview is not None else NoopPreviewFetcher()
        self._checker = checker if checker is not None else NoopChecker()

    def create(self, req: CreateRequest) -> URL:
        """Validate the request, pick a short code and persist the URL."""
        validate_url(req.url)
        self._checker.check(req.url)
        expires_at = _expiry_from(req.expires_in) if req.expires_in else None
        short_code, is_custom = self._resolve_code(req.custom_alias)
        try:
            title, description = self._preview.fetch(req.url)
        except Exception:
            title, description = "", ""
        return self._store.create_url(
            CreateParams(
                short_code=short_code,
                original_url=req.url,
                is_custom=is_custom,
                expires_at=expires_at,
                title=title,
                description=description,
            )
        )

    def _resolve_code(self, alias: str) -> tuple[str, bool]:
        if not alias:
            return self._encoder.encode(self._store.increment_counter()), False
        validate_alias(alias)
        try:
            self._store.get_by_code(alias)
        except NotFoundError:
            return alias, True
        raise AliasTakenError(f'create url: alias "{alias}": alias already taken')

    def get_by_code(self, code: str) -> URL:
        """Return the URL for code, raising ExpiredError once it has expired."""
        url = self._store.get_by_code(code)
        if url.expires_at is not None and datetime.now(timezone.utc) > _as_utc(url.expires_at):
            raise ExpiredError(f'get by code "{code}": url expired')
        return url

    def delete(self, code: str) -> None:
        """Remove the URL stored under code."""
        self._store.delete_by_code(code)

    def list(self, opts: ListOptions | None = None) -> tuple[list[URL], int]:
        """Return one page of URLs, newest first, and the total count."""
        opts = opts or ListOptions()
        page = opts.page if opts.page > 0 else 1
        per_page = opts.per_page if opts.per_page > 0 else DEFAULT_PER_PAGE
        urls = self._store.list_urls(per_page, (page - 1) * per_page)
        total = self._store.count_urls()
        return urls, total

    def increment_clicks(self, code: str) -> None:
        """Add one to the click counter of code."""
        self._store.increment_clicks(code)

    def create_batch(self, reqs: Sequence[CreateRequest]) -> list[BatchResult]:
        """Create up to 50 URLs, recording each item's failure in its result."""
        if not reqs:
            raise BatchEmptyError()
        if len(reqs) > BATCH_MAX_SIZE:
            raise BatchTooLargeError()
        results = []
        for req in reqs:
            try:
                results.append(BatchResult(url=self.create(req)))
            except Exception as exc:
                results.append(BatchResult(error=exc))
        return results

    def update(self, code: str, req: UpdateRequest) -> URL:
        """Set a new expiry for code; expires_in "0" removes the expiry."""
        expires_at = None if req.expires_in == "0" else _expiry_from(req.expires_in)
        return self._store.update_expiry(code, expires_at)