"""Tools and resources exposing the shortener to assistant clients."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from goshort.errors import (
    AliasTakenError,
    InvalidAliasError,
    InvalidExpiresError,
    InvalidURLError,
    ReservedPathError,
)
from goshort.models import URL, CreateRequest, ListOptions, Service, UpdateRequest

SERVER_NAME = "goshort"
SERVER_VERSION = "0.4.0"
STATS_SUMMARY_URI = "goshort://stats/summary"
_URL_PREFIX = "goshort://urls/"
_QR_SUFFIX = "/qr"


class ResourceNotFoundError(LookupError):
    """No resource exists at the requested URI."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"resource not found: {uri}")
        self.uri = uri


def format_utc(value: datetime | None) -> str | None:
    """Render a datetime as RFC 3339 in UTC; None stays None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def extract_code_from_uri(uri: str) -> str:
    """Return the code from "goshort://urls/{code}", or "" if there is none."""
    if len(uri) <= len(_URL_PREFIX):
        return ""
    return uri[len(_URL_PREFIX):]


def extract_code_from_qr_uri(uri: str) -> str:
    """Return the code from "goshort://urls/{code}/qr", or "" if there is none."""
    if not uri.startswith(_URL_PREFIX) or not uri.endswith(_QR_SUFFIX):
        return ""
    start, end = len(_URL_PREFIX), len(uri) - len(_QR_SUFFIX)
    if start >= end:
        return ""
    return uri[start:end]


_BATCH_ERRORS = (
    (InvalidURLError, "invalid_url", "The URL format is invalid"),
    (AliasTakenError, "alias_taken", "The requested alias is already in use"),
    (ReservedPathError, "reserved_path", "The alias is a reserved path"),
    (InvalidAliasError, "invalid_alias", "The alias format is invalid"),
    (InvalidExpiresError, "invalid_expires", "The expires_in duration is invalid"),
)


def batch_item_error(err: BaseException) -> dict[str, str]:
    """Map an exception to the public code and message of a batch item."""
    for kind, code, message in _BATCH_ERRORS:
        if isinstance(err, kind):
            return {"code": code, "message": message}
    return {"code": "internal_error", "message": "An internal error occurred"}


def _with_expiry(data: dict[str, Any], url: URL) -> dict[str, Any]:
    expires = format_utc(url.expires_at)
    if expires is not None:
        data["expires_at"] = expires
    return data


class MCPServer:
    """Shortener tools and resources keyed by their protocol names."""

    def __init__(self, service: Service, base_url: str) -> None:
        self._svc = service
        self._base_url = base_url
        self._tools: dict[str, Callable[..., dict[str, Any]]] = {
            "shorten_url": self.shorten_url,
            "list_urls": self.list_urls,
            "get_url_stats": self.get_url_stats,
            "delete_url": self.delete_url,
            "lookup_url": self.lookup_url,
            "batch_shorten_urls": self.batch_shorten_urls,
            "update_url": self.update_url,
        }

    name = SERVER_NAME
    version = SERVER_VERSION

    def tool_names(self) -> list[str]:
        """Names of all registered tools."""
        return list(self._tools)

    def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Run the named tool with keyword arguments from the mapping."""
        try:
            tool = self._tools[name]
        except KeyError:
            raise KeyError(f"unknown tool {name!r}") from None
        return tool(**dict(arguments or {}))

    def _short_url(self, code: str) -> str:
        return f"{self._base_url}/{code}"

    def _detail(self, url: URL) -> dict[str, Any]:
        return _with_expiry(
            {
                "short_code": url.short_code,
                "short_url": self._short_url(url.short_code),
                "original_url": url.original_url,
                "is_custom": url.is_custom,
                "click_count": url.click_count,
                "created_at": format_utc(url.created_at),
            },
            url,
        )

    def _created(self, url: URL) -> dict[str, Any]:
        return _with_expiry(
            {
                "short_code": url.short_code,
                "short_url": self._short_url(url.short_code),
                "original_url": url.original_url,
                "created_at": format_utc(url.created_at),
            },
            url,
        )

    def shorten_url(self, url: str, alias: str = "", expires_in: str = "") -> dict[str, Any]:
        """Create a short URL from a long URL."""
        created = self._svc.create(
            CreateRequest(url=url, custom_alias=alias, expires_in=expires_in)
        )
        return self._created(created)

    def list_urls(self, page: int = 0, per_page: int = 0) -> dict[str, Any]:
        """List shortened URLs with pagination (default 20 per page, max 100)."""
        page = max(page, 1)
        per_page = 20 if per_page < 1 else min(per_page, 100)
        urls, total = self._svc.list(ListOptions(page=page, per_page=per_page))
        total_pages = max((total + per_page - 1) // per_page, 1)
        return {
            "urls": [self._detail(u) for u in urls],
            "pagination": {
                "page": page,
                "per_page": per_page,
                "total": total,
                "total_pages": total_pages,
            },
        }

    def get_url_stats(self, code: str) -> dict[str, Any]:
        """Full stats for a short URL."""
        return self._detail(self._svc.get_by_code(code))

    def delete_url(self, code: str) -> dict[str, Any]:
        """Delete a short URL by code."""
        self._svc.delete(code)
        return {"message": f"Deleted short URL: {code}"}

    def lookup_url(self, code: str) -> dict[str, Any]:
        """Resolve a short code to its original URL."""
        return {"original_url": self._svc.get_by_code(code).original_url}

    def batch_shorten_urls(self, urls: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
        """Create up to 50 short URLs, reporting failures per item."""
        reqs = [
            CreateRequest(
                url=item.get("url", ""),
                custom_alias=item.get("alias", ""),
                expires_in=item.get("expires_in", ""),
            )
            for item in urls
        ]
        results = self._svc.create_batch(reqs)
        items = []
        success = failed = 0
        for result in results:
            if result.error is not None:
                items.append({"error": batch_item_error(result.error)})
                failed += 1
            else:
                items.append(self._created(result.url))
                success += 1
        return {
            "results": items,
            "summary": {"total": len(results), "success": success, "failed": failed},
        }

    def update_url(self, code: str, expires_in: str) -> dict[str, Any]:
        """Change the expiry of a short URL; "0" removes it."""
        return self._detail(self._svc.update(code, UpdateRequest(expires_in=expires_in)))

    def stats_summary(self) -> dict[str, Any]:
        """Total URL count and the newest five URLs."""
        urls, total = self._svc.list(ListOptions(page=1, per_page=5))
        return {
            "total_urls": total,
            "top_urls": [
                {
                    "short_code": u.short_code,
                    "original_url": u.original_url,
                    "click_count": u.click_count,
                }
                for u in urls
            ],
        }

    def url_details(self, code: str) -> dict[str, Any]:
        """Full details of one URL; raises the service's error when missing."""
        return self._detail(self._svc.get_by_code(code))

    def read_resource(self, uri: str) -> dict[str, Any]:
        """Read a resource, returning its uri, mime_type and JSON text."""
        if uri == STATS_SUMMARY_URI:
            data = self.stats_summary()
        else:
            if uri.endswith(_QR_SUFFIX) and uri.startswith(_URL_PREFIX):
                raise ResourceNotFoundError(uri)
            code = extract_code_from_uri(uri) if uri.startswith(_URL_PREFIX) else ""
            if not code:
                raise ResourceNotFoundError(uri)
            try:
                data = self.url_details(code)
            except Exception:
                raise ResourceNotFoundError(uri) from None
        return {
            "uri": uri,
            "mime_type": "application/json",
            "text": json.dumps(data, separators=(",", ":")),
        }