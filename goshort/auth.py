"""API-key authentication for WSGI applications."""

from __future__ import annotations

import hmac
from typing import Any, Callable, Iterable

_UNAUTHORIZED_BODY = b'{"error":"unauthorized"}\n'


class APIKeyMiddleware:
    """WSGI middleware requiring a matching X-API-Key header.

    With an empty api_key every request passes through unchecked.
    """

    def __init__(self, api_key: str, app: Callable[..., Iterable[bytes]]) -> None:
        self._api_key = api_key
        self._app = app

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        if not self._api_key:
            return self._app(environ, start_response)
        got = environ.get("HTTP_X_API_KEY", "")
        if not hmac.compare_digest(got.encode("utf-8"), self._api_key.encode("utf-8")):
            start_response(
                "401 Unauthorized",
                [
                    ("Content-Type", "text/plain; charset=utf-8"),
                    ("X-Content-Type-Options", "nosniff"),
                    ("Content-Length", str(len(_UNAUTHORIZED_BODY))),
                ],
            )
            return [_UNAUTHORIZED_BODY]
        return self._app(environ, start_response)