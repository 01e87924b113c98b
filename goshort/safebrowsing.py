"""URL safety checks against the Safe Browsing Lookup API v4."""

from __future__ import annotations

import ipaddress
import json
import logging
import urllib.error
import urllib.request
from urllib.parse import urlsplit

from goshort.errors import UnsafeURLError

logger = logging.getLogger(__name__)

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
SAFE_BROWSING_TIMEOUT = 2.0
CLIENT_ID = "goshort"
CLIENT_VERSION = "0.5.0"


def _is_loopback(host: str | None) -> bool:
    if not host:
        return False
    if host.lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _opener_for(url: str) -> urllib.request.OpenerDirector:
    if _is_loopback(urlsplit(url).hostname):
        return urllib.request.build_opener(urllib.request.ProxyHandler({}))
    return urllib.request.build_opener()


class SafeBrowsingChecker:
    """Checks URLs with the Safe Browsing API.

    Fails open: transport errors, non-200 answers and unreadable bodies
    are logged and the URL is accepted.
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str = SAFE_BROWSING_ENDPOINT,
        timeout: float = SAFE_BROWSING_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._endpoint = endpoint
        self._timeout = timeout

    def check(self, raw_url: str) -> None:
        """Raise UnsafeURLError if the API reports a threat for raw_url."""
        payload = {
            "client": {"clientId": CLIENT_ID, "clientVersion": CLIENT_VERSION},
            "threatInfo": {
                "threatTypes": ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE"],
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": raw_url}],
            },
        }
        url = f"{self._endpoint}?key={self._api_key}"
        try:
            req = urllib.request.Request(
                url,
                data=json.dumps(payload).encode("utf-8"),
                headers={"Content-Type": "application/json"},
                method="POST",
            )
        except ValueError as exc:
            logger.warning("safe browsing: build request: %s", exc)
            return

        try:
            with _opener_for(url).open(req, timeout=self._timeout) as resp:
                status = resp.status
                body = resp.read()
        except urllib.error.HTTPError as exc:
            logger.warning("safe browsing: non-200 response: status %d", exc.code)
            return
        except Exception as exc:
            logger.warning("safe browsing: request failed: %s", exc)
            return

        if status != 200:
            logger.warning("safe browsing: non-200 response: status %d", status)
            return

        try:
            data = json.loads(body)
        except ValueError as exc:
            logger.warning("safe browsing: decode response: %s", exc)
            return
        matches = data.get("matches") if isinstance(data, dict) else None
        if isinstance(matches, list) and matches:
            raise UnsafeURLError(f'safe browsing check "{raw_url}": url flagged as unsafe')