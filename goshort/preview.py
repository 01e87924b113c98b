"""Fetching of page titles and descriptions for shortened URLs."""

from __future__ import annotations

import http.client
import socket
import urllib.request
from html.parser import HTMLParser

from goshort.validator import is_private_host

PREVIEW_TIMEOUT = 3.0
PREVIEW_MAX_BODY = 512 * 1024
USER_AGENT = "goshort-preview/1.0"


def _safe_create_connection(address, timeout=None, source_address=None):
    """Resolve the host, refuse private addresses, then connect to the first one."""
    host, port = address
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    if not infos:
        raise OSError(f"no IPs for {host}")
    for info in infos:
        ip = str(info[4][0]).split("%")[0]
        if is_private_host(ip):
            raise OSError(f"resolved IP {ip} is private")
    family, socktype, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        if isinstance(timeout, (int, float)):
            sock.settimeout(timeout)
        if source_address:
            sock.bind(source_address)
        sock.connect(sockaddr)
    except BaseException:
        sock.close()
        raise
    return sock


class _SafeHTTPConnection(http.client.HTTPConnection):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._create_connection = _safe_create_connection


class _SafeHTTPSConnection(http.client.HTTPSConnection):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._create_connection = _safe_create_connection


class _SafeHTTPHandler(urllib.request.HTTPHandler):
    def http_open(self, req):
        return self.do_open(_SafeHTTPConnection, req)


class _SafeHTTPSHandler(urllib.request.HTTPSHandler):
    def https_open(self, req):
        return self.do_open(_SafeHTTPSConnection, req, context=self._context)


class _StopParsing(Exception):
    pass


class _MetadataParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.html_title = ""
        self.og_title = ""
        self.html_desc = ""
        self.og_desc = ""
        self._in_title = False
        self._title_seen = False
        self._title_parts: list[str] = []

    def handle_starttag(self, tag, attrs):
        if tag == "title":
            self._in_title = True
        elif tag == "meta":
            self._apply_meta(attrs)
        elif tag == "body":
            raise _StopParsing

    def handle_startendtag(self, tag, attrs):
        if tag == "meta":
            self._apply_meta(attrs)

    def handle_endtag(self, tag):
        if tag == "title" and self._in_title:
            self._finish_title()

    def handle_data(self, data):
        if self._in_title and not self._title_seen:
            self._title_parts.append(data)

    def _finish_title(self) -> None:
        self._in_title = False
        if not self._title_seen and self._title_parts:
            self._title_seen = True
            if not self.html_title:
                self.html_title = "".join(self._title_parts).strip()

    def _apply_meta(self, attrs) -> None:
        name = prop = content = ""
        for key, value in attrs:
            value = value or ""
            if key == "name":
                name = value.lower()
            elif key == "property":
                prop = value.lower()
            elif key == "content":
                content = value
        if prop == "og:title" and not self.og_title:
            self.og_title = content.strip()
        if prop == "og:description" and not self.og_desc:
            self.og_desc = content.strip()
        if name == "description" and not self.html_desc:
            self.html_desc = content.strip()


def parse_html_metadata(text: str) -> tuple[str, str]:
    """Return (title, description) from an HTML head, preferring Open Graph tags."""
    parser = _MetadataParser()
    try:
        parser.feed(text)
        parser.close()
    except _StopParsing:
        pass
    if parser._in_title:
        parser._finish_title()
    title = parser.og_title or parser.html_title
    description = parser.og_desc or parser.html_desc
    return title, description


class HTTPFetcher:
    """Fetches a page and extracts its title and description.

    Unless allow_private is set, connections to private or loopback
    addresses are refused after DNS resolution. Every failure yields
    empty strings.
    """

    def __init__(self, timeout: float = PREVIEW_TIMEOUT, allow_private: bool = False) -> None:
        self._timeout = timeout
        handlers: list[urllib.request.BaseHandler] = [urllib.request.ProxyHandler({})]
        if not allow_private:
            handlers += [_SafeHTTPHandler(), _SafeHTTPSHandler()]
        self._opener = urllib.request.build_opener(*handlers)

    def fetch(self, raw_url: str) -> tuple[str, str]:
        """GET raw_url, read up to 512 KB and return (title, description)."""
        try:
            req = urllib.request.Request(
                raw_url, headers={"User-Agent": USER_AGENT}, method="GET"
            )
            with self._opener.open(req, timeout=self._timeout) as resp:
                if not 200 <= resp.status < 300:
                    return "", ""
                body = resp.read(PREVIEW_MAX_BODY)
                charset = resp.headers.get_content_charset() or "utf-8"
        except Exception:
            return "", ""
        try:
            text = body.decode(charset, errors="replace")
        except LookupError:
            text = body.decode("utf-8", errors="replace")
        return parse_html_metadata(text)