"""Validation of URLs, aliases and expiry durations."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import urlsplit

from goshort.errors import (
    InvalidAliasError,
    InvalidExpiresError,
    InvalidURLError,
    ReservedPathError,
)

MAX_URL_LENGTH = 2048
MIN_ALIAS_LENGTH = 3
MAX_ALIAS_LENGTH = 30
MIN_EXPIRES_HOURS = 1
MAX_EXPIRES_HOURS = 365 * 24

_ALIAS_PATTERN = "^[a-zA-Z0-9]([a-zA-Z0-9-]*[a-zA-Z0-9])?$"
_ALIAS_RE = re.compile(r"[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?")
_INT_RE = re.compile(r"[+-]?[0-9]+")
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PORT_RE = re.compile(r"(:[0-9]*)?")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1

RESERVED_PATHS = frozenset({"api", "health", "metrics", "docs"})

_PRIVATE_NETS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "127.0.0.0/8",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


def _parse_int64(text: str) -> int | None:
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


def _check_port(host: str) -> None:
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            raise ValueError("missing ']' in host")
        tail = host[end + 1 :]
    else:
        colon = host.rfind(":")
        tail = host[colon:] if colon != -1 else ""
    if not _PORT_RE.fullmatch(tail):
        raise ValueError(f"invalid port {tail!r}")


def _split(raw_url: str):
    if raw_url[0].isspace() or any(ord(c) < 0x20 or ord(c) == 0x7F for c in raw_url):
        raise ValueError("invalid character in URL")
    before_fragment, _, fragment = raw_url.partition("#")
    before_query = before_fragment.partition("?")[0]
    if _BAD_ESCAPE_RE.search(before_query) or _BAD_ESCAPE_RE.search(fragment):
        raise ValueError("invalid URL escape")
    parts = urlsplit(raw_url)
    host = parts.netloc.rpartition("@")[2]
    _check_port(host)
    return parts.scheme, host


def validate_url(raw_url: str) -> None:
    """Require an absolute http(s) URL within the length limit and not aimed at a private host."""
    if not raw_url:
        raise InvalidURLError("validate url: empty")
    if len(raw_url.encode("utf-8")) > MAX_URL_LENGTH:
        raise InvalidURLError(f"validate url: exceeds {MAX_URL_LENGTH} characters")
    try:
        scheme, host = _split(raw_url)
    except ValueError:
        raise InvalidURLError("validate url: malformed") from None
    if scheme not in ("http", "https"):
        raise InvalidURLError(
            f'validate url: scheme "{scheme}" not allowed (use http or https)'
        )
    if not host:
        raise InvalidURLError("validate url: missing host")
    if is_private_host(host):
        raise InvalidURLError("validate url: host targets a private or reserved address")


def _hostname(host: str) -> str:
    if host.startswith("["):
        end = host.find("]")
        if end != -1 and host[end + 1 :].startswith(":"):
            return host[1:end]
        return host
    if host.count(":") == 1:
        return host.partition(":")[0]
    return host


def is_private_host(host: str) -> bool:
    """Report whether host (optionally with port) is loopback, private or link-local."""
    hostname = _hostname(host).strip("[]")
    if hostname.lower() == "localhost":
        return True
    if "%" in hostname:
        return False
    try:
        ip = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return any(ip.version == net.version and ip in net for net in _PRIVATE_NETS)


def validate_alias(alias: str) -> None:
    """Require 3–30 alphanumerics with interior hyphens, not a reserved path."""
    n = len(alias.encode("utf-8"))
    if not MIN_ALIAS_LENGTH <= n <= MAX_ALIAS_LENGTH:
        raise InvalidAliasError(
            f"validate alias: length {n} out of range "
            f"[{MIN_ALIAS_LENGTH}, {MAX_ALIAS_LENGTH}]"
        )
    if not _ALIAS_RE.fullmatch(alias):
        raise InvalidAliasError(f'validate alias: "{alias}" must match {_ALIAS_PATTERN}')
    if alias.lower() in RESERVED_PATHS:
        raise ReservedPathError(f'validate alias: "{alias}" is a reserved path')


def validate_expires_in(expires_in: str) -> None:
    """Accept "" (no expiry) or "<N>h" / "<N>d" within [1h, 365d]."""
    if not expires_in:
        return
    if len(expires_in) < 2:
        raise InvalidExpiresError(
            f'validate expires_in: "{expires_in}" too short to be a valid duration'
        )
    unit, number = expires_in[-1], expires_in[:-1]
    n = _parse_int64(number)
    if n is None or n <= 0:
        raise InvalidExpiresError(
            f'validate expires_in: "{expires_in}": number must be a positive integer'
        )
    if unit == "h":
        hours = n
    elif unit == "d":
        hours = n * 24
    else:
        raise InvalidExpiresError(
            f'validate expires_in: "{expires_in}": unsupported unit "{unit}" '
            "(use h for hours, d for days)"
        )
    if hours < MIN_EXPIRES_HOURS:
        raise InvalidExpiresError(
            f'validate expires_in: "{expires_in}": must be at least {MIN_EXPIRES_HOURS}h'
        )
    if hours > MAX_EXPIRES_HOURS:
        raise InvalidExpiresError(
            f'validate expires_in: "{expires_in}": must be at most '
            f"{MAX_EXPIRES_HOURS // 24}d ({MAX_EXPIRES_HOURS}h)"
        )