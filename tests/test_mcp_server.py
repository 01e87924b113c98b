import json
from datetime import datetime, timezone

import pytest

from goshort.errors import (
    AliasTakenError,
    BatchEmptyError,
    BatchTooLargeError,
    InvalidExpiresError,
    InvalidURLError,
    NotFoundError,
)
from goshort.mcp_server import (
    MCPServer,
    ResourceNotFoundError,
    batch_item_error,
    extract_code_from_qr_uri,
    extract_code_from_uri,
    format_utc,
)
from goshort.service import ShortenerService
from goshort.storage import SQLiteStorage

BASE = "http://localhost:8080"


class _Encoder:
    def encode(self, id):
        digits = "0123456789abcdefghijklmnopqrstuvwxyz"
        out = ""
        n = id + 1000
        while n:
            n, r = divmod(n, 36)
            out = digits[r] + out
        return out


@pytest.fixture
def server():
    store = SQLiteStorage(":memory:")
    yield MCPServer(ShortenerService(store, _Encoder()), BASE)
    store.close()


def test_tools_registered(server):
    assert sorted(server.tool_names()) == sorted(
        ["shorten_url", "list_urls", "get_url_stats", "delete_url",
         "lookup_url", "batch_shorten_urls", "update_url"]
    )


def test_shorten_basic(server):
    out = server.call_tool("shorten_url", {"url": "https://example.com"})
    assert out["original_url"] == "https://example.com"
    assert out["short_url"] == f"{BASE}/{out['short_code']}"
    assert "expires_at" not in out


def test_shorten_with_alias(server):
    out = server.call_tool("shorten_url", {"url": "https://example.com/long", "alias": "my-alias"})
    assert out["short_code"] == "my-alias"


def test_alias_taken(server):
    first = server.shorten_url("https://a.com", alias="taken")
    assert first["short_code"] == "taken"
    with pytest.raises(AliasTakenError):
        server.shorten_url("https://b.com", alias="taken")
    assert server.lookup_url("taken") == {"original_url": "https://a.com"}


def test_invalid_url_and_expiry(server):
    with pytest.raises(InvalidURLError):
        server.shorten_url("not-a-url")
    with pytest.raises(InvalidExpiresError):
        server.shorten_url("https://example.com", expires_in="bad-expiry")


def test_list_empty_and_pagination(server):
    out = server.list_urls()
    assert out["urls"] == [] and out["pagination"]["total"] == 0
    assert out["pagination"]["total_pages"] == 1
    for c in "abcde":
        server.shorten_url("https://example.com/" + c)
    out = server.call_tool("list_urls", {"page": 1, "per_page": 2})
    assert len(out["urls"]) == 2
    assert out["pagination"]["total_pages"] == 3
    assert server.list_urls()["pagination"]["total"] == 5


def test_stats_delete_lookup(server):
    code = server.shorten_url("https://example.com")["short_code"]
    stats = server.get_url_stats(code)
    assert stats["short_code"] == code and stats["click_count"] == 0
    assert server.lookup_url(code) == {"original_url": "https://example.com"}
    assert server.delete_url(code) == {"message": f"Deleted short URL: {code}"}
    with pytest.raises(NotFoundError):
        server.get_url_stats(code)
    with pytest.raises(NotFoundError):
        server.delete_url("ghost")
    with pytest.raises(NotFoundError):
        server.lookup_url("missing")


def test_batch_all_valid(server):
    out = server.batch_shorten_urls([{"url": "https://a.com"}, {"url": "https://b.com"}, {"url": "https://c.com"}])
    assert out["summary"] == {"total": 3, "success": 3, "failed": 0}
    assert all(r["short_code"] and "error" not in r for r in out["results"])


def test_batch_partial(server):
    out = server.batch_shorten_urls([{"url": "https://valid.com"}, {"url": "not-a-url"}, {"url": "https://also-valid.com"}])
    assert out["summary"] == {"total": 3, "success": 2, "failed": 1}
    assert out["results"][1] == {"error": {"code": "invalid_url", "message": "The URL format is invalid"}}
    assert out["results"][2]["short_code"]


def test_batch_limits(server):
    with pytest.raises(BatchEmptyError):
        server.batch_shorten_urls([])
    with pytest.raises(BatchTooLargeError):
        server.batch_shorten_urls([{"url": "https://example.com"}] * 51)


def test_update_url(server):
    code = server.shorten_url("https://example.com")["short_code"]
    out = server.update_url(code, "7d")
    assert out["short_code"] == code and "expires_at" in out
    assert "expires_at" not in server.update_url(code, "0")
    with pytest.raises(NotFoundError):
        server.update_url("no-such-code", "7d")


def test_stats_summary_resource(server):
    data = json.loads(server.read_resource("goshort://stats/summary")["text"])
    assert data == {"total_urls": 0, "top_urls": []}
    for i in range(3):
        server.shorten_url(f"https://example.com/{i}")
    data = json.loads(server.read_resource("goshort://stats/summary")["text"])
    assert data["total_urls"] == 3


def test_url_resource(server):
    server.shorten_url("https://example.com", alias="res-test")
    res = server.read_resource("goshort://urls/res-test")
    detail = json.loads(res["text"])
    assert detail["short_code"] == "res-test"
    assert detail["original_url"] == "https://example.com"
    with pytest.raises(ResourceNotFoundError):
        server.read_resource("goshort://urls/nonexistent")
    with pytest.raises(ResourceNotFoundError):
        server.read_resource("goshort://urls/nonexistent/qr")


@pytest.mark.parametrize("uri,want", [
    ("goshort://urls/abc123/qr", "abc123"),
    ("goshort://urls/my-link/qr", "my-link"),
    ("goshort://urls//qr", ""),
    ("goshort://urls/qr", ""),
    ("goshort://urls/abc123", ""),
])
def test_extract_code_from_qr_uri(uri, want):
    assert extract_code_from_qr_uri(uri) == want


@pytest.mark.parametrize("uri,want", [
    ("goshort://urls/abc123", "abc123"),
    ("goshort://urls/my-link", "my-link"),
    ("goshort://urls/", ""),
    ("goshort://urls", ""),
    ("goshort://urls/a/b", "a/b"),
])
def test_extract_code_from_uri(uri, want):
    assert extract_code_from_uri(uri) == want


def test_format_utc():
    assert format_utc(datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)) == "2025-06-01T12:00:00Z"
    assert format_utc(None) is None


def test_batch_item_error_default():
    assert batch_item_error(RuntimeError("x"))["code"] == "internal_error"


def test_unknown_tool(server):
    with pytest.raises(KeyError):
        server.call_tool("nope", {})