import json
import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

import pytest

from goshort.errors import UnsafeURLError
from goshort.safebrowsing import SafeBrowsingChecker


@pytest.fixture
def api():
    servers = []
    release = threading.Event()
    requests = []

    def start(response=b"{}", status=200, delay=False):
        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                requests.append(
                    {
                        "path": self.path,
                        "content_type": self.headers.get("Content-Type"),
                        "body": json.loads(self.rfile.read(length)),
                    }
                )
                if delay:
                    release.wait(5)
                try:
                    self.send_response(status)
                    self.send_header("Content-Type", "application/json")
                    self.send_header("Content-Length", str(len(response)))
                    self.end_headers()
                    self.wfile.write(response)
                except (BrokenPipeError, ConnectionResetError):
                    pass

            def log_message(self, *args):
                pass

        server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        return f"http://127.0.0.1:{server.server_address[1]}/find"

    start.requests = requests
    yield start
    release.set()
    for server in servers:
        server.shutdown()
        server.server_close()


def test_safe_url(api):
    endpoint = api(b"{}")
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=endpoint)
    assert checker.check("https://safe.example.com") is None
    assert len(api.requests) == 1


def test_unsafe_url(api):
    body = json.dumps(
        {"matches": [{"threatType": "MALWARE", "platformType": "ANY_PLATFORM"}]}
    ).encode()
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(body))
    with pytest.raises(UnsafeURLError, match="evil.example.com"):
        checker.check("https://evil.example.com")


def test_request_shape(api):
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(b"{}"))
    checker.check("https://example.com/page")
    (request,) = api.requests
    parts = urlsplit(request["path"])
    assert parts.path == "/find"
    assert parse_qs(parts.query) == {"key": ["placeholder"]}
    assert request["content_type"] == "application/json"
    body = request["body"]
    assert body["client"] == {"clientId": "goshort", "clientVersion": "0.5.0"}
    info = body["threatInfo"]
    assert info["threatTypes"] == ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE"]
    assert info["platformTypes"] == ["ANY_PLATFORM"]
    assert info["threatEntryTypes"] == ["URL"]
    assert info["threatEntries"] == [{"url": "https://example.com/page"}]


def test_api_error_fails_open(api):
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(b"", status=500))
    assert checker.check("https://example.com") is None
    assert len(api.requests) == 1


def test_non_200_success_status_fails_open(api):
    body = json.dumps({"matches": [{"threatType": "MALWARE"}]}).encode()
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(body, status=202))
    assert checker.check("https://example.com") is None
    assert len(api.requests) == 1


def test_undecodable_body_fails_open(api):
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(b"not json"))
    assert checker.check("https://example.com") is None
    assert len(api.requests) == 1


def test_empty_matches_is_safe(api):
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(b'{"matches": []}'))
    assert checker.check("https://example.com") is None
    assert len(api.requests) == 1


def test_timeout_fails_open(api):
    checker = SafeBrowsingChecker(api_key="placeholder", endpoint=api(delay=True), timeout=0.05)
    start = time.monotonic()
    assert checker.check("https://example.com") is None
    assert time.monotonic() - start < 2


def test_connection_refused_fails_open():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    checker = SafeBrowsingChecker(
        api_key="placeholder", endpoint=f"http://127.0.0.1:{port}/find", timeout=1
    )
    start = time.monotonic()
    assert checker.check("https://example.com") is None
    assert time.monotonic() - start < 2