# goshort

The core of a URL shortener, packaged as a plain Python library. It needs
nothing outside the standard library.

## What is in the package

- `goshort.validator` holds the checks for target URLs, custom aliases and
  expiry durations. The functions are `validate_url`, `validate_alias`,
  `validate_expires_in` and `is_private_host`.
- `goshort.service.ShortenerService` is the service layer. It creates, looks
  up, lists, updates and deletes short links, and creates batches. The helper
  `parse_expires_in` turns `"24h"` or `"7d"` into a `timedelta`.
- `goshort.storage.SQLiteStorage` stores links and the counter that generated
  codes come from, in SQLite:
  - It uses WAL mode and applies its schema migrations when it opens.
  - It can be shared between threads.
  - It works as a context manager.
  - `format_time` and `parse_time` convert between `datetime` and the stored
    UTC text.
- `goshort.preview.HTTPFetcher` fetches a page and returns `(title,
  description)`:
  - It reads at most 512 KB of the page.
  - It prefers `og:title` and `og:description`, and otherwise uses `<title>`
    and `<meta name="description">`.
  - Any failure returns empty strings.
  - Unless `allow_private=True`, it refuses to connect when the host resolves
    to a private or loopback address.
  - `parse_html_metadata` does the same parsing on HTML text you already have.
- `goshort.safebrowsing.SafeBrowsingChecker` sends each URL to a Safe Browsing
  v4 `threatMatches:find` endpoint:
  - It raises `UnsafeURLError` when the endpoint reports a match.
  - Network errors, non-200 answers and bodies it cannot read are logged and
    the URL is accepted.
- `goshort.mcp_server.MCPServer` exposes the service as named tools and
  resources. `goshort.prompts` builds the prompt texts.
- `goshort.auth.APIKeyMiddleware` is WSGI middleware. It rejects a request
  with `401` unless the request's `X-API-Key` header matches the key. An empty
  key lets every request through.
- `goshort.models` holds the data classes and the interfaces:
  - The data classes are `URL`, `CreateRequest`, `ListOptions`,
    `UpdateRequest`, `BatchResult` and `CreateParams`.
  - The interfaces are the protocols `Storage`, `Encoder`, `PreviewFetcher`,
    `URLChecker`, `Cache` and `Service`.
  - `NoopChecker` and `NoopPreviewFetcher` do nothing, for when checks and
    previews are turned off.

## Rules

- A target URL must:
  - be an absolute `http` or `https` URL;
  - be at most 2048 bytes long;
  - not point at `localhost`, a loopback address, a private range (10/8,
    172.16/12, 192.168/16, fc00::/7) or a link-local range.
- A custom alias:
  - is 3–30 characters of letters and digits;
  - may contain hyphens, but not as its first or last character;
  - may not be `api`, `health`, `metrics` or `docs`, in any letter case.
- An expiry is written `<N>h` or `<N>d` and must lie between `1h` and `365d`.
  In `ShortenerService.update`, `"0"` removes the expiry.
- Reading a link whose expiry has passed raises `ExpiredError`.
- `list` uses page 1 and 20 items per page when the values given are not
  positive. Results come newest first.
- A batch holds 1 to 50 requests:
  - An empty batch raises `BatchEmptyError`.
  - A batch with more than 50 requests raises `BatchTooLargeError`.
  - When a single item fails, its error is recorded in that item's
    `BatchResult.error` and the other items are still created.

Every failure raises a subclass of `goshort.errors.ShortenerError`. The
subclasses are:

- `NotFoundError`
- `ExpiredError`
- `AliasTakenError`
- `ReservedPathError`
- `InvalidURLError`
- `InvalidAliasError`
- `InvalidExpiresError`
- `BatchTooLargeError`
- `BatchEmptyError`
- `UnsafeURLError`

## Example

The package has no encoder of its own. Any object with an `encode(id)` method
that returns a string will do:

```python
from goshort.models import CreateRequest, ListOptions, UpdateRequest
from goshort.service import ShortenerService
from goshort.storage import SQLiteStorage

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


class Base62Encoder:
    def encode(self, id):
        digits = []
        while True:
            id, rest = divmod(id, len(ALPHABET))
            digits.append(ALPHABET[rest])
            if id == 0:
                return "".join(reversed(digits))


with SQLiteStorage(":memory:") as store:
    service = ShortenerService(store, Base62Encoder())

    link = service.create(CreateRequest(url="https://example.com/docs", custom_alias="my-docs"))
    print(link.short_code)  # my-docs

    generated = service.create(CreateRequest(url="https://example.com", expires_in="7d"))
    service.update(generated.short_code, UpdateRequest(expires_in="0"))

    urls, total = service.list(ListOptions(page=1, per_page=20))
```

When you leave out `preview` and `checker`, `ShortenerService` uses the no-op
versions. Pass `HTTPFetcher()` or `SafeBrowsingChecker(api_key)` to turn
previews or safety checks on.

## Tool layer

```python
from goshort.mcp_server import MCPServer
from goshort.prompts import get_prompt

server = MCPServer(service, "http://localhost:8080")
print(server.tool_names())
result = server.call_tool("shorten_url", {"url": "https://example.com"})
summary = server.read_resource("goshort://stats/summary")
prompt = get_prompt("shorten_and_share", {"url": "https://example.com", "platform": "slack"})
```

Tools:

- `shorten_url`
- `list_urls`: 20 items per page by default, at most 100.
- `get_url_stats`
- `delete_url`
- `lookup_url`
- `batch_shorten_urls`: failures are reported per item as `invalid_url`,
  `alias_taken`, `reserved_path`, `invalid_alias`, `invalid_expires` or
  `internal_error`, with a success/failure summary.
- `update_url`

Each tool returns a plain dict. Times in it are RFC 3339 UTC strings.

Resources:

- `goshort://stats/summary` gives the total count and the five newest links.
- `goshort://urls/{code}` gives the details of one link.

`read_resource` returns `uri`, `mime_type` and JSON `text`. It raises
`ResourceNotFoundError` for an unknown URI or a missing link.

Prompts: `shorten_and_share` (the platform defaults to `general`) and
`batch_shorten`.

## Housekeeping

`goshort.storage.run_cleanup_job(store, stop_event, interval=3600.0)` works
like this:

- Every `interval` seconds it deletes expired links, in batches of 1000.
- It logs failures and carries on.
- It stops once `stop_event` (for example a `threading.Event`) is set.
- It returns the total number of links it deleted.

## What this package does not do

- It has no command-line tool.
- It has no HTTP server that redirects short links.
- It has no transport that speaks the MCP protocol over stdio or HTTP.
  `MCPServer` is the tool layer only.
- It does not generate QR codes. `goshort://urls/{code}/qr` is reported as not
  found.
- It provides no short-code encoder and no cache implementation. `Encoder` and
  `Cache` are interfaces only.