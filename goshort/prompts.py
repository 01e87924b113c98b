"""Prompt templates offered to assistant clients."""

from __future__ import annotations

from typing import Any, Mapping


def _result(description: str, text: str) -> dict[str, Any]:
    return {
        "description": description,
        "messages": [{"role": "user", "content": {"type": "text", "text": text}}],
    }


def shorten_and_share(arguments: Mapping[str, str]) -> dict[str, Any]:
    """Prompt asking to shorten a URL and format it for a platform."""
    url = arguments.get("url", "")
    platform = arguments.get("platform", "") or "general"
    text = (
        f"Shorten the following URL and format the result for sharing on {platform}.\n"
        f"URL: {url}"
    )
    return _result("Shorten a URL and format it for sharing on a platform", text)


def batch_shorten(arguments: Mapping[str, str]) -> dict[str, Any]:
    """Prompt asking to shorten several URLs into a table."""
    urls = arguments.get("urls", "")
    text = (
        "Shorten each of these URLs and return a formatted table with the original "
        f"and shortened versions:\n{urls}"
    )
    return _result("Batch shorten multiple URLs and return a formatted table", text)


PROMPTS = {
    "shorten_and_share": shorten_and_share,
    "batch_shorten": batch_shorten,
}


def get_prompt(name: str, arguments: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Render the named prompt; raises KeyError for an unknown name."""
    try:
        handler = PROMPTS[name]
    except KeyError:
        raise KeyError(f"unknown prompt {name!r}") from None
    return handler(arguments or {})