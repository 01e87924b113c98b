import pytest

from goshort.prompts import batch_shorten, get_prompt, shorten_and_share


def _text(result):
    return result["messages"][0]["content"]["text"]


def test_shorten_and_share():
    res = get_prompt("shorten_and_share", {"url": "https://example.com", "platform": "slack"})
    assert "slack" in _text(res)
    assert "https://example.com" in _text(res)
    assert res["messages"][0]["role"] == "user"


def test_shorten_and_share_default_platform():
    assert "general" in _text(shorten_and_share({"url": "https://example.com"}))


def test_batch_shorten():
    res = batch_shorten({"urls": "https://a.com\nhttps://b.com"})
    assert "https://a.com" in _text(res)
    assert "https://b.com" in _text(res)


def test_unknown_prompt():
    with pytest.raises(KeyError):
        get_prompt("nope", {})