import pytest

from goshort.errors import (
    AliasTakenError,
    BatchEmptyError,
    BatchTooLargeError,
    ExpiredError,
    InvalidAliasError,
    InvalidExpiresError,
    InvalidURLError,
    NotFoundError,
    ReservedPathError,
    ShortenerError,
    UnsafeURLError,
)


def test_wrapped_not_found_is_still_detected():
    err = NotFoundError("get url: not found")
    assert isinstance(err, ShortenerError)
    assert str(err) == "get url: not found"


def test_chained_cause_keeps_original_error():
    cause = NotFoundError()
    with pytest.raises(ShortenerError) as info:
        raise ShortenerError("get url") from cause
    assert str(info.value) == "get url"
    assert info.value.__cause__ is cause
    assert isinstance(info.value.__cause__, NotFoundError)
    assert str(info.value.__cause__) == "not found"


@pytest.mark.parametrize(
    ("cls", "message"),
    [
        (NotFoundError, "not found"),
        (ExpiredError, "url expired"),
        (AliasTakenError, "alias already taken"),
        (ReservedPathError, "alias is a reserved path"),
        (InvalidURLError, "invalid url"),
        (InvalidAliasError, "invalid alias"),
        (InvalidExpiresError, "invalid expires_in duration"),
        (BatchTooLargeError, "batch exceeds maximum of 50 items"),
        (BatchEmptyError, "batch must contain at least one item"),
        (UnsafeURLError, "url flagged as unsafe"),
    ],
)
def test_default_messages_and_base_class(cls, message):
    err = cls()
    assert str(err) == message
    assert isinstance(err, ShortenerError)


def test_reserved_path_is_distinct_from_invalid_alias():
    err = ReservedPathError()
    assert str(err) == "alias is a reserved path"
    assert not isinstance(err, InvalidAliasError)