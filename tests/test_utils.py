"""Unit tests for token masking and body truncation helpers."""

from desk_treadmill.utils import mask_token, truncate


def test_mask_token_handles_short_values() -> None:
    assert mask_token("abcd", visible=4) == "abcd"
    assert mask_token("abcd", visible=2) == "**cd"
    assert mask_token("abcd", visible=0) == "****"


def test_mask_token_handles_empty_and_negative() -> None:
    assert mask_token("", visible=4) == ""
    assert mask_token(None) == ""
    assert mask_token("abcdef", visible=-2) == "******"


def test_truncate_limits_length() -> None:
    assert truncate("  short  ") == "short"
    assert truncate("x" * 10, limit=4) == "xxxx..."
    assert truncate(None) == ""
