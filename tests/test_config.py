"""Tests for configuration helpers."""

import pytest

from landing_forge.config import MAX_OWNER_ID, parse_owner_id


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("42", 42),
        (" 7 ", 7),
        (None, None),
        ("", None),
        ("0", None),
        ("-3", None),
        ("12abc", None),
        (str(MAX_OWNER_ID), None),
        ("²", None),
        ("٤٢", None),
    ],
)
def test_parse_owner_id(raw: str | None, expected: int | None) -> None:
    assert parse_owner_id(raw) == expected
