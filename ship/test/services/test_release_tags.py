from __future__ import annotations

import pytest

from ship.services.release.tags import (
    DEFAULT_TAG,
    current_tag,
    display_name,
    is_prerelease,
    parse_version,
    suggest_next,
)


@pytest.mark.parametrize(
    ("current", "expected"),
    [
        ("v1.5.2", ["v1.5.3", "v1.6", "v2.0"]),
        ("v0.10.0", ["v0.10.1", "v0.11", "v1.0"]),
        ("v0.0.0", ["v0.0.1", "v0.1", "v1.0"]),
        ("v0.9", ["v0.9.1", "v0.10", "v1.0"]),
        ("1.2.3", ["1.2.4", "1.3", "2.0"]),
    ],
)
def test_suggest_next(current: str, expected: list[str]) -> None:
    assert suggest_next(current) == expected


def test_suggest_next_skips_non_numeric_field() -> None:
    assert suggest_next("v1.2.0-rc1") == ["v1.3", "v2.0"]


def test_suggest_next_ignores_fourth_field() -> None:
    assert suggest_next("v1.2.3.4") == ["v1.2.4", "v1.3", "v2.0"]


def test_suggest_next_rejects_unicode_digits() -> None:
    # "²".isdigit() is True but int() refuses it.
    assert suggest_next("v1.2.²") == ["v1.3", "v2.0"]


def test_numeric_ordering() -> None:
    assert parse_version("v0.9.0") < parse_version("v0.10.0")
    assert parse_version("v0.10") == parse_version("v0.10.0")


def test_prerelease_sorts_below_its_release() -> None:
    assert parse_version("v1.2.0-rc1") < parse_version("v1.2.0")
    assert parse_version("v1.2.0-rc1") > parse_version("v1.1.9")


def test_current_tag_picks_highest() -> None:
    assert current_tag(["v0.9.0", "v0.10.0", "v0.8.5"]) == "v0.10.0"


def test_current_tag_defaults_without_tags() -> None:
    assert current_tag([]) == DEFAULT_TAG == "v0.0.0"
    assert current_tag(["", "  "]) == DEFAULT_TAG


@pytest.mark.parametrize(
    ("tag", "expected"),
    [
        ("v1.0.0-alpha", True),
        ("v1.0.0-beta.2", True),
        ("v0.9-pre", True),
        ("v1.0.0-rc1", True),
        ("v1.0.0", False),
        ("v1.0", False),
        ("v1.0.0+build", False),
    ],
)
def test_is_prerelease(tag: str, expected: bool) -> None:
    assert is_prerelease(tag) is expected


def test_display_name_drops_prefix() -> None:
    assert display_name("v1.2.3") == "1.2.3"
    assert display_name("1.2.3") == "1.2.3"
