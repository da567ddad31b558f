"""URL value parsing."""

from __future__ import annotations

import pytest

from record_mapper.urls import Url


def test_parse_absolute_url_exposes_parts() -> None:
    url = Url.parse("https://api.github.com:8443/repos/x/y/issues?state=open#top")

    assert url is not None
    assert url.scheme == "https"
    assert url.host == "api.github.com"
    assert url.port == 8443
    assert url.path == "/repos/x/y/issues"
    assert url.query == "state=open"
    assert url.fragment == "top"
    assert url.is_absolute
    assert str(url) == "https://api.github.com:8443/repos/x/y/issues?state=open#top"


def test_relative_references_are_valid() -> None:
    url = Url.parse("/avatars/1.png")

    assert url is not None
    assert not url.is_absolute


@pytest.mark.parametrize(
    "text",
    ["", "has space", "https://example.com/%zz", "http://example.com:99999/", "tab\there", "ü"],
)
def test_invalid_urls_are_rejected(text: str) -> None:
    assert Url.parse(text) is None
    with pytest.raises(ValueError):
        Url(text)


def test_percent_escapes_are_allowed() -> None:
    assert Url.parse("https://example.com/a%20b") == Url("https://example.com/a%20b")
