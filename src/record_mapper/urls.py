"""URL value type produced by URL-kind fields."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import SplitResult, urlsplit

# RFC 3986 unreserved + reserved characters, plus '%' for escapes.
_ALLOWED_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+$")
_BAD_ESCAPE_RE: Final[re.Pattern[str]] = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass(frozen=True, slots=True)
class Url:
    """A syntactically valid URL reference, absolute or relative."""

    value: str

    def __post_init__(self) -> None:
        if _split(self.value) is None:
            raise ValueError(f"invalid URL: {self.value!r}")

    @classmethod
    def parse(cls, text: str) -> Url | None:
        if not isinstance(text, str) or _split(text) is None:
            return None
        return cls(text)

    @property
    def parts(self) -> SplitResult:
        return urlsplit(self.value)

    @property
    def scheme(self) -> str:
        return self.parts.scheme

    @property
    def host(self) -> str | None:
        return self.parts.hostname

    @property
    def port(self) -> int | None:
        return self.parts.port

    @property
    def path(self) -> str:
        return self.parts.path

    @property
    def query(self) -> str:
        return self.parts.query

    @property
    def fragment(self) -> str:
        return self.parts.fragment

    @property
    def is_absolute(self) -> bool:
        return bool(self.parts.scheme)

    def __str__(self) -> str:
        return self.value


def _split(text: str) -> SplitResult | None:
    if not text or not _ALLOWED_RE.fullmatch(text) or _BAD_ESCAPE_RE.search(text):
        return None
    try:
        parts = urlsplit(text)
        # Accessing .port validates the numeric range.
        _ = parts.port
    except ValueError:
        return None
    return parts


__all__ = ["Url"]
