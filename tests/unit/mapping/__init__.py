"""Shared record declarations and payload builders for mapping tests."""

from __future__ import annotations

from dataclasses import field
from datetime import datetime
from enum import IntEnum
from typing import Any, Final

from record_mapper import (
    Float32,
    Int8,
    Int32,
    PatternDateFormatter,
    UInt8,
    Url,
    record,
    string_enum,
)

POST_DATE_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%f%z"
POST_DATES = PatternDateFormatter(POST_DATE_FORMAT)


@string_enum
class Gender(IntEnum):
    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


class Visibility(IntEnum):
    PRIVATE = 0
    PUBLIC = 1


@record
class User:
    id: int | None = None
    name: str | None = None
    gender: Gender = Gender.UNKNOWN
    bio: str | None = None
    city: str = "Seoul"
    posts: list[Post] = field(default_factory=list)


@record(
    key_paths={
        "author_name": "author.name",
        "place_name": "place.name",
        "place_latitude": "place.location.latitude",
        "place_longitude": "place.location.longitude",
    },
    date_formatters={"created_at": POST_DATES},
)
class Post:
    id: int | None = None
    title: str | None = None
    content: str | None = None
    author: User | None = None
    created_at: datetime | None = None
    published_at: datetime | None = None
    author_name: str | None = None
    place_name: str | None = None
    place_latitude: float | None = None
    place_longitude: float | None = None
    url: Url | None = None
    visibility: Visibility | None = None


@record
class Counters:
    tiny: Int8 | None = None
    small: UInt8 | None = None
    medium: Int32 | None = None
    ratio: Float32 | None = None
    flag: bool | None = None


@record
class Tag:
    label: str
    weight: int = 1


@record
class Tagged:
    tags: tuple[Tag, ...] = ()


def make_user_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": 1,
        "name": "Jeon Suyeol",
        "gender": "male",
        "bio": "iOS developer",
        "city": "Daegu",
        "posts": [
            {"id": 10, "title": "first"},
            {"id": 11, "title": "second"},
        ],
    }
    payload.update(overrides)
    return payload


def make_post_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": 123,
        "title": "Hello",
        "content": "Hello, world!",
        "author": {"id": 1, "name": "devxoul"},
        "created_at": "2015-03-14T12:30:45.123000+0900",
        "published_at": "2015-03-15T08:00:00+00:00",
        "place": {
            "name": "StyleShare",
            "location": {"latitude": 37.4979, "longitude": "127.0276"},
        },
        "url": "https://example.com/posts/123?ref=feed",
        "visibility": 1,
    }
    payload.update(overrides)
    return payload


__all__ = [
    "Counters",
    "Gender",
    "POST_DATES",
    "POST_DATE_FORMAT",
    "Post",
    "Tag",
    "Tagged",
    "User",
    "Visibility",
    "make_post_payload",
    "make_user_payload",
]
