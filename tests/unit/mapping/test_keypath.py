"""Key-path resolution against nested decoded trees."""

from __future__ import annotations

import pytest

from record_mapper.keypath import contains, resolve, split_key_path
from record_mapper.values import MISSING

try:
    from hypothesis import given, settings
    from hypothesis import strategies as st
except ModuleNotFoundError:
    _HYPOTHESIS_AVAILABLE = False
else:
    _HYPOTHESIS_AVAILABLE = True


def test_resolves_nested_path() -> None:
    assert resolve("a.b.c", {"a": {"b": {"c": 5}}}) == 5


def test_missing_leaf_is_missing() -> None:
    assert resolve("a.b.c", {"a": {"b": {}}}) is MISSING


def test_scalar_before_last_segment_is_missing() -> None:
    assert resolve("a.b.c", {"a": 1}) is MISSING
    assert resolve("a.b", {"a": [{"b": 1}]}) is MISSING


def test_single_segment_is_direct_lookup() -> None:
    assert resolve("name", {"name": "devxoul"}) == "devxoul"
    assert resolve("name", {}) is MISSING


def test_null_leaf_is_present() -> None:
    root = {"a": {"b": None}}
    assert resolve("a.b", root) is None
    assert contains("a.b", root)


def test_split_key_path_rejects_non_string() -> None:
    assert split_key_path("place.location.latitude") == ("place", "location", "latitude")
    with pytest.raises(TypeError):
        split_key_path(3)  # type: ignore[arg-type]


if _HYPOTHESIS_AVAILABLE:
    _SEGMENT = st.text(alphabet="abcdefghij", min_size=1, max_size=5)

    @given(segments=st.lists(_SEGMENT, min_size=1, max_size=6), leaf=st.integers())
    @settings(max_examples=50, derandomize=True, deadline=None)
    def test_property_resolve_finds_value_built_along_path(
        segments: list[str],
        leaf: int,
    ) -> None:
        root: object = leaf
        for segment in reversed(segments):
            root = {segment: root}
        assert isinstance(root, dict)

        assert resolve(".".join(segments), root) == leaf
        assert resolve(".".join([*segments, "missing"]), root) is MISSING
