"""Tests for metric_tagging.names module."""

from __future__ import annotations

import pytest

from metric_tagging.exceptions import InvalidArgumentError, NullArgumentError
from metric_tagging.names import EMPTY_NAME, TaggedName
from metric_tagging.scope import TagScope, tag_scope


class TestConstruction:
    """Tests for creating TaggedName instances."""

    def test_empty_is_shared_constant(self):
        """Test that empty() always returns the same instance."""
        assert TaggedName.empty() is EMPTY_NAME
        assert TaggedName.empty().path == ""
        assert dict(TaggedName.empty().tags) == {}

    def test_build_joins_parts(self):
        """Test building a name from path segments."""
        assert TaggedName.build("my", "metric").path == "my.metric"

    def test_build_without_parts_is_empty(self):
        """Test that build() with no parts returns the empty name."""
        assert TaggedName.build() is EMPTY_NAME

    def test_construct_sorts_tags(self):
        """Test that tags are stored in ascending key order."""
        name = TaggedName("m", {"zone": "1", "app": "2", "mid": "3"})
        assert list(name.tags) == ["app", "mid", "zone"]

    def test_construct_independent_of_input_order(self):
        """Test equality and hash do not depend on tag insertion order."""
        first = TaggedName("m", {"a": "1", "b": "2"})
        second = TaggedName("m", {"b": "2", "a": "1"})
        assert first == second
        assert hash(first) == hash(second)
        assert list(first.tags.items()) == list(second.tags.items())

    def test_construct_copies_tags(self):
        """Test that later changes to the input mapping are not visible."""
        source = {"a": "1"}
        name = TaggedName("m", source)
        source["b"] = "2"
        assert dict(name.tags) == {"a": "1"}

    def test_empty_tags_share_singleton(self):
        """Test that empty tag sets are one shared mapping."""
        assert TaggedName("a").tags is TaggedName("b", {}).tags

    def test_tags_are_read_only(self):
        """Test that the tag mapping cannot be modified."""
        name = TaggedName("m", {"a": "1"})
        with pytest.raises(TypeError):
            name.tags["b"] = "2"  # type: ignore[index]

    def test_name_is_frozen(self):
        """Test that fields cannot be reassigned."""
        name = TaggedName("m")
        with pytest.raises(AttributeError):
            name.path = "other"  # type: ignore[misc]

    def test_none_path_rejected(self):
        """Test that a missing path raises NullArgumentError."""
        with pytest.raises(NullArgumentError) as exc_info:
            TaggedName(None)  # type: ignore[arg-type]
        assert exc_info.value.argument == "path"

    def test_empty_path_allowed(self):
        """Test that an empty path is valid."""
        assert TaggedName("", {"a": "1"}).path == ""


class TestResolve:
    """Tests for TaggedName.resolve."""

    def test_no_parts_returns_self(self):
        """Test identity short-circuit without parts."""
        name = TaggedName.build("x").tagged("a", "1")
        assert name.resolve() is name

    def test_appends_parts(self):
        """Test appending segments to an existing path."""
        assert TaggedName.build("x").resolve("a", "b").path == "x.a.b"

    def test_skips_none_and_empty_parts(self):
        """Test that None and empty segments produce no separators."""
        assert TaggedName.build("x").resolve("a", "", None, "b").path == "x.a.b"

    def test_keeps_whitespace_parts(self):
        """Test that whitespace-only segments are kept."""
        assert TaggedName.build("x").resolve("a", " ", "b").path == "x.a. .b"

    def test_from_empty_path_has_no_leading_separator(self):
        """Test resolving from the empty name."""
        assert EMPTY_NAME.resolve("a").path == "a"

    def test_only_skipped_parts(self):
        """Test that only-skipped parts leave the path unchanged."""
        name = TaggedName.build("x").resolve("", None)
        assert name.path == "x"

    def test_inherits_tags(self):
        """Test that tags carry over unchanged."""
        name = TaggedName.build("x").tagged("a", "1").resolve("y")
        assert dict(name.tags) == {"a": "1"}

    def test_original_unchanged(self):
        """Test that resolve does not modify the receiver."""
        name = TaggedName.build("x")
        name.resolve("y")
        assert name.path == "x"


class TestTagged:
    """Tests for TaggedName.tagged."""

    def test_mapping_overlay(self):
        """Test that added tags win and existing keys are preserved."""
        name = TaggedName.build("m").tagged({"a": "1"}).tagged({"a": "2", "b": "3"})
        assert dict(name.tags) == {"a": "2", "b": "3"}

    def test_pairs(self):
        """Test the key/value pairs form."""
        name = TaggedName.build("m").tagged("b", "2", "a", "1")
        assert list(name.tags.items()) == [("a", "1"), ("b", "2")]

    def test_pairs_later_duplicate_wins(self):
        """Test that a repeated key keeps the last value."""
        name = TaggedName.build("m").tagged("a", "1", "a", "2")
        assert dict(name.tags) == {"a": "2"}

    def test_odd_pairs_rejected(self):
        """Test that an odd number of arguments raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            TaggedName.build("m").tagged("a", "1", "b")
        assert exc_info.value.details["count"] == 3

    def test_odd_pairs_is_value_error(self):
        """Test that the error is also a ValueError."""
        with pytest.raises(ValueError):
            TaggedName.build("m").tagged("a")

    def test_no_arguments_returns_self(self):
        """Test that tagged() without arguments is a no-op."""
        name = TaggedName.build("m")
        assert name.tagged() is name

    def test_keeps_path(self):
        """Test that the path is unchanged."""
        assert TaggedName.build("a", "b").tagged("k", "v").path == "a.b"

    def test_original_unchanged(self):
        """Test that tagged does not modify the receiver."""
        name = TaggedName.build("m").tagged("a", "1")
        name.tagged("b", "2")
        assert dict(name.tags) == {"a": "1"}


class TestTaggedUsingContext:
    """Tests for TaggedName.tagged_using_context."""

    def test_empty_scope_returns_self(self):
        """Test identity when no scope tags are present."""
        name = TaggedName.build("m").tagged("a", "1")
        assert name.tagged_using_context() is name

    def test_scope_tags_added(self):
        """Test that scope tags are merged in."""
        TagScope.put("tenant", "acme")
        name = TaggedName.build("m").tagged("a", "1").tagged_using_context()
        assert dict(name.tags) == {"a": "1", "tenant": "acme"}

    def test_scope_overrides_existing(self):
        """Test that scope tags win over tags already on the name."""
        TagScope.put("t", "x")
        name = TaggedName.build("m").tagged({"t": "old"}).tagged_using_context()
        assert dict(name.tags) == {"t": "x"}

    def test_does_not_modify_scope(self):
        """Test that the scope is only read."""
        TagScope.put("t", "x")
        TaggedName.build("m").tagged("a", "1").tagged_using_context()
        assert dict(TagScope.get()) == {"t": "x"}

    def test_with_tag_scope_block(self):
        """Test using scope tags set by a with block."""
        with tag_scope(region="eu"):
            name = TaggedName.build("m").tagged_using_context()
        assert name.to_legacy_format() == "m[region:eu]"
        assert TaggedName.build("m").tagged_using_context().to_legacy_format() == "m"


class TestWithoutTags:
    """Tests for TaggedName.without_tags."""

    def test_removes_keys(self):
        """Test removing a subset of tags."""
        name = TaggedName.build("m").tagged("a", "1", "b", "2").without_tags("a")
        assert dict(name.tags) == {"b": "2"}

    def test_missing_keys_return_self(self):
        """Test that removing absent keys is a no-op."""
        name = TaggedName.build("m").tagged("a", "1")
        assert name.without_tags("z") is name


class TestAppend:
    """Tests for TaggedName.append."""

    def test_concatenates_and_merges(self):
        """Test path concatenation and tag merge."""
        left = TaggedName.build("a").tagged({"x": "1"})
        right = TaggedName.build("b").tagged({"y": "2"})
        result = left.append(right)
        assert result.path == "a.b"
        assert dict(result.tags) == {"x": "1", "y": "2"}

    def test_other_tags_win(self):
        """Test that the appended name's tags override on conflict."""
        left = TaggedName.build("a").tagged("k", "left")
        right = TaggedName.build("b").tagged("k", "right")
        assert dict(left.append(right).tags) == {"k": "right"}

    def test_append_empty_path(self):
        """Test appending a tag-only name keeps the path."""
        left = TaggedName.build("a")
        right = TaggedName("", {"k": "v"})
        result = left.append(right)
        assert result.path == "a"
        assert dict(result.tags) == {"k": "v"}

    def test_equivalent_to_resolve_then_tagged(self):
        """Test append matches its definition."""
        left = TaggedName.build("a", "b").tagged("x", "1")
        right = TaggedName.build("c.d").tagged("y", "2")
        assert left.append(right) == left.resolve(right.path).tagged(right.tags)


class TestLegacyFormat:
    """Tests for legacy string encoding and decoding."""

    def test_with_tags(self):
        """Test encoding with a single tag."""
        name = TaggedName.build("my", "metric").tagged("tenant", "tenant-id")
        assert name.to_legacy_format() == "my.metric[tenant:tenant-id]"

    def test_without_tags(self):
        """Test that untagged names encode as the bare path."""
        assert TaggedName.build("my", "metric").to_legacy_format() == "my.metric"

    def test_tags_in_key_order(self):
        """Test that tags are encoded in ascending key order."""
        name = TaggedName("m", {"tenant": "t", "region": "eu", "app": "x"})
        assert name.to_legacy_format() == "m[app:x,region:eu,tenant:t]"

    def test_empty_path_with_tags(self):
        """Test encoding a tag-only name."""
        assert TaggedName("", {"a": "1"}).to_legacy_format() == "[a:1]"

    def test_empty_name(self):
        """Test encoding the empty name."""
        assert EMPTY_NAME.to_legacy_format() == ""

    def test_no_escaping(self):
        """Test that delimiter characters are emitted verbatim."""
        name = TaggedName("m", {"k": "a:b,c"})
        assert name.to_legacy_format() == "m[k:a:b,c]"

    def test_parse_with_tags(self):
        """Test decoding a tagged name."""
        name = TaggedName.from_legacy_format("my.metric[region:eu,tenant:acme]")
        assert name.path == "my.metric"
        assert dict(name.tags) == {"region": "eu", "tenant": "acme"}

    def test_parse_without_tags(self):
        """Test decoding a bare path."""
        assert TaggedName.from_legacy_format("my.metric") == TaggedName.build("my", "metric")

    def test_parse_value_with_colon(self):
        """Test that values split on the first colon only."""
        name = TaggedName.from_legacy_format("m[url:http://x]")
        assert dict(name.tags) == {"url": "http://x"}

    def test_parse_encoded_name(self):
        """Test decoding what the encoder produced."""
        original = TaggedName.build("a", "b").tagged("x", "1", "y", "2")
        assert TaggedName.from_legacy_format(original.to_legacy_format()) == original

    def test_parse_bracketed_path(self):
        """Test that brackets in the path do not start the tag suffix."""
        original = TaggedName("queue[0]", {"k": "v"})
        encoded = original.to_legacy_format()
        assert encoded == "queue[0][k:v]"
        assert TaggedName.from_legacy_format(encoded) == original

    def test_parse_missing_opening_bracket(self):
        """Test that a closing bracket without an opening one is rejected."""
        with pytest.raises(InvalidArgumentError):
            TaggedName.from_legacy_format("metric]")

    def test_parse_entry_without_colon(self):
        """Test that entries must be key:value."""
        with pytest.raises(InvalidArgumentError):
            TaggedName.from_legacy_format("metric[tenant]")

    def test_parse_none(self):
        """Test that None input raises NullArgumentError."""
        with pytest.raises(NullArgumentError):
            TaggedName.from_legacy_format(None)  # type: ignore[arg-type]


class TestEquality:
    """Tests for equality and hashing."""

    def test_equal_names(self):
        """Test equal path and tags."""
        assert TaggedName.build("a").tagged("k", "v") == TaggedName("a", {"k": "v"})

    def test_different_path(self):
        """Test that paths must match."""
        assert TaggedName.build("a") != TaggedName.build("b")

    def test_different_tags(self):
        """Test that tags must match."""
        assert TaggedName("a", {"k": "1"}) != TaggedName("a", {"k": "2"})
        assert TaggedName("a", {"k": "1"}) != TaggedName("a")

    def test_not_equal_to_other_types(self):
        """Test comparison with unrelated objects."""
        assert TaggedName.build("a") != "a"

    def test_usable_as_dict_key(self):
        """Test hashing for use in sets and dicts."""
        names = {
            TaggedName("a", {"x": "1", "y": "2"}),
            TaggedName("a", {"y": "2", "x": "1"}),
            TaggedName("b"),
        }
        assert len(names) == 2


class TestOrdering:
    """Tests for the total order on names."""

    def test_path_first(self):
        """Test ordering by path."""
        assert TaggedName.build("a") < TaggedName.build("b")
        assert TaggedName("a", {"z": "z"}) < TaggedName("b")

    def test_fewer_tags_first(self):
        """Test that a prefix tag set sorts before a longer one."""
        short = TaggedName("m", {"a": "1"})
        long = TaggedName("m", {"a": "1", "b": "2"})
        assert short < long
        assert not long < short

    def test_untagged_first(self):
        """Test that a name without tags sorts before a tagged one."""
        assert TaggedName("m") < TaggedName("m", {"a": "1"})

    def test_tag_keys_compared(self):
        """Test ordering by tag key."""
        assert TaggedName("m", {"a": "9"}) < TaggedName("m", {"b": "1"})

    def test_tag_values_compared(self):
        """Test ordering by tag value for equal keys."""
        assert TaggedName("m", {"a": "1"}) < TaggedName("m", {"a": "2"})

    def test_missing_value_first(self):
        """Test that a key without a value sorts before the same key with one."""
        assert TaggedName("m", {"a": None}) < TaggedName("m", {"a": ""})  # type: ignore[dict-item]

    def test_equal_names_not_less(self):
        """Test that equal names compare equal in both directions."""
        first = TaggedName("m", {"a": "1"})
        second = TaggedName("m", {"a": "1"})
        assert not first < second
        assert first <= second
        assert first >= second

    def test_sorted(self):
        """Test sorting a list of names."""
        names = [
            TaggedName("b"),
            TaggedName("a", {"k": "2"}),
            TaggedName("a", {"k": "1", "z": "0"}),
            TaggedName("a", {"k": "1"}),
            TaggedName("a"),
        ]
        assert sorted(names) == [
            TaggedName("a"),
            TaggedName("a", {"k": "1"}),
            TaggedName("a", {"k": "1", "z": "0"}),
            TaggedName("a", {"k": "2"}),
            TaggedName("b"),
        ]


class TestRepresentation:
    """Tests for str and repr."""

    def test_str_without_tags(self):
        """Test str of an untagged name."""
        assert str(TaggedName.build("a", "b")) == "a.b"

    def test_str_with_tags(self):
        """Test str of a tagged name."""
        assert str(TaggedName("a", {"k": "v"})) == "a{k: v}"

    def test_str_multiple_tags(self):
        """Test str lists tags in key order."""
        assert str(TaggedName("a", {"z": "1", "b": "2"})) == "a{b: 2, z: 1}"

    def test_repr(self):
        """Test repr shows both fields."""
        assert repr(TaggedName("a", {"k": "v"})) == "TaggedName(path='a', tags={'k': 'v'})"
