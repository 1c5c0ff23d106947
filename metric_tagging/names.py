"""Tagged metric names.

A TaggedName is a dot-separated metric path plus a set of key/value tags.
Backends that only understand flat names receive the tags encoded as a
bracketed suffix:

    requests.count                          (no tags)
    requests.count[region:eu,tenant:acme]   (tags, keys ascending)

Tags are always stored sorted by key, so two names built from the same tags
in any order compare equal, hash equal and encode to the same string.

The encoder does not escape ``.``, ``:``, ``,``, ``[`` or ``]`` inside tag
keys or values. Names using those characters encode ambiguously; keep them
out of tags (``MetricNamer`` with ``strict_tags`` enforces this).

Example:
    >>> name = TaggedName.build("my", "metric").tagged("tenant", "tenant-id")
    >>> name.to_legacy_format()
    'my.metric[tenant:tenant-id]'
    >>> name.append(TaggedName.build("errors")).path
    'my.metric.errors'
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from metric_tagging.exceptions import InvalidArgumentError, NullArgumentError
from metric_tagging.scope import TagScope


SEPARATOR = "."

_EMPTY_TAGS: Mapping[str, str] = MappingProxyType({})


def _sorted_tags(tags: Mapping[str, str] | None) -> Mapping[str, str]:
    """Return a read-only copy of ``tags`` ordered by key."""
    if not tags:
        return _EMPTY_TAGS
    return MappingProxyType(dict(sorted(tags.items(), key=lambda item: item[0])))


def _compare_values(left: str | None, right: str | None) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    return (left > right) - (left < right)


def _compare_tags(left: Mapping[str, str], right: Mapping[str, str]) -> int:
    """Compare two key-sorted tag maps entry by entry.

    Keys compare first, then values (a missing value sorts first). When every
    compared entry ties, the map with fewer entries sorts first.
    """
    for (lkey, lvalue), (rkey, rvalue) in zip(left.items(), right.items()):
        if lkey != rkey:
            return -1 if lkey < rkey else 1
        c = _compare_values(lvalue, rvalue)
        if c != 0:
            return c
    return (len(left) > len(right)) - (len(left) < len(right))


@functools.total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class TaggedName:
    """Immutable metric name with tags.

    Every derivation (``resolve``, ``tagged``, ``append``, ...) returns a new
    instance; an existing instance never changes. Instances are safe to share
    between threads and tasks.

    Attributes:
        path: Dot-separated metric path. May be empty.
        tags: Read-only tag mapping, iterated in ascending key order.

    Example:
        >>> TaggedName("requests", {"b": "2", "a": "1"}).tags
        mappingproxy({'a': '1', 'b': '2'})
    """

    path: str
    tags: Mapping[str, str] | None = None

    def __post_init__(self) -> None:
        """Validate the path and store tags in canonical order."""
        if self.path is None:
            raise NullArgumentError("path")
        object.__setattr__(self, "tags", _sorted_tags(self.tags))

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def empty(cls) -> TaggedName:
        """Return the shared name with an empty path and no tags."""
        return EMPTY_NAME

    @classmethod
    def build(cls, *parts: str | None) -> TaggedName:
        """Build a name from path segments.

        Equivalent to ``TaggedName.empty().resolve(*parts)``.
        """
        return EMPTY_NAME.resolve(*parts)

    @classmethod
    def from_legacy_format(cls, text: str) -> TaggedName:
        """Parse the string produced by ``to_legacy_format``.

        The tag suffix starts at the last ``[``, so the path itself may
        contain brackets. Only names whose tag keys and values avoid ``:``,
        ``,``, ``[`` and ``]`` parse back to the original name.

        Args:
            text: Encoded name, e.g. ``"requests[tenant:acme]"``.

        Returns:
            The decoded name.

        Raises:
            NullArgumentError: If text is None.
            InvalidArgumentError: If the tag suffix is malformed.
        """
        if text is None:
            raise NullArgumentError("text")
        if not text.endswith("]"):
            return cls(text)

        start = text.rfind("[")
        if start < 0:
            raise InvalidArgumentError(
                "Tag suffix has no opening bracket",
                argument="text",
                value=text,
            )

        tags: dict[str, str] = {}
        body = text[start + 1 : -1]
        if body:
            for entry in body.split(","):
                key, sep, value = entry.partition(":")
                if not sep:
                    raise InvalidArgumentError(
                        f"Tag entry '{entry}' is not in key:value form",
                        argument="text",
                        value=text,
                    )
                tags[key] = value
        return cls(text[:start], tags)

    # -------------------------------------------------------------------------
    # Derivation
    # -------------------------------------------------------------------------

    def resolve(self, *parts: str | None) -> TaggedName:
        """Return a name with ``parts`` appended to the path.

        None and empty segments are skipped, so no doubled, leading or
        trailing separators are produced. Tags are inherited unchanged.
        Calling with no parts returns this instance.

        Example:
            >>> TaggedName.build("x").resolve("a", "", None, "b").path
            'x.a.b'
        """
        if not parts:
            return self

        segments = (self.path, *parts)
        new_path = SEPARATOR.join(s for s in segments if s)
        return TaggedName(new_path, self.tags)

    def tagged(self, *args: Any) -> TaggedName:
        """Return a name with additional tags.

        Accepts either a single mapping or an even number of strings read as
        ``key, value, key, value, ...``. New values win over existing tags
        with the same key; later pairs win over earlier ones.

        Args:
            *args: A tag mapping, or alternating keys and values.

        Returns:
            A new name with merged tags, or this instance when no tags are given.

        Raises:
            InvalidArgumentError: If an odd number of pair arguments is given.

        Example:
            >>> TaggedName.build("m").tagged({"a": "1"}).tagged("a", "2", "b", "3").tags
            mappingproxy({'a': '2', 'b': '3'})
        """
        if len(args) == 1 and isinstance(args[0], Mapping):
            add = args[0]
        else:
            if not args:
                return self
            if len(args) % 2 != 0:
                raise InvalidArgumentError(
                    "Argument count must be even",
                    argument="pairs",
                    details={"count": len(args)},
                )
            add = dict(zip(args[::2], args[1::2]))

        return TaggedName(self.path, {**self.tags, **add})

    def tagged_using_context(self) -> TaggedName:
        """Return a name with the calling unit's TagScope tags added.

        Scope tags win over tags already on this name. When the scope is
        empty this instance is returned unchanged.
        """
        if TagScope.is_empty():
            return self
        return self.tagged(TagScope.get())

    def without_tags(self, *keys: str) -> TaggedName:
        """Return a name with the given tag keys removed."""
        if not any(key in self.tags for key in keys):
            return self
        return TaggedName(
            self.path,
            {k: v for k, v in self.tags.items() if k not in keys},
        )

    def append(self, other: TaggedName) -> TaggedName:
        """Return a name with ``other``'s path appended and its tags merged.

        Same as ``self.resolve(other.path).tagged(other.tags)``.
        """
        return self.resolve(other.path).tagged(other.tags)

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def to_legacy_format(self) -> str:
        """Encode as ``path[k1:v1,k2:v2]``, or just ``path`` with no tags."""
        if not self.tags:
            return self.path
        encoded = ",".join(f"{key}:{value}" for key, value in self.tags.items())
        return f"{self.path}[{encoded}]"

    # -------------------------------------------------------------------------
    # Value semantics
    # -------------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, TaggedName):
            return NotImplemented
        return self.path == other.path and dict(self.tags) == dict(other.tags)

    def __hash__(self) -> int:
        return hash((self.path, tuple(self.tags.items())))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TaggedName):
            return NotImplemented
        if self.path != other.path:
            return self.path < other.path
        return _compare_tags(self.tags, other.tags) < 0

    def __str__(self) -> str:
        if not self.tags:
            return self.path
        rendered = ", ".join(f"{key}: {value}" for key, value in self.tags.items())
        return f"{self.path}{{{rendered}}}"

    def __repr__(self) -> str:
        return f"TaggedName(path={self.path!r}, tags={dict(self.tags)!r})"


EMPTY_NAME = TaggedName("", _EMPTY_TAGS)
