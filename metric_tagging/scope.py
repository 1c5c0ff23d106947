"""Ambient tag storage scoped to the current unit of execution.

TagScope holds tags that should be attached to every metric name produced
while a unit of work runs (a request, a job, a task), without passing them
through every call site. The unit of execution is the ``contextvars``
context: every thread has its own, and every asyncio task runs in a copy of
the context that was current when it was created.

Storage is copy-on-write. ``put`` replaces the stored snapshot rather than
mutating it, so a child task that inherited its parent's tags can never
observe tags its parent adds later, and vice versa.

Pooled workers reuse their thread across unrelated jobs. Tags put during one
job stay visible to the next job on the same thread until ``clear`` runs, so
job boundaries must call ``TagScope.clear`` or wrap the job in
``isolated_scope``.

Example:
    >>> TagScope.put("tenant", "acme")
    >>> TaggedName.build("requests").tagged_using_context().to_legacy_format()
    'requests[tenant:acme]'
    >>> TagScope.clear()

    >>> with tag_scope(tenant="acme", region="eu"):
    ...     handle_request()
"""

from __future__ import annotations

import functools
import inspect
from contextvars import ContextVar
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from metric_tagging.exceptions import NullArgumentError


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from contextvars import Token

_NO_TAGS: Mapping[str, str] = MappingProxyType({})

# None means "no scope yet"; get() treats it as an empty scope.
_scope_tags: ContextVar[dict[str, str] | None] = ContextVar("metric_tag_scope", default=None)


class TagScope:
    """Per-execution-unit tag store.

    All methods are static and act on the calling unit's scope only. No
    locking is needed since no two units share a stored snapshot.
    """

    @staticmethod
    def put(name: str, value: str) -> None:
        """Set a tag in the calling unit's scope, replacing any previous value.

        Args:
            name: Tag name.
            value: Tag value.

        Raises:
            NullArgumentError: If name or value is None.
        """
        if name is None:
            raise NullArgumentError("name", message="tag name missing")
        if value is None:
            raise NullArgumentError("value", message="tag value missing")

        current = _scope_tags.get() or {}
        _scope_tags.set({**current, name: value})

    @staticmethod
    def get() -> Mapping[str, str]:
        """Return a read-only view of the calling unit's tags."""
        current = _scope_tags.get()
        if not current:
            return _NO_TAGS
        return MappingProxyType(current)

    @staticmethod
    def snapshot() -> dict[str, str]:
        """Return a mutable copy of the calling unit's tags."""
        return dict(_scope_tags.get() or {})

    @staticmethod
    def is_empty() -> bool:
        return not _scope_tags.get()

    @staticmethod
    def clear() -> None:
        """Drop the calling unit's scope so the next access starts empty."""
        _scope_tags.set(None)

    @staticmethod
    def scoped(tags: Mapping[str, str]) -> _ScopedTags:
        """Overlay ``tags`` on the current scope for the length of a ``with`` block.

        Args:
            tags: Tags to add. They override same-named tags already in scope.

        Returns:
            Context manager restoring the previous scope on exit.
        """
        return _ScopedTags(tags)


class _ScopedTags:
    """Context manager backing TagScope.scoped and tag_scope.

    Re-entrant within one thread or task; each entry restores its own token.
    """

    def __init__(self, tags: Mapping[str, str], *, isolated: bool = False) -> None:
        for name, value in tags.items():
            if name is None:
                raise NullArgumentError("name", message="tag name missing")
            if value is None:
                raise NullArgumentError("value", message=f"tag value missing for '{name}'")
        self._tags = dict(tags)
        self._isolated = isolated
        self._tokens: list[Token[dict[str, str] | None]] = []

    def __enter__(self) -> Mapping[str, str]:
        base = {} if self._isolated else (_scope_tags.get() or {})
        merged = {**base, **self._tags}
        self._tokens.append(_scope_tags.set(merged or None))
        return TagScope.get()

    def __exit__(self, *args: Any) -> None:
        if self._tokens:
            _scope_tags.reset(self._tokens.pop())


def tag_scope(**tags: str) -> _ScopedTags:
    """Add tags to the current scope for the duration of a ``with`` block.

    Nested blocks merge, with inner values winning. The previous scope is
    restored on exit, including when the block raises.

    Example:
        >>> with tag_scope(tenant="acme"):
        ...     with tag_scope(region="eu"):
        ...         TagScope.get()
        mappingproxy({'tenant': 'acme', 'region': 'eu'})
    """
    return _ScopedTags(tags)


def isolated_scope(**tags: str) -> _ScopedTags:
    """Run a ``with`` block in a fresh scope holding only ``tags``.

    Use at job boundaries on reused threads so nothing from an earlier job
    leaks in, and nothing put during the job leaks out.
    """
    return _ScopedTags(tags, isolated=True)


def with_tag_scope(**tags: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator running a function inside ``tag_scope(**tags)``.

    Works for both sync and async functions. For coroutines the scope is
    entered when the coroutine runs, not when it is created.

    Example:
        >>> @with_tag_scope(component="billing")
        ... async def charge(order):
        ...     ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with _ScopedTags(tags):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with _ScopedTags(tags):
                return func(*args, **kwargs)

        return sync_wrapper

    return decorator
