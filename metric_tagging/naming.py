"""Configured metric name construction.

MetricNamer applies a TaggingConfig on top of TaggedName so that call sites
only name the metric:

    name = prefix + parts
    tags = default tags < explicit tags < TagScope tags

Example:
    >>> namer = MetricNamer(TaggingConfig(prefix="billing", default_tags={"env": "prod"}))
    >>> with tag_scope(tenant="acme"):
    ...     namer.legacy("invoices", "created")
    'billing.invoices.created[env:prod,tenant:acme]'
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from metric_tagging.config import TaggingConfig
from metric_tagging.exceptions import InvalidArgumentError
from metric_tagging.logging import LogLevel, get_logger, get_registry
from metric_tagging.names import TaggedName


if TYPE_CHECKING:
    from collections.abc import Mapping


logger = get_logger(__name__)

# Characters with meaning in the legacy encoding.
RESERVED_TAG_CHARACTERS = frozenset(".:,[]")


def validate_tag_characters(tags: Mapping[str, str]) -> None:
    """Reject tags whose keys or values would encode ambiguously.

    Args:
        tags: Tags to check.

    Raises:
        InvalidArgumentError: If a key or value contains ``.``, ``:``, ``,``,
            ``[`` or ``]``.
    """
    for key, value in tags.items():
        for label, text in (("key", key), ("value", value)):
            if text is None:
                continue
            bad = sorted(RESERVED_TAG_CHARACTERS.intersection(text))
            if bad:
                raise InvalidArgumentError(
                    f"Tag {label} {text!r} contains reserved characters {''.join(bad)!r}",
                    argument="tags",
                    value=text,
                    details={"tag": key},
                )


class MetricNamer:
    """Builds TaggedNames from a TaggingConfig.

    Attributes:
        config: The configuration in use.
    """

    def __init__(self, config: TaggingConfig | None = None) -> None:
        self.config = config or TaggingConfig()
        self._base = TaggedName.build(self.config.prefix).tagged(self.config.default_tags)
        logger.debug(
            "Metric namer configured",
            prefix=self.config.prefix,
            default_tags=dict(self.config.default_tags),
            include_context_tags=self.config.include_context_tags,
        )

    @property
    def base(self) -> TaggedName:
        """The prefix and default tags every name starts from."""
        return self._base

    def name(self, *parts: str | None, tags: Mapping[str, str] | None = None) -> TaggedName:
        """Build a name under the configured prefix.

        Args:
            *parts: Path segments after the prefix.
            tags: Explicit tags. They override default tags.

        Returns:
            The tagged name. TagScope tags override both default and explicit
            tags when ``include_context_tags`` is enabled.

        Raises:
            InvalidArgumentError: If ``strict_tags`` is enabled and a tag
                contains a reserved character.
        """
        result = self._base.resolve(*parts)
        if tags:
            result = result.tagged(tags)
        if self.config.include_context_tags:
            result = result.tagged_using_context()
        if self.config.strict_tags:
            validate_tag_characters(result.tags)
        return result

    def legacy(self, *parts: str | None, tags: Mapping[str, str] | None = None) -> str:
        """Build a name and encode it for a name-only metrics backend."""
        encoded = self.name(*parts, tags=tags).to_legacy_format()
        logger.debug("Encoded metric name", name=encoded)
        return encoded


# =============================================================================
# Default Namer
# =============================================================================

_default_namer: MetricNamer | None = None
_default_lock = threading.Lock()


def get_namer() -> MetricNamer:
    """Return the process-wide namer, loading configuration on first use."""
    global _default_namer
    if _default_namer is None:
        with _default_lock:
            if _default_namer is None:
                config = TaggingConfig.load()
                if config.log_level is not None:
                    get_registry().set_level(LogLevel.from_string(config.log_level))
                _default_namer = MetricNamer(config)
    return _default_namer


def set_namer(namer: MetricNamer | None) -> None:
    """Replace the process-wide namer. ``None`` reloads it on next use."""
    global _default_namer
    with _default_lock:
        _default_namer = namer
