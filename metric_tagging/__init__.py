"""Metric Tagging.

Tagged metric names for metrics backends that only understand flat,
dot-separated names, plus ambient per-request tags.

Tagged Names:
    >>> from metric_tagging import TaggedName
    >>> name = TaggedName.build("my", "metric").tagged("tenant", "tenant-id")
    >>> name.to_legacy_format()
    'my.metric[tenant:tenant-id]'

Ambient Tags:
    >>> from metric_tagging import TagScope, tag_scope
    >>> with tag_scope(tenant="acme"):
    ...     TaggedName.build("requests").tagged_using_context().to_legacy_format()
    'requests[tenant:acme]'

    Code that uses TagScope.put directly on pooled threads must call
    TagScope.clear() when the unit of work ends.

Configured Naming:
    >>> from metric_tagging import MetricNamer, TaggingConfig
    >>> namer = MetricNamer(TaggingConfig(prefix="billing", default_tags={"env": "prod"}))
    >>> namer.legacy("invoices")
    'billing.invoices[env:prod]'
"""

from metric_tagging.config import (
    DEFAULT_TAGGING_CONFIG,
    EnvReader,
    TaggingConfig,
    find_config_file,
    load_config_file,
    require_valid_config,
    validate_config,
)
from metric_tagging.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    InvalidConfigValueError,
    MetricTaggingError,
    MissingConfigError,
    NullArgumentError,
)
from metric_tagging.logging import (
    LogLevel,
    configure_logging,
    get_logger,
)
from metric_tagging.names import EMPTY_NAME, SEPARATOR, TaggedName
from metric_tagging.naming import (
    RESERVED_TAG_CHARACTERS,
    MetricNamer,
    get_namer,
    set_namer,
    validate_tag_characters,
)
from metric_tagging.scope import (
    TagScope,
    isolated_scope,
    tag_scope,
    with_tag_scope,
)


__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Names
    "EMPTY_NAME",
    "SEPARATOR",
    "TaggedName",
    # Scope
    "TagScope",
    "isolated_scope",
    "tag_scope",
    "with_tag_scope",
    # Naming
    "RESERVED_TAG_CHARACTERS",
    "MetricNamer",
    "get_namer",
    "set_namer",
    "validate_tag_characters",
    # Configuration
    "DEFAULT_TAGGING_CONFIG",
    "EnvReader",
    "TaggingConfig",
    "find_config_file",
    "load_config_file",
    "require_valid_config",
    "validate_config",
    # Exceptions
    "ConfigurationError",
    "InvalidArgumentError",
    "InvalidConfigValueError",
    "MetricTaggingError",
    "MissingConfigError",
    "NullArgumentError",
    # Logging
    "LogLevel",
    "configure_logging",
    "get_logger",
]
