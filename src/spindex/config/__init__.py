"""Settings for the index, OPTICS runs and logging.

``load_config`` merges built-in defaults, ~/.config/spindex/config.toml,
./spindex.toml and SPINDEX_<SECTION>_<KEY> environment variables, with later
sources overriding earlier ones::

    config = load_config(project_path=Path("."))
    tree = RTree(dimensionality=2, config=config.index)

Anything set on the returned object afterwards takes precedence over all of
them.
"""

from .loader import (
    ConfigLoader,
    get_default_config,
    load_config,
    save_config,
)
from .schema import (
    IndexConfig,
    LoggingConfig,
    LogLevel,
    OpticsConfig,
    SpindexConfig,
    SplitStrategy,
)
from .validation import (
    ConfigValidationError,
    ValidationError,
    ValidationResult,
    validate_config,
    validate_value,
)

__all__ = [
    "SpindexConfig",
    "IndexConfig",
    "OpticsConfig",
    "LoggingConfig",
    "SplitStrategy",
    "LogLevel",
    "ConfigLoader",
    "load_config",
    "save_config",
    "get_default_config",
    "validate_config",
    "validate_value",
    "ValidationError",
    "ValidationResult",
    "ConfigValidationError",
]
