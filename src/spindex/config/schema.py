"""Typed configuration sections for spindex.

Every section is a dataclass; its field defaults are the built-in defaults
and ``__post_init__`` rejects values the index or OPTICS cannot run with.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SplitStrategy(str, Enum):
    """Node split algorithms for the R-tree."""

    QUADRATIC = "quadratic"
    LINEAR = "linear"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class _Section:
    """Dictionary conversion shared by the section dataclasses."""

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        """Build from a mapping; missing keys keep their defaults, unknown keys are dropped."""
        names = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})


@dataclass
class IndexConfig(_Section):
    """Spatial index page layout settings."""

    # Maximum number of entries per node page
    max_entries: int = 16

    # Minimum fill of non-root pages as a fraction of max_entries
    min_fill: float = 0.4

    # Split algorithm used on page overflow
    split: str = SplitStrategy.QUADRATIC.value

    def __post_init__(self) -> None:
        if isinstance(self.split, SplitStrategy):
            self.split = self.split.value
        if self.max_entries < 4:
            raise ValueError("max_entries must be at least 4")
        if not 0.0 < self.min_fill <= 0.5:
            raise ValueError("min_fill must be in (0.0, 0.5]")
        if self.split not in {s.value for s in SplitStrategy}:
            raise ValueError(
                f"split must be one of {[s.value for s in SplitStrategy]}"
            )

    @property
    def min_entries(self) -> int:
        """Minimum number of entries in a non-root page."""
        return max(2, int(self.max_entries * self.min_fill))


@dataclass
class OpticsConfig(_Section):
    """Default parameters for reachability ordering runs."""

    # Neighborhood radius; infinity considers every record a neighbor
    epsilon: float = math.inf

    # Neighbors (including the point itself) required for a core point
    min_pts: int = 5

    # Name of the distance function
    distance: str = "euclidean"

    def __post_init__(self) -> None:
        self.epsilon = float(self.epsilon)
        if math.isnan(self.epsilon) or self.epsilon < 0:
            raise ValueError("epsilon must be non-negative")
        if self.min_pts < 1:
            raise ValueError("min_pts must be at least 1")


@dataclass
class LoggingConfig(_Section):
    """Handlers installed by ``configure_logging``."""

    level: str = LogLevel.INFO.value
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    file: Optional[str] = None
    console: bool = True


@dataclass
class SpindexConfig:
    """All configuration sections.

    Values are resolved from defaults, the user file, the project file and
    SPINDEX_* environment variables, in that order (see ConfigLoader).
    Keys are addressed as ``"<section>.<name>"``, e.g. ``"index.max_entries"``.
    """

    index: IndexConfig = field(default_factory=IndexConfig)
    optics: OpticsConfig = field(default_factory=OpticsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {
            "index": self.index.to_dict(),
            "optics": self.optics.to_dict(),
            "logging": self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SpindexConfig:
        return cls(
            index=IndexConfig.from_dict(data.get("index", {})),
            optics=OpticsConfig.from_dict(data.get("optics", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
        )

    def _resolve(self, key: str) -> tuple[_Section, str]:
        section_name, _, name = key.partition(".")
        section = getattr(self, section_name, None)
        if not isinstance(section, _Section) or name not in {
            f.name for f in dataclasses.fields(section)
        }:
            raise KeyError(f"Invalid configuration key: {key}")
        return section, name

    def get_nested(self, key: str, default: Any = None) -> Any:
        """Value at ``"<section>.<name>"``, or ``default`` for unknown keys."""
        try:
            section, name = self._resolve(key)
        except KeyError:
            return default
        return getattr(section, name)

    def set_nested(self, key: str, value: Any) -> None:
        """Assign ``"<section>.<name>"`` without re-running section checks.

        Raises:
            KeyError: If the key does not exist
        """
        section, name = self._resolve(key)
        setattr(section, name, value)
