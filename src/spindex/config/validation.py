"""Validation of configuration values.

Section constructors reject bad values up front; the rules here re-check a
finished SpindexConfig (values assigned with ``set_nested`` bypass the
constructors) and add warnings for settings that work but are unwise.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Callable, Optional

from .schema import LogLevel, SpindexConfig, SplitStrategy


@dataclass(frozen=True)
class ValidationError:
    """A problem with one configuration key."""

    key: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        suffix = "" if self.value is None else f" (got: {self.value!r})"
        return f"{self.key}: {self.message}{suffix}"


@dataclass
class ValidationResult:
    """Errors and warnings collected by ``validate_config``."""

    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid


class ConfigValidationError(ValueError):
    """An invalid configuration was about to be written.

    Attributes:
        errors: The failed checks
        warnings: Non-fatal findings from the same validation run
    """

    def __init__(
        self,
        message: str,
        errors: list[ValidationError],
        warnings: Optional[list[ValidationError]] = None,
    ) -> None:
        self.errors = list(errors)
        self.warnings = list(warnings or [])
        details = [message]
        details += [f"  error: {e}" for e in self.errors]
        details += [f"  warning: {w}" for w in self.warnings]
        super().__init__("\n".join(details))


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _known_distance(v: Any) -> bool:
    # Deferred: the distance registry imports from the core package
    from ..core.distance import DISTANCE_FUNCTIONS

    return v in DISTANCE_FUNCTIONS


def _log_level(v: Any) -> bool:
    return isinstance(v, str) and v.upper() in {level.value for level in LogLevel}


# (key, check, message): a value failing the check is an error
_ERROR_RULES: list[tuple[str, Callable[[Any], bool], str]] = [
    ("index.max_entries", lambda v: _is_int(v) and v >= 4, "must be an integer >= 4"),
    (
        "index.min_fill",
        lambda v: isinstance(v, Real) and 0.0 < v <= 0.5,
        "must be in (0.0, 0.5]",
    ),
    (
        "index.split",
        lambda v: v in {s.value for s in SplitStrategy},
        f"must be one of {[s.value for s in SplitStrategy]}",
    ),
    (
        "optics.epsilon",
        lambda v: isinstance(v, Real) and not math.isnan(v) and v >= 0,
        "must be a non-negative number",
    ),
    ("optics.min_pts", lambda v: _is_int(v) and v >= 1, "must be an integer >= 1"),
    ("optics.distance", _known_distance, "unknown distance function"),
    ("logging.level", _log_level, f"must be one of {[lvl.value for lvl in LogLevel]}"),
]

# (key, predicate, message): a value matching the predicate is a warning
_WARNING_RULES: list[tuple[str, Callable[[Any], bool], str]] = [
    (
        "index.max_entries",
        lambda v: _is_int(v) and v > 512,
        "very large pages degrade pruning during queries",
    ),
    (
        "optics.min_pts",
        lambda v: v == 1,
        "min_pts of 1 makes every point a core point",
    ),
]


def validate_config(config: SpindexConfig) -> ValidationResult:
    """Check every known key of ``config``."""
    result = ValidationResult()
    for key, check, message in _ERROR_RULES:
        value = config.get_nested(key)
        if not check(value):
            result.errors.append(ValidationError(key, message, value))
    for key, predicate, message in _WARNING_RULES:
        value = config.get_nested(key)
        if predicate(value):
            result.warnings.append(ValidationError(key, message, value))
    if not config.logging.console and not config.logging.file:
        result.warnings.append(
            ValidationError("logging.console", "no log output configured", False)
        )
    return result


def validate_value(key: str, value: Any) -> Optional[ValidationError]:
    """Check a single value for ``key``; keys without a rule always pass."""
    for rule_key, check, message in _ERROR_RULES:
        if rule_key == key and not check(value):
            return ValidationError(key, message, value)
    return None
