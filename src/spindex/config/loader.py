"""Layered configuration loading for spindex.

Layers, later ones win:
1. Built-in defaults
2. User file (~/.config/spindex/config.toml)
3. Project file (<project>/spindex.toml)
4. SPINDEX_<SECTION>_<KEY> environment variables

Programmatic changes on the returned SpindexConfig come last.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

import tomli_w

from .schema import IndexConfig, LoggingConfig, OpticsConfig, SpindexConfig
from .validation import ConfigValidationError, validate_config

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

USER_CONFIG_PATH = Path.home() / ".config" / "spindex" / "config.toml"
PROJECT_CONFIG_NAME = "spindex.toml"
ENV_PREFIX = "SPINDEX_"

# Section name -> dataclass holding its keys
SECTION_TYPES = {
    "index": IndexConfig,
    "optics": OpticsConfig,
    "logging": LoggingConfig,
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce_env_value(raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the key's default."""
    text = raw.strip()
    if isinstance(default, bool):
        if text.lower() in _TRUE:
            return True
        if text.lower() in _FALSE:
            return False
        raise ValueError(f"Expected a boolean, got {raw!r}")
    if isinstance(default, int):
        return int(text)
    if isinstance(default, float):
        return float(text)
    if default is None and text.lower() in ("", "none", "null"):
        return None
    return text


def _merge_sections(
    base: dict[str, dict[str, Any]], layer: Mapping[str, Any]
) -> dict[str, dict[str, Any]]:
    """Overlay one configuration layer, section by section."""
    merged = {name: dict(values) for name, values in base.items()}
    for name, values in layer.items():
        if name not in SECTION_TYPES:
            logger.warning(f"Ignoring unknown config section [{name}]")
            continue
        if not isinstance(values, Mapping):
            logger.warning(f"Ignoring config section [{name}]: not a table")
            continue
        merged.setdefault(name, {}).update(values)
    return merged


class ConfigLoader:
    """Load configuration from files and the environment."""

    def __init__(
        self,
        project_path: Optional[Path] = None,
        user_config_path: Optional[Path] = None,
    ):
        """
        Args:
            project_path: Directory containing spindex.toml
            user_config_path: Location of the user file; defaults to
                ~/.config/spindex/config.toml
        """
        self.project_path = Path(project_path) if project_path else None
        self.user_config_path = Path(user_config_path or USER_CONFIG_PATH)

    @property
    def project_config_path(self) -> Optional[Path]:
        if self.project_path is None:
            return None
        return self.project_path / PROJECT_CONFIG_NAME

    def load(self) -> SpindexConfig:
        """Merge every layer into a SpindexConfig.

        Raises:
            ValueError: If a merged value fails the schema checks
        """
        sections: dict[str, dict[str, Any]] = {}
        for source, layer in self._layers():
            sections = _merge_sections(sections, layer)
            logger.debug(f"Applied configuration layer: {source}")
        return SpindexConfig.from_dict(sections)

    def _layers(self) -> Iterator[tuple[str, Mapping[str, Any]]]:
        for path in (self.user_config_path, self.project_config_path):
            if path is not None and path.is_file():
                data = self._read_file(path)
                if data:
                    yield str(path), data
        env = self._read_env()
        if env:
            yield "environment", env

    def _read_file(self, path: Path) -> Optional[dict[str, Any]]:
        """Parse a TOML file; an unparsable file is skipped with a warning."""
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.warning(f"Skipping malformed config file {path}: {e}")
            return None

    def _read_env(self) -> dict[str, dict[str, Any]]:
        """Collect SPINDEX_<SECTION>_<KEY> variables.

        The key is matched against the section's dataclass fields, so
        SPINDEX_INDEX_MAX_ENTRIES maps to index.max_entries. Values are
        converted to the type of the field's default.
        """
        found: dict[str, dict[str, Any]] = {}
        for name, raw in os.environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
            section_type = SECTION_TYPES.get(section)
            if section_type is None:
                logger.debug(f"Ignoring {name}: unknown section '{section}'")
                continue
            defaults = {f.name: f.default for f in dataclasses.fields(section_type)}
            if key not in defaults:
                logger.debug(f"Ignoring {name}: unknown key '{section}.{key}'")
                continue
            found.setdefault(section, {})[key] = _coerce_env_value(raw, defaults[key])
        return found

    def save_project_config(self, config: SpindexConfig) -> Path:
        """Write ``config`` to <project>/spindex.toml and return the path."""
        path = self.project_config_path
        if path is None:
            raise ValueError("No project path set")
        self._write_file(path, config)
        logger.info(f"Saved project config to {path}")
        return path

    def save_user_config(self, config: SpindexConfig) -> Path:
        """Write ``config`` to the user file and return the path."""
        self._write_file(self.user_config_path, config)
        logger.info(f"Saved user config to {self.user_config_path}")
        return self.user_config_path

    def _write_file(self, path: Path, config: SpindexConfig) -> None:
        """Validate, then write as TOML.

        Raises:
            ConfigValidationError: If the configuration is invalid
        """
        result = validate_config(config)
        if not result.valid:
            raise ConfigValidationError(
                f"Refusing to save invalid configuration to {path}",
                result.errors,
                result.warnings,
            )

        # TOML has no null
        document = {
            section: {k: v for k, v in values.items() if v is not None}
            for section, values in config.to_dict().items()
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            tomli_w.dump(document, f)


def load_config(
    project_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
) -> SpindexConfig:
    """Load spindex configuration from all layers."""
    return ConfigLoader(project_path, user_config_path).load()


def get_default_config() -> SpindexConfig:
    """A SpindexConfig holding only built-in defaults."""
    return SpindexConfig()


def save_config(config: SpindexConfig, path: Path) -> Path:
    """Save configuration as ``spindex.toml`` inside directory ``path``."""
    return ConfigLoader(project_path=path).save_project_config(config)
