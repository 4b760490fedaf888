"""Project settings read from ``.larasense/config.yml``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from larasense.errors import ConfigError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_DIR = ".larasense"
CONFIG_FILE = "config.yml"

DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_OUTPUT_MB = 2.0
DEFAULT_DEBOUNCE_MS = 500
DEFAULT_DIAGNOSTICS_DELAY_MS = 500


@dataclass(frozen=True)
class Settings:
    """Tunables for the bridge, watcher and repositories."""

    php_path: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    max_output_mb: float = DEFAULT_MAX_OUTPUT_MB
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    diagnostics_delay_ms: int = DEFAULT_DIAGNOSTICS_DELAY_MS
    cache_ttl: dict[str, float] = field(default_factory=dict)

    @property
    def max_output_bytes(self) -> int:
        return int(self.max_output_mb * 1024 * 1024)

    def ttl_for(self, domain: str, default: float) -> float:
        """Return the configured cache TTL for *domain*, or *default*."""
        return self.cache_ttl.get(domain, default)


def _number(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number, got {value!r}")
    if value < 0:
        raise ConfigError(f"'{key}' must not be negative")
    return float(value)


def parse_settings(data: dict[str, Any]) -> Settings:
    """Build :class:`Settings` from a parsed YAML mapping.

    Raises :class:`ConfigError` when a key holds a value of the wrong type.
    """
    php_path = data.get("php_path")
    if php_path is not None and not isinstance(php_path, str):
        raise ConfigError(f"'php_path' must be a string, got {php_path!r}")

    raw_ttl = data.get("cache_ttl") or {}
    if not isinstance(raw_ttl, dict):
        raise ConfigError("'cache_ttl' must be a mapping of domain -> seconds")
    cache_ttl = {str(domain): _number(raw_ttl, domain, 0) for domain in raw_ttl}

    return Settings(
        php_path=php_path or None,
        timeout=_number(data, "timeout", DEFAULT_TIMEOUT),
        max_output_mb=_number(data, "max_output_mb", DEFAULT_MAX_OUTPUT_MB),
        debounce_ms=int(_number(data, "debounce_ms", DEFAULT_DEBOUNCE_MS)),
        diagnostics_delay_ms=int(
            _number(data, "diagnostics_delay_ms", DEFAULT_DIAGNOSTICS_DELAY_MS)
        ),
        cache_ttl=cache_ttl,
    )


def load_settings(project_root: Path) -> Settings:
    """Load settings for *project_root*.

    A missing config file yields defaults.  A file that is not valid YAML
    (or not a mapping) is logged and ignored.
    """
    import yaml

    config_path = project_root / CONFIG_DIR / CONFIG_FILE
    if not config_path.is_file():
        return Settings()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return Settings()

    if not isinstance(data, dict):
        logger.warning("%s is not a mapping, using defaults", config_path)
        return Settings()

    return parse_settings(data)
