"""Configuration keys, flattened from ``config()->all()`` into dot notation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from larasense.infrastructure.bridge import decode_json
from larasense.models import ConfigInfo
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from larasense.infrastructure.bridge import ProcessBridge

# Leaf values longer than this are truncated for display.
MAX_VALUE_LENGTH = 100

# The tree is flattened in Python; PHP only has to serialize it.
CONFIGS_PHP = r"""
echo json_encode(config()->all(), JSON_PARTIAL_OUTPUT_ON_ERROR);
"""


def render_value(value: Any) -> str:
    """Render a leaf config value the way it is shown to the user."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (list, dict)):
        return "[array]"
    text = str(value)
    if isinstance(value, str) and len(text) > MAX_VALUE_LENGTH:
        return text[:MAX_VALUE_LENGTH] + "..."
    return text


def key_to_file(key: str) -> str:
    """``app.name`` -> ``config/app.php``."""
    return f"config/{key.split('.', 1)[0]}.php"


def flatten_config(tree: dict[str, Any] | list[Any], prefix: str = "") -> list[ConfigInfo]:
    """Flatten a nested config tree depth-first into dot-separated keys.

    Non-empty arrays produce a ``has_children`` entry followed by their
    descendants; empty arrays are leaves.
    """
    items = tree.items() if isinstance(tree, dict) else enumerate(tree)
    result: list[ConfigInfo] = []
    for key, value in items:
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, (dict, list)) and value:
            result.append(ConfigInfo(full_key, "[array]", key_to_file(full_key), True))
            result.extend(flatten_config(value, full_key))
        else:
            result.append(ConfigInfo(full_key, render_value(value), key_to_file(full_key)))
    return result


class ConfigRepository(Repository[ConfigInfo]):
    domain = "configs"

    def __init__(self, bridge: ProcessBridge, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge

    def key_of(self, record: ConfigInfo) -> str:
        return record.key

    def _acquire(self) -> list[ConfigInfo]:
        tree = decode_json(self.bridge.run(CONFIGS_PHP), dict, "configs")
        return flatten_config(tree)

    def children(self, prefix: str) -> list[ConfigInfo]:
        """Return the direct children of *prefix* (top-level keys for ``""``)."""
        dot_prefix = f"{prefix}." if prefix else ""
        return [
            c
            for c in self.all()
            if c.key.startswith(dot_prefix) and "." not in c.key[len(dot_prefix) :]
        ]
