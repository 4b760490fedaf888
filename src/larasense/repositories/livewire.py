"""Livewire components from ``app/Livewire`` (v3) and ``app/Http/Livewire`` (v2)."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from larasense.models import LivewireComponentInfo, LivewireProperty
from larasense.repositories.base import Repository
from larasense.repositories.blade_components import to_kebab_case

logger = logging.getLogger(__name__)

COMPONENT_DIRS: tuple[tuple[Path, str], ...] = (
    (Path("app") / "Livewire", "App\\Livewire"),
    (Path("app") / "Http" / "Livewire", "App\\Http\\Livewire"),
)

_PROPERTY_RE = re.compile(r"public\s+(?:(\?\w+|\w+)\s+)?\$(\w+)")
_METHOD_RE = re.compile(r"public\s+function\s+(\w+)\s*\(")

# Framework-managed state, not user data.
_HIDDEN_PROPERTIES = frozenset({"id", "paginators", "page"})

LIFECYCLE_HOOKS = frozenset(
    {
        "mount",
        "hydrate",
        "dehydrate",
        "render",
        "updating",
        "updated",
        "boot",
        "booted",
        "__construct",
    }
)


def parse_component(content: str) -> tuple[tuple[LivewireProperty, ...], tuple[str, ...]]:
    """Return the public properties and public action methods of a component."""
    properties = tuple(
        LivewireProperty(m.group(2), m.group(1) or None)
        for m in _PROPERTY_RE.finditer(content)
        if m.group(2) not in _HIDDEN_PROPERTIES
    )
    methods = tuple(
        name
        for name in (m.group(1) for m in _METHOD_RE.finditer(content))
        if name not in LIFECYCLE_HOOKS
        and not name.startswith(("updating", "updated"))
    )
    return properties, methods


class LivewireRepository(Repository[LivewireComponentInfo]):
    domain = "livewire"

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: LivewireComponentInfo) -> str:
        return record.name

    def _acquire(self) -> list[LivewireComponentInfo]:
        components: list[LivewireComponentInfo] = []
        for relative_dir, namespace in COMPONENT_DIRS:
            base_dir = self.project_root / relative_dir
            if base_dir.is_dir():
                components.extend(self._scan(base_dir, namespace))
        return components

    def _scan(self, base_dir: Path, namespace: str) -> list[LivewireComponentInfo]:
        found: list[LivewireComponentInfo] = []
        for dirpath, dirnames, filenames in os.walk(base_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                if not filename.endswith(".php"):
                    continue
                path = Path(dirpath) / filename
                parts = path.relative_to(base_dir).with_suffix("").parts
                try:
                    content = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    logger.debug("Cannot read Livewire component %s: %s", path, exc)
                    content = ""
                properties, methods = parse_component(content)
                found.append(
                    LivewireComponentInfo(
                        name=".".join(to_kebab_case(p) for p in parts),
                        class_name=namespace + "\\" + "\\".join(parts),
                        file_path=path.relative_to(self.project_root).as_posix(),
                        absolute_path=str(path),
                        properties=properties,
                        methods=methods,
                    )
                )
        return found
