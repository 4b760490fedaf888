"""Blade components: anonymous templates and class-based components.

Anonymous components live in ``resources/views/components`` and declare
props with ``@props([...])``.  Class components live in
``app/View/Components``; their constructor parameters are the props and
their tag names are the kebab-cased class path.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from larasense.models import BladeComponentInfo, ComponentProp
from larasense.repositories.base import Repository

logger = logging.getLogger(__name__)

ANONYMOUS_DIR = Path("resources") / "views" / "components"
CLASS_DIR = Path("app") / "View" / "Components"

_PROPS_BLOCK_RE = re.compile(r"@props\s*\(\s*\[([\s\S]*?)\]\s*\)")
_PROP_RE = re.compile(r"""['"](\w+)['"]\s*(?:=>\s*(.+?))?(?:,|$)""", re.MULTILINE)
_CONSTRUCTOR_RE = re.compile(r"function\s+__construct\s*\(([\s\S]*?)\)\s*(?:\{|:)")
_PARAM_RE = re.compile(
    r"(?:(?:public|protected|private|readonly)\s+)*(?:(\??[\w\\]+)\s+)?\$(\w+)(?:\s*=\s*([^,]+?))?\s*(?:,|$)"
)

_KEBAB_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_KEBAB_ACRONYM = re.compile(r"([A-Z])([A-Z][a-z])")


def to_kebab_case(name: str) -> str:
    """``FormInput`` -> ``form-input``, ``HTMLEditor`` -> ``html-editor``."""
    name = _KEBAB_LOWER_UPPER.sub(r"\1-\2", name)
    return _KEBAB_ACRONYM.sub(r"\1-\2", name).lower()


def parse_anonymous_props(content: str) -> tuple[ComponentProp, ...]:
    """Parse ``@props(['type' => 'info', 'message'])``."""
    block = _PROPS_BLOCK_RE.search(content)
    if block is None:
        return ()
    props: list[ComponentProp] = []
    for m in _PROP_RE.finditer(block.group(1)):
        default = m.group(2).strip() if m.group(2) else None
        props.append(ComponentProp(m.group(1), default=default, required=default is None))
    return tuple(props)


def parse_class_props(content: str) -> tuple[ComponentProp, ...]:
    """Props of a class component are its constructor parameters, kebab-cased."""
    ctor = _CONSTRUCTOR_RE.search(content)
    if ctor is None:
        return ()
    props: list[ComponentProp] = []
    for m in _PARAM_RE.finditer(ctor.group(1)):
        default = m.group(3).strip() if m.group(3) else None
        props.append(
            ComponentProp(
                to_kebab_case(m.group(2)),
                type=m.group(1) or None,
                default=default,
                required=default is None,
            )
        )
    return tuple(props)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Cannot read component %s", path)
        return ""


def _walk_files(base_dir: Path, suffix: str) -> list[Path]:
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames.sort()
        found.extend(Path(dirpath) / f for f in sorted(filenames) if f.endswith(suffix))
    return found


def anonymous_component_name(relative: Path) -> str:
    """``forms/input.blade.php`` -> ``forms.input``; ``card/index.blade.php`` -> ``card``."""
    stem = relative.as_posix()[: -len(".blade.php")]
    if stem.endswith("/index"):
        stem = stem[: -len("/index")]
    return stem.replace("/", ".")


def class_component_name(relative: Path) -> str:
    """``Forms/TextInput.php`` -> ``forms.text-input``."""
    parts = relative.with_suffix("").parts
    return ".".join(to_kebab_case(part) for part in parts)


class BladeComponentRepository(Repository[BladeComponentInfo]):
    domain = "blade_components"

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: BladeComponentInfo) -> str:
        return record.name

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.project_root).as_posix()

    def _acquire(self) -> list[BladeComponentInfo]:
        components: list[BladeComponentInfo] = []

        anonymous_dir = self.project_root / ANONYMOUS_DIR
        if anonymous_dir.is_dir():
            for path in _walk_files(anonymous_dir, ".blade.php"):
                components.append(
                    BladeComponentInfo(
                        name=anonymous_component_name(path.relative_to(anonymous_dir)),
                        kind="anonymous",
                        file_path=self._relative(path),
                        absolute_path=str(path),
                        props=parse_anonymous_props(_read(path)),
                    )
                )

        class_dir = self.project_root / CLASS_DIR
        if class_dir.is_dir():
            for path in _walk_files(class_dir, ".php"):
                components.append(
                    BladeComponentInfo(
                        name=class_component_name(path.relative_to(class_dir)),
                        kind="class",
                        file_path=self._relative(path),
                        absolute_path=str(path),
                        props=parse_class_props(_read(path)),
                    )
                )

        return components
