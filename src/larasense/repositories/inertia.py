"""Inertia page components under ``resources/{js,ts}/{Pages,pages}``."""

from __future__ import annotations

import os
import re
from pathlib import Path

from larasense.models import InertiaPageInfo
from larasense.repositories.base import Repository

PAGE_DIRS = (
    Path("resources") / "js" / "Pages",
    Path("resources") / "js" / "pages",
    Path("resources") / "ts" / "Pages",
    Path("resources") / "ts" / "pages",
)

_PAGE_FILE_RE = re.compile(r"\.(vue|tsx?|jsx?|svelte)$")


def detect_framework(filename: str) -> str:
    if filename.endswith(".vue"):
        return "vue"
    if filename.endswith(".svelte"):
        return "svelte"
    if re.search(r"\.(tsx?|jsx?)$", filename):
        return "react"
    return "unknown"


def page_name(relative: str) -> str:
    """``Users/Index.vue`` -> ``Users/Index``."""
    return _PAGE_FILE_RE.sub("", relative).replace("\\", "/")


class InertiaRepository(Repository[InertiaPageInfo]):
    """Pages from the first existing page directory only."""

    domain = "inertia"

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: InertiaPageInfo) -> str:
        return record.name

    def pages_dir(self) -> Path | None:
        for candidate in PAGE_DIRS:
            path = self.project_root / candidate
            if path.is_dir():
                return path
        return None

    def _acquire(self) -> list[InertiaPageInfo]:
        base_dir = self.pages_dir()
        if base_dir is None:
            return []

        pages: list[InertiaPageInfo] = []
        for dirpath, dirnames, filenames in os.walk(base_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                if not _PAGE_FILE_RE.search(filename):
                    continue
                path = Path(dirpath) / filename
                pages.append(
                    InertiaPageInfo(
                        name=page_name(path.relative_to(base_dir).as_posix()),
                        file_path=path.relative_to(self.project_root).as_posix(),
                        absolute_path=str(path),
                        framework=detect_framework(filename),
                    )
                )
        return pages
