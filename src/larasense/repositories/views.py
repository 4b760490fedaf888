"""Blade views under ``resources/views`` in dot notation."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from larasense.errors import FilesystemFault
from larasense.models import ViewInfo
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from pathlib import Path

BLADE_SUFFIX = ".blade.php"


def view_name(relative_path: str) -> str:
    """``auth/login.blade.php`` -> ``auth.login``."""
    return relative_path[: -len(BLADE_SUFFIX)].replace("\\", "/").replace("/", ".")


def scan_views(base_dir: Path, *, skip_vendor: bool = True) -> list[ViewInfo]:
    """Recursively collect Blade templates below *base_dir*.

    The top-level ``vendor`` directory holds published package views and is
    scanned separately with a namespace prefix.
    """
    views: list[ViewInfo] = []
    for dirpath, dirnames, filenames in os.walk(base_dir):
        dirnames.sort()
        if skip_vendor and dirpath == os.fspath(base_dir) and "vendor" in dirnames:
            dirnames.remove("vendor")
        for filename in sorted(filenames):
            if not filename.endswith(BLADE_SUFFIX):
                continue
            absolute = os.path.join(dirpath, filename)
            relative = os.path.relpath(absolute, base_dir)
            views.append(ViewInfo(view_name(relative), relative, absolute))
    return views


class ViewRepository(Repository[ViewInfo]):
    domain = "views"

    def __init__(self, project_root: Path, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.project_root = project_root

    def key_of(self, record: ViewInfo) -> str:
        return record.name

    def _acquire(self) -> list[ViewInfo]:
        views_dir = self.project_root / "resources" / "views"
        if not views_dir.is_dir():
            raise FilesystemFault("no views directory found")

        views = scan_views(views_dir)

        vendor_dir = views_dir / "vendor"
        if vendor_dir.is_dir():
            for package_dir in sorted(p for p in vendor_dir.iterdir() if p.is_dir()):
                for view in scan_views(package_dir, skip_vendor=False):
                    views.append(
                        ViewInfo(
                            f"{package_dir.name}::{view.name}",
                            view.relative_path,
                            view.absolute_path,
                        )
                    )
        return views
