"""Laravel project detection."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from larasense.infrastructure.environment import PhpEnvironment

logger = logging.getLogger(__name__)


@dataclass
class ProjectInfo:
    """The detected workspace.

    Filled in once by the session start-up sequence (:mod:`larasense.service`)
    and read-only afterwards.
    """

    root_path: Path
    is_laravel: bool = False
    php: PhpEnvironment | None = None
    laravel_version: str | None = None


def _requires_laravel(composer_path: Path) -> bool:
    data = json.loads(composer_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("composer.json is not an object")
    requires: dict[str, object] = {}
    for section in ("require", "require-dev"):
        value = data.get(section)
        if isinstance(value, dict):
            requires.update(value)
    return "laravel/framework" in requires


def detect_laravel_project(root: Path) -> ProjectInfo:
    """Decide whether *root* is a Laravel application.

    ``bootstrap/app.php`` (or, failing that, ``artisan``) must exist and
    ``composer.json`` must require ``laravel/framework``.  An unreadable
    composer.json falls back to the presence of ``bootstrap/app.php``.
    """
    info = ProjectInfo(root_path=root)
    if not root.is_dir():
        return info

    bootstrap_app = root / "bootstrap" / "app.php"
    if not bootstrap_app.is_file() and not (root / "artisan").is_file():
        return info

    composer = root / "composer.json"
    if not composer.is_file():
        return info

    try:
        info.is_laravel = _requires_laravel(composer)
    except (OSError, ValueError) as exc:
        logger.debug("Unreadable composer.json in %s: %s", root, exc)
        info.is_laravel = bootstrap_app.is_file()
    return info
