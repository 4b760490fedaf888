"""PHP runtime detection: Herd, Valet, Sail, then the system ``php``."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_PROBE_TIMEOUT = 5  # seconds

_HERD_PATHS = (
    Path.home() / "Library" / "Application Support" / "Herd" / "bin" / "php",
    Path("/usr/local/bin/herd-php"),
)


@dataclass(frozen=True)
class PhpEnvironment:
    """Resolved PHP executable.

    For ``kind == "sail"`` *php_path* points at ``vendor/bin/sail`` and
    commands are prefixed with ``php`` / ``artisan`` by the bridge.
    """

    php_path: str
    kind: str  # herd | valet | sail | system | configured
    version: str | None = None


def probe_php_version(php_path: str) -> str | None:
    """Return ``PHP_VERSION`` reported by *php_path*, or None if it cannot run."""
    try:
        result = subprocess.run(  # noqa: S603
            [php_path, "-r", "echo PHP_VERSION;"],
            capture_output=True,
            text=True,
            timeout=_PROBE_TIMEOUT,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


class EnvironmentDetector:
    """Find the PHP runtime serving a Laravel project.

    Order of preference: Herd > Valet > Sail > system PHP.
    """

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root

    def detect(self, php_path: str | None = None) -> PhpEnvironment:
        """Detect the runtime; an explicit *php_path* skips detection."""
        if php_path:
            return PhpEnvironment(php_path, "configured", probe_php_version(php_path))

        for candidate in (self._detect_herd, self._detect_valet, self._detect_sail):
            env = candidate()
            if env is not None:
                return env
        return self._detect_system()

    def _detect_herd(self) -> PhpEnvironment | None:
        for herd_path in _HERD_PATHS:
            if herd_path.exists():
                return PhpEnvironment(str(herd_path), "herd", probe_php_version(str(herd_path)))

        herd_bin = shutil.which("herd")
        if herd_bin is None:
            return None
        try:
            result = subprocess.run(  # noqa: S603
                [herd_bin, "which-php"],
                capture_output=True,
                text=True,
                timeout=_PROBE_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired):
            return None
        php_path = result.stdout.strip()
        if result.returncode != 0 or not php_path or not os.path.exists(php_path):
            return None
        return PhpEnvironment(php_path, "herd", probe_php_version(php_path))

    def _detect_valet(self) -> PhpEnvironment | None:
        if shutil.which("valet") is None:
            return None
        # Valet serves the brew-linked PHP on PATH.
        php_path = shutil.which("php")
        if php_path is None:
            return None
        return PhpEnvironment(php_path, "valet", probe_php_version(php_path))

    def _detect_sail(self) -> PhpEnvironment | None:
        compose = self.project_root / "docker-compose.yml"
        if not compose.is_file():
            return None
        try:
            content = compose.read_text(encoding="utf-8")
        except OSError:
            return None
        if "sail" not in content and "laravel.test" not in content:
            return None

        sail = self.project_root / "vendor" / "bin" / "sail"
        if not sail.exists():
            return None
        try:
            subprocess.run(  # noqa: S603
                ["docker", "info"],  # noqa: S607
                capture_output=True,
                timeout=_PROBE_TIMEOUT,
                check=True,
            )
        except (OSError, subprocess.SubprocessError):
            logger.debug("Sail project found but docker is not running")
            return None
        # Version is only known once the container answers.
        return PhpEnvironment(str(sail), "sail", None)

    def _detect_system(self) -> PhpEnvironment:
        php_path = shutil.which("php") or "php"
        return PhpEnvironment(php_path, "system", probe_php_version(php_path))
