"""Tests for larasense.infrastructure.environment and .project."""

from __future__ import annotations

import json
import subprocess
from typing import TYPE_CHECKING
from unittest.mock import MagicMock, patch

from larasense.infrastructure.environment import (
    EnvironmentDetector,
    PhpEnvironment,
    probe_php_version,
)
from larasense.infrastructure.project import detect_laravel_project

if TYPE_CHECKING:
    from pathlib import Path

_ENV = "larasense.infrastructure.environment"


class TestProbePhpVersion:
    def test_reports_version(self) -> None:
        result = MagicMock(returncode=0, stdout="8.3.4\n")
        with patch("subprocess.run", return_value=result):
            assert probe_php_version("php") == "8.3.4"

    def test_missing_binary(self) -> None:
        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert probe_php_version("php") is None

    def test_timeout(self) -> None:
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("php", 5)):
            assert probe_php_version("php") is None


class TestEnvironmentDetector:
    def test_configured_path_skips_detection(self, tmp_path: Path) -> None:
        with patch(f"{_ENV}.probe_php_version", return_value="8.2.0"):
            env = EnvironmentDetector(tmp_path).detect("/opt/php/bin/php")
        assert env == PhpEnvironment("/opt/php/bin/php", "configured", "8.2.0")

    def test_falls_back_to_system_php(self, tmp_path: Path) -> None:
        def which(name: str) -> str | None:
            return "/usr/bin/php" if name == "php" else None

        with (
            patch(f"{_ENV}._HERD_PATHS", ()),
            patch(f"{_ENV}.shutil.which", side_effect=which),
            patch(f"{_ENV}.probe_php_version", return_value="8.3.0"),
        ):
            env = EnvironmentDetector(tmp_path).detect()
        assert env.kind == "system"
        assert env.php_path == "/usr/bin/php"

    def test_valet_when_installed(self, tmp_path: Path) -> None:
        def which(name: str) -> str | None:
            return {"valet": "/usr/local/bin/valet", "php": "/opt/homebrew/bin/php"}.get(name)

        with (
            patch(f"{_ENV}._HERD_PATHS", ()),
            patch(f"{_ENV}.shutil.which", side_effect=which),
            patch(f"{_ENV}.probe_php_version", return_value="8.3.0"),
        ):
            env = EnvironmentDetector(tmp_path).detect()
        assert env.kind == "valet"

    def test_sail_requires_running_docker(self, tmp_path: Path) -> None:
        (tmp_path / "docker-compose.yml").write_text("services:\n  laravel.test:\n", encoding="utf-8")
        sail = tmp_path / "vendor" / "bin" / "sail"
        sail.parent.mkdir(parents=True)
        sail.write_text("#!/bin/sh\n", encoding="utf-8")

        with (
            patch(f"{_ENV}._HERD_PATHS", ()),
            patch(f"{_ENV}.shutil.which", return_value=None),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
        ):
            env = EnvironmentDetector(tmp_path).detect()
        assert env.kind == "sail"
        assert env.php_path == str(sail)

    def test_sail_skipped_when_docker_down(self, tmp_path: Path) -> None:
        (tmp_path / "docker-compose.yml").write_text("services:\n  laravel.test:\n", encoding="utf-8")
        sail = tmp_path / "vendor" / "bin" / "sail"
        sail.parent.mkdir(parents=True)
        sail.write_text("#!/bin/sh\n", encoding="utf-8")

        with (
            patch(f"{_ENV}._HERD_PATHS", ()),
            patch(f"{_ENV}.shutil.which", return_value=None),
            patch("subprocess.run", side_effect=subprocess.CalledProcessError(1, "docker")),
            patch(f"{_ENV}.probe_php_version", return_value=None),
        ):
            env = EnvironmentDetector(tmp_path).detect()
        assert env.kind == "system"


class TestDetectLaravelProject:
    def test_laravel_project(self, laravel_project: Path) -> None:
        info = detect_laravel_project(laravel_project)
        assert info.is_laravel
        assert info.root_path == laravel_project

    def test_require_dev_counts(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("", encoding="utf-8")
        (tmp_path / "composer.json").write_text(
            json.dumps({"require-dev": {"laravel/framework": "^10"}}), encoding="utf-8"
        )
        assert detect_laravel_project(tmp_path).is_laravel

    def test_other_php_project(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("", encoding="utf-8")
        (tmp_path / "composer.json").write_text(
            json.dumps({"require": {"symfony/console": "^7"}}), encoding="utf-8"
        )
        assert not detect_laravel_project(tmp_path).is_laravel

    def test_no_entry_points(self, tmp_path: Path) -> None:
        (tmp_path / "composer.json").write_text(
            json.dumps({"require": {"laravel/framework": "^11"}}), encoding="utf-8"
        )
        assert not detect_laravel_project(tmp_path).is_laravel

    def test_invalid_composer_falls_back_to_bootstrap(self, tmp_path: Path) -> None:
        (tmp_path / "bootstrap").mkdir()
        (tmp_path / "bootstrap" / "app.php").write_text("<?php", encoding="utf-8")
        (tmp_path / "composer.json").write_text("{not json", encoding="utf-8")
        assert detect_laravel_project(tmp_path).is_laravel

    def test_invalid_composer_with_only_artisan(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("", encoding="utf-8")
        (tmp_path / "composer.json").write_text("{not json", encoding="utf-8")
        assert not detect_laravel_project(tmp_path).is_laravel
