"""Shared test fixtures for Larasense."""

from __future__ import annotations

import json
import threading
from typing import TYPE_CHECKING, Any

import pytest

from larasense.errors import ProcessFault

if TYPE_CHECKING:
    from pathlib import Path


class FakeBridge:
    """Stands in for :class:`ProcessBridge`; answers by fragment substring.

    Counts every ``run`` call so tests can assert on acquisitions.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        *,
        error: Exception | None = None,
    ) -> None:
        self.responses = responses or {}
        self.error = error
        self.calls: list[str] = []

    def run(self, code: str) -> str:
        self.calls.append(code)
        if self.error is not None:
            raise self.error
        for needle, output in self.responses.items():
            if needle in code:
                return output if isinstance(output, str) else json.dumps(output)
        raise ProcessFault("unexpected fragment")


class BlockingBridge:
    """A bridge whose ``run`` blocks until ``release`` is set."""

    def __init__(self, output: Any) -> None:
        self.output = output if isinstance(output, str) else json.dumps(output)
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0
        self._lock = threading.Lock()

    def run(self, code: str) -> str:
        with self._lock:
            self.calls += 1
        self.started.set()
        self.release.wait(timeout=5)
        return self.output


@pytest.fixture()
def fake_bridge() -> type[FakeBridge]:
    return FakeBridge


@pytest.fixture()
def blocking_bridge() -> type[BlockingBridge]:
    return BlockingBridge


def _write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture()
def write_file(tmp_path: Path) -> Any:
    """Return ``write(relative, content)`` rooted at *tmp_path*."""

    def write(relative: str, content: str = "") -> Path:
        return _write(tmp_path, relative, content)

    return write


@pytest.fixture()
def laravel_project(tmp_path: Path) -> Path:
    """A small Laravel tree: composer manifest, views, lang, env, components."""
    _write(
        tmp_path,
        "composer.json",
        json.dumps({"require": {"php": "^8.2", "laravel/framework": "^11.0"}}),
    )
    _write(tmp_path, "artisan", "#!/usr/bin/env php\n<?php\n")
    _write(tmp_path, "bootstrap/app.php", "<?php\nreturn Application::configure();\n")

    _write(tmp_path, "resources/views/welcome.blade.php", "<h1>Welcome</h1>\n")
    _write(tmp_path, "resources/views/auth/login.blade.php", "<form></form>\n")
    _write(
        tmp_path,
        "resources/views/components/alert.blade.php",
        "@props(['type' => 'info', 'message'])\n<div class=\"alert-{{ $type }}\">{{ $message }}</div>\n",
    )

    _write(
        tmp_path,
        "lang/en/messages.php",
        "<?php\n\nreturn [\n    'welcome' => 'Welcome!',\n    'goodbye' => 'Bye',\n];\n",
    )
    _write(tmp_path, "lang/fr.json", json.dumps({"Hello": "Bonjour"}))

    _write(
        tmp_path,
        ".env",
        "# Application name\nAPP_NAME=Larasense\n\nAPP_DEBUG=true # toggle\nAPI_KEY=\"abc#def\"\n",
    )

    _write(
        tmp_path,
        "app/Livewire/Counter.php",
        "<?php\n\nnamespace App\\Livewire;\n\nclass Counter extends Component\n{\n"
        "    public int $count = 0;\n\n"
        "    public function increment() {}\n\n"
        "    public function render() {}\n}\n",
    )
    _write(tmp_path, "resources/js/Pages/Users/Index.vue", "<template></template>\n")
    return tmp_path
