"""Tests for larasense.facade: completion, definition and diagnostics."""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING, Any

import pytest

from larasense.config import Settings
from larasense.context.dispatcher import Category
from larasense.context.parser import Position
from larasense.facade import Diagnostic, DiagnosticScheduler, Location, QueryFacade
from larasense.infrastructure.project import ProjectInfo
from larasense.repositories.configs import CONFIGS_PHP
from larasense.repositories.models import MODELS_PHP
from larasense.repositories.routes import ROUTES_PHP
from larasense.service import LaravelService, SessionContext, build_repositories

if TYPE_CHECKING:
    from pathlib import Path

USER_MODEL = """<?php
namespace App\\Models;

class User extends Model
{
    public function posts()
    {
        return $this->hasMany(Post::class);
    }
}
"""

HOME_CONTROLLER = """<?php

class HomeController
{
    public function show()
    {
    }
}
"""

APP_CONFIG = """<?php

return [
    'name' => env('APP_NAME', 'Laravel'),
    'debug' => false,
];
"""


def _end(line: str) -> Position:
    return Position(0, len(line))


def _build_session(root: Path, bridge: Any) -> SessionContext:
    settings = Settings()
    session = SessionContext(
        project=ProjectInfo(root_path=root, is_laravel=True),
        settings=settings,
        bridge=bridge,
        repositories=build_repositories(root, bridge, settings),
    )
    with LaravelService(session) as service:
        service.load_all(timeout=10)
    return session


@pytest.fixture()
def facade(laravel_project: Path, write_file: Any, fake_bridge: Any) -> QueryFacade:
    write_file("app/Models/User.php", USER_MODEL)
    write_file("app/Http/Controllers/UserController.php", "<?php\n")
    write_file("app/Http/Controllers/HomeController.php", HOME_CONTROLLER)
    write_file("config/app.php", APP_CONFIG)
    bridge = fake_bridge(
        {
            ROUTES_PHP: [
                {
                    "name": "users.index",
                    "uri": "users",
                    "action": "App\\Http\\Controllers\\UserController@index",
                    "filename": "app/Http/Controllers/UserController.php",
                    "line": 12,
                },
                {
                    "name": "home",
                    "uri": "/",
                    "action": "App\\Http\\Controllers\\HomeController@show",
                    "filename": "app/Http/Controllers/HomeController.php",
                },
            ],
            CONFIGS_PHP: {"app": {"name": "Larasense", "debug": False}},
            MODELS_PHP: [
                {
                    "name": "User",
                    "fqcn": "App\\Models\\User",
                    "tableName": "users",
                    "file": str(laravel_project / "app" / "Models" / "User.php"),
                    "filePath": "app/Models/User.php",
                    "columns": [
                        {"name": "id", "type": "integer"},
                        {"name": "name", "type": "string"},
                        {"name": "email", "type": "string"},
                    ],
                }
            ],
        }
    )
    return QueryFacade(_build_session(laravel_project, bridge))


class TestComplete:
    def test_route_names(self, facade: QueryFacade) -> None:
        line = "return redirect(route('us"
        result = facade.complete(line, _end(line))
        assert result is not None
        assert result.category is Category.ROUTE
        assert result.prefix == "us"
        assert [r.name for r in result.records] == ["users.index"]

    def test_config_keys(self, facade: QueryFacade) -> None:
        line = "$name = config('app."
        result = facade.complete(line, _end(line))
        assert result is not None
        assert result.category is Category.CONFIG
        assert [r.key for r in result.records] == ["app.name", "app.debug"]

    def test_component_tag(self, facade: QueryFacade) -> None:
        line = "    <x-al"
        result = facade.complete(line, _end(line))
        assert result is not None
        assert result.category is Category.BLADE_COMPONENT
        assert [c.name for c in result.records] == ["alert"]

    def test_directive_gives_nothing(self, facade: QueryFacade) -> None:
        assert facade.complete("@inc", Position(0, 4)) is None

    def test_model_columns(self, facade: QueryFacade) -> None:
        line = "User::where('NA"
        result = facade.complete(line, _end(line))
        assert result is not None
        assert result.category is Category.ELOQUENT_COLUMN
        assert [a.name for a in result.records] == ["name"]

    def test_model_relations(self, facade: QueryFacade) -> None:
        line = "User::with('po"
        result = facade.complete(line, _end(line))
        assert result is not None
        assert result.category is Category.ELOQUENT_RELATION
        assert [r.name for r in result.records] == ["posts"]

    def test_untyped_receiver_gives_nothing(self, facade: QueryFacade) -> None:
        line = "$query->where('"
        assert facade.complete(line, _end(line)) is None

    def test_unknown_function(self, facade: QueryFacade) -> None:
        line = "strtolower('"
        assert facade.complete(line, _end(line)) is None

    def test_not_laravel(self, tmp_path: Path) -> None:
        session = SessionContext(project=ProjectInfo(root_path=tmp_path), settings=Settings())
        assert QueryFacade(session).complete("route('", Position(0, 7)) is None


class TestDefinition:
    def test_route_with_reflected_line(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("route('users.index')", Position(0, 10))
        assert location == Location(laravel_project / "app/Http/Controllers/UserController.php", 11)

    def test_route_falls_back_to_method_search(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("to_route('home')", Position(0, 11))
        assert location == Location(laravel_project / "app/Http/Controllers/HomeController.php", 4, 20)

    def test_view(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("return view('auth.login');", Position(0, 16))
        assert location == Location(laravel_project / "resources/views/auth/login.blade.php")

    def test_config_leaf_key(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("config('app.name')", Position(0, 10))
        assert location == Location(laravel_project / "config/app.php", 3, 5)

    def test_translation(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("__('messages.welcome')", Position(0, 6))
        assert location == Location(laravel_project / "lang/en/messages.php")

    def test_component_tag(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition('<x-alert type="info" />', Position(0, 5))
        assert location == Location(laravel_project / "resources/views/components/alert.blade.php")

    def test_relation_method(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("User::with('posts')", Position(0, 13))
        assert location == Location(laravel_project / "app/Models/User.php", 5, 20)

    def test_column_goes_to_model_file(self, facade: QueryFacade, laravel_project: Path) -> None:
        location = facade.definition("User::where('email')", Position(0, 14))
        assert location == Location(laravel_project / "app/Models/User.php")

    def test_livewire_and_inertia(self, facade: QueryFacade, laravel_project: Path) -> None:
        assert facade.definition("Livewire::test('counter')", Position(0, 17)) == Location(
            laravel_project / "app/Livewire/Counter.php"
        )
        assert facade.definition("inertia('Users/Index')", Position(0, 12)) == Location(
            laravel_project / "resources/js/Pages/Users/Index.vue"
        )

    def test_unknown_name(self, facade: QueryFacade) -> None:
        assert facade.definition("route('nope')", Position(0, 8)) is None

    def test_outside_string(self, facade: QueryFacade) -> None:
        assert facade.definition("$x = 1;", Position(0, 3)) is None


class TestDiagnostics:
    TEXT = (
        "<?php\n"
        "route('home');\n"
        "route('missing.route');\n"
        "view('nope');\n"
        "config('app.name');\n"
        "config('app.nothing');\n"
        "xroute('skip');\n"
    )

    def test_unresolved_references(self, facade: QueryFacade) -> None:
        assert facade.diagnostics(self.TEXT) == [
            Diagnostic(2, 7, 20, "Route 'missing.route' not found"),
            Diagnostic(3, 6, 10, "View 'nope' not found"),
            Diagnostic(5, 8, 19, "Config 'app.nothing' not found"),
        ]

    def test_empty_domains_are_not_checked(self, laravel_project: Path, fake_bridge: Any) -> None:
        facade = QueryFacade(_build_session(laravel_project, fake_bridge()))
        problems = facade.diagnostics("route('missing');\nview('nope');\nconfig('x.y');")
        assert [d.message for d in problems] == ["View 'nope' not found"]

    def test_nothing_loaded(self, laravel_project: Path, fake_bridge: Any) -> None:
        settings = Settings()
        bridge = fake_bridge()
        session = SessionContext(
            project=ProjectInfo(root_path=laravel_project, is_laravel=True),
            settings=settings,
            repositories=build_repositories(laravel_project, bridge, settings),
        )
        assert QueryFacade(session).diagnostics("view('nope');") == []


class TestDiagnosticScheduler:
    def test_only_latest_text_is_published(self, facade: QueryFacade) -> None:
        published: list[tuple[str, list[Diagnostic]]] = []
        done = threading.Event()

        def publish(uri: str, problems: list[Diagnostic]) -> None:
            published.append((uri, problems))
            done.set()

        scheduler = DiagnosticScheduler(facade, publish, delay=0.1)
        scheduler.schedule("a.php", "view('first');")
        scheduler.schedule("a.php", "view('second');")
        assert done.wait(timeout=5)
        time.sleep(0.2)

        assert len(published) == 1
        uri, problems = published[0]
        assert uri == "a.php"
        assert [d.message for d in problems] == ["View 'second' not found"]
        assert scheduler.pending == 0

    def test_documents_are_independent(self, facade: QueryFacade) -> None:
        published: dict[str, list[Diagnostic]] = {}
        lock = threading.Lock()

        def publish(uri: str, problems: list[Diagnostic]) -> None:
            with lock:
                published[uri] = problems

        scheduler = DiagnosticScheduler(facade, publish, delay=0.05)
        scheduler.schedule("a.php", "view('welcome');")
        scheduler.schedule("b.php", "view('gone');")
        deadline = time.monotonic() + 5
        while len(published) < 2 and time.monotonic() < deadline:
            time.sleep(0.01)

        assert published["a.php"] == []
        assert [d.message for d in published["b.php"]] == ["View 'gone' not found"]

    def test_cancel_all(self, facade: QueryFacade) -> None:
        published: list[str] = []
        scheduler = DiagnosticScheduler(facade, lambda uri, _p: published.append(uri), delay=0.1)
        scheduler.schedule("a.php", "view('x');")
        assert scheduler.pending == 1
        scheduler.cancel_all()
        assert scheduler.pending == 0
        time.sleep(0.2)
        assert published == []
