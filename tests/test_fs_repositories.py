"""Tests for the repositories that scan the project tree directly."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from larasense.models import ComponentProp, LivewireProperty
from larasense.repositories.blade_components import (
    BladeComponentRepository,
    anonymous_component_name,
    class_component_name,
    parse_anonymous_props,
    parse_class_props,
    to_kebab_case,
)
from larasense.repositories.env import EnvRepository, parse_env, parse_env_value
from larasense.repositories.inertia import InertiaRepository, detect_framework, page_name
from larasense.repositories.livewire import LivewireRepository, parse_component
from larasense.repositories.translations import TranslationRepository, extract_array_keys
from larasense.repositories.views import ViewRepository, view_name

CLASS_COMPONENT = """<?php

namespace App\\View\\Components\\Forms;

class TextInput extends Component
{
    public function __construct(public string $type = 'text', public ?string $iconName = null, array $items)
    {
    }
}
"""


class TestViews:
    def test_view_name(self) -> None:
        assert view_name("auth/login.blade.php") == "auth.login"
        assert view_name("welcome.blade.php") == "welcome"

    def test_scans_tree_in_order(self, laravel_project: Path) -> None:
        repo = ViewRepository(laravel_project)
        repo.load()
        assert [v.name for v in repo.all()] == ["welcome", "auth.login", "components.alert"]
        login = repo.find("auth.login")
        assert login is not None
        assert Path(login.absolute_path).is_file()

    def test_vendor_views_are_namespaced(self, laravel_project: Path, write_file: Any) -> None:
        write_file("resources/views/vendor/mail/html/button.blade.php", "<a></a>")
        repo = ViewRepository(laravel_project)
        repo.load()
        assert repo.find("mail::html.button") is not None
        assert repo.find("vendor.mail.html.button") is None

    def test_missing_directory_leaves_empty(self, tmp_path: Path) -> None:
        repo = ViewRepository(tmp_path)
        repo.load()
        assert repo.count() == 0


class TestTranslations:
    def test_extract_array_keys(self) -> None:
        content = "<?php return ['failed' => 'Nope', \"throttle\" => 'Slow down'];"
        assert extract_array_keys(content, "auth") == ["auth.failed", "auth.throttle"]

    def test_php_groups_and_json(self, laravel_project: Path) -> None:
        repo = TranslationRepository(laravel_project)
        repo.load()
        assert [t.key for t in repo.all()] == ["messages.welcome", "messages.goodbye", "Hello"]
        hello = repo.find("Hello")
        assert hello is not None
        assert hello.value == "Bonjour"
        assert hello.locale == "fr"

    def test_first_locale_wins(self, laravel_project: Path, write_file: Any) -> None:
        write_file("lang/de/messages.php", "<?php return ['welcome' => 'Willkommen'];")
        repo = TranslationRepository(laravel_project)
        repo.load()
        welcome = repo.find("messages.welcome")
        assert welcome is not None
        assert welcome.locale == "de"

    def test_resources_lang_fallback(self, write_file: Any, tmp_path: Path) -> None:
        write_file("resources/lang/en/auth.php", "<?php return ['failed' => 'x'];")
        repo = TranslationRepository(tmp_path)
        repo.load()
        assert repo.find("auth.failed") is not None


class TestEnv:
    def test_parse_value(self) -> None:
        assert parse_env_value('"abc#def"') == "abc#def"
        assert parse_env_value("'single'") == "single"
        assert parse_env_value("true # toggle") == "true"
        assert parse_env_value("abc#def") == "abc#def"

    def test_comment_attaches_to_next_variable(self) -> None:
        variables = parse_env("# Name\nAPP_NAME=Demo\n\n# detached\n\nAPP_ENV=local\nNOT A PAIR\n")
        assert [(v.key, v.line, v.comment) for v in variables] == [
            ("APP_NAME", 2, "Name"),
            ("APP_ENV", 6, None),
        ]

    def test_repository_reads_env(self, laravel_project: Path) -> None:
        repo = EnvRepository(laravel_project)
        repo.load()
        api_key = repo.find("API_KEY")
        debug = repo.find("APP_DEBUG")
        name = repo.find("APP_NAME")
        assert api_key is not None and api_key.value == "abc#def"
        assert debug is not None and debug.value == "true"
        assert name is not None and name.comment == "Application name"

    def test_example_keys_are_merged(self, laravel_project: Path, write_file: Any) -> None:
        write_file(".env.example", "APP_NAME=\nMAIL_HOST=smtp\n")
        repo = EnvRepository(laravel_project)
        repo.load()
        name = repo.find("APP_NAME")
        mail = repo.find("MAIL_HOST")
        assert name is not None and name.value == "Larasense"
        assert mail is not None and mail.file == ".env.example"

    def test_example_only(self, write_file: Any, tmp_path: Path) -> None:
        write_file(".env.example", "DB_HOST=127.0.0.1\n")
        repo = EnvRepository(tmp_path)
        repo.load()
        host = repo.find("DB_HOST")
        assert host is not None
        assert host.file == ".env.example"


class TestBladeComponents:
    def test_kebab_case(self) -> None:
        assert to_kebab_case("FormInput") == "form-input"
        assert to_kebab_case("HTMLEditor") == "html-editor"
        assert to_kebab_case("alert") == "alert"

    def test_component_names(self) -> None:
        assert anonymous_component_name(Path("forms/input.blade.php")) == "forms.input"
        assert anonymous_component_name(Path("card/index.blade.php")) == "card"
        assert class_component_name(Path("Forms/TextInput.php")) == "forms.text-input"

    def test_anonymous_props(self) -> None:
        props = parse_anonymous_props("@props([\n    'type' => 'info',\n    'message',\n])\n<div></div>")
        assert props == (
            ComponentProp("type", default="'info'", required=False),
            ComponentProp("message"),
        )

    def test_no_props_block(self) -> None:
        assert parse_anonymous_props("<div></div>") == ()

    def test_class_props(self) -> None:
        assert parse_class_props(CLASS_COMPONENT) == (
            ComponentProp("type", "string", "'text'", required=False),
            ComponentProp("icon-name", "?string", "null", required=False),
            ComponentProp("items", "array"),
        )

    def test_repository(self, laravel_project: Path, write_file: Any) -> None:
        write_file("resources/views/components/card/index.blade.php", "<div></div>")
        write_file("app/View/Components/Forms/TextInput.php", CLASS_COMPONENT)
        repo = BladeComponentRepository(laravel_project)
        repo.load()

        assert [c.name for c in repo.all()] == ["alert", "card", "forms.text-input"]
        alert = repo.find("alert")
        assert alert is not None
        assert alert.kind == "anonymous"
        assert alert.file_path == "resources/views/components/alert.blade.php"
        assert [p.name for p in alert.props] == ["type", "message"]
        text_input = repo.find("forms.text-input")
        assert text_input is not None
        assert text_input.kind == "class"


class TestLivewire:
    def test_parse_component(self) -> None:
        properties, methods = parse_component(
            "public $search = '';\npublic ?int $page = 1;\npublic int $total;\n"
            "public function mount() {}\npublic function save() {}\n"
            "public function updatedSearch() {}\n"
        )
        assert properties == (LivewireProperty("search"), LivewireProperty("total", "int"))
        assert methods == ("save",)

    def test_repository(self, laravel_project: Path, write_file: Any) -> None:
        write_file("app/Http/Livewire/Admin/UserTable.php", "<?php class UserTable {}")
        repo = LivewireRepository(laravel_project)
        repo.load()

        counter = repo.find("counter")
        assert counter is not None
        assert counter.class_name == "App\\Livewire\\Counter"
        assert counter.properties == (LivewireProperty("count", "int"),)
        assert counter.methods == ("increment",)

        table = repo.find("admin.user-table")
        assert table is not None
        assert table.class_name == "App\\Http\\Livewire\\Admin\\UserTable"


class TestInertia:
    def test_detect_framework(self) -> None:
        assert detect_framework("Index.vue") == "vue"
        assert detect_framework("Index.tsx") == "react"
        assert detect_framework("Index.svelte") == "svelte"

    def test_page_name(self) -> None:
        assert page_name("Users/Index.vue") == "Users/Index"

    def test_repository(self, laravel_project: Path) -> None:
        repo = InertiaRepository(laravel_project)
        repo.load()
        page = repo.find("Users/Index")
        assert page is not None
        assert page.framework == "vue"
        assert page.file_path == "resources/js/Pages/Users/Index.vue"

    def test_only_first_directory(self, laravel_project: Path, write_file: Any) -> None:
        write_file("resources/ts/Pages/Dashboard.tsx", "export default () => null")
        repo = InertiaRepository(laravel_project)
        repo.load()
        assert repo.find("Dashboard") is None

    def test_no_pages_directory(self, tmp_path: Path) -> None:
        repo = InertiaRepository(tmp_path)
        repo.load()
        assert repo.count() == 0
