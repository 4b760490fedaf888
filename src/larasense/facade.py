"""Query facade: completion candidates, definitions and diagnostics.

The facade only talks to repositories through their public contract
(``find`` / ``search`` / ``count`` plus a few domain helpers) and returns
plain records and locations.  Rendering them for an editor is left to the
caller.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from larasense.context.dispatcher import ELOQUENT_CATEGORIES, Category, dispatch, resolve_model
from larasense.context.parser import Position, detect_blade_trigger, line_at

if TYPE_CHECKING:
    from collections.abc import Callable

    from larasense.context.parser import FunctionCallContext
    from larasense.service import SessionContext

logger = logging.getLogger(__name__)

DEFAULT_DIAGNOSTICS_DELAY = 0.5  # seconds

# Category -> repository domain for the categories answered by a plain search.
SEARCH_DOMAINS: dict[Category, str] = {
    Category.ROUTE: "routes",
    Category.VIEW: "views",
    Category.CONFIG: "configs",
    Category.TRANSLATION: "translations",
    Category.ENV: "env",
    Category.MIDDLEWARE: "middleware",
    Category.VALIDATION: "validation",
    Category.GATE: "gates",
    Category.LIVEWIRE: "livewire",
    Category.INERTIA: "inertia",
    Category.BLADE_COMPONENT: "blade_components",
}

_ROUTE_REF_RE = re.compile(r"\b(?:route|to_route)\s*\(\s*['\"]([^'\"]+)['\"]")
_VIEW_REF_RE = re.compile(r"(?:\bview|\bView::make)\s*\(\s*['\"]([^'\"]+)['\"]")
_CONFIG_REF_RE = re.compile(r"\bconfig\s*\(\s*['\"]([^'\"]+)['\"]")

# (pattern, domain, label)
_REFERENCE_CHECKS: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (_ROUTE_REF_RE, "routes", "Route"),
    (_VIEW_REF_RE, "views", "View"),
    (_CONFIG_REF_RE, "configs", "Config"),
)


@dataclass(frozen=True)
class Completion:
    """Candidates for the string being typed."""

    category: Category
    prefix: str
    records: tuple[Any, ...]


@dataclass(frozen=True)
class Location:
    path: Path
    line: int = 0  # 0-based
    character: int = 0


@dataclass(frozen=True)
class Diagnostic:
    line: int  # 0-based
    start: int
    end: int
    message: str
    severity: str = "warning"
    source: str = "larasense"


def _find_line(path: Path, pattern: re.Pattern[str]) -> tuple[int, int] | None:
    """Return ``(line, column)`` of the first match of *pattern* in *path*."""
    try:
        lines = path.read_text(encoding="utf-8").split("\n")
    except (OSError, UnicodeDecodeError):
        return None
    for number, line in enumerate(lines):
        m = pattern.search(line)
        if m:
            return number, m.start(m.lastindex or 0)
    return None


class QueryFacade:
    """Answers editor queries against the repositories of one session."""

    def __init__(self, session: SessionContext) -> None:
        self.session = session

    def _repo(self, domain: str) -> Any:
        return self.session.repository(domain)

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.session.root / p

    # -- completion ---------------------------------------------------------

    def complete(self, text: str, position: Position) -> Completion | None:
        if not self.session.is_laravel:
            return None

        line_prefix = line_at(text, position.line)[: position.character]
        trigger = detect_blade_trigger(line_prefix)
        if trigger is not None:
            if trigger.kind == "component":
                return self._search(Category.BLADE_COMPONENT, trigger.prefix)
            # Directive names are a static catalog, not project metadata.
            return None

        context = self.session.parser.get_context(text, position)
        if context is None:
            return None
        category = dispatch(context.function_name, context.class_name)
        if category is None:
            return None
        if category in ELOQUENT_CATEGORIES:
            return self._complete_eloquent(category, context)
        return self._search(category, context.prefix)

    def _search(self, category: Category, prefix: str) -> Completion | None:
        repo = self._repo(SEARCH_DOMAINS[category])
        if repo is None:
            return None
        return Completion(category, prefix, tuple(repo.search(prefix)))

    def _complete_eloquent(self, category: Category, context: FunctionCallContext) -> Completion | None:
        models = self._repo("models")
        model = resolve_model(context)
        if models is None or model is None:
            return None
        needle = context.prefix.lower()
        if category is Category.ELOQUENT_COLUMN:
            candidates: tuple[Any, ...] = models.attributes(model)
        else:
            candidates = models.relations(model)
        return Completion(
            category,
            context.prefix,
            tuple(c for c in candidates if needle in c.name.lower()),
        )

    # -- definition ---------------------------------------------------------

    def definition(self, text: str, position: Position) -> Location | None:
        if not self.session.is_laravel:
            return None

        line_prefix = line_at(text, position.line)[: position.character]
        trigger = detect_blade_trigger(line_prefix)
        if trigger is not None and trigger.kind == "component":
            line = line_at(text, position.line)
            tail = re.match(r"[\w.-]*", line[position.character :])
            name = trigger.prefix + (tail.group(0) if tail else "")
            return self._component_location(name)

        context = self.session.parser.get_string_at_position(text, position)
        if context is None:
            return None
        category = dispatch(context.function_name, context.class_name)
        if category is None:
            return None
        name = context.prefix

        if category is Category.ROUTE:
            return self._route_location(name)
        if category is Category.VIEW:
            view = self._find("views", name)
            return Location(Path(view.absolute_path)) if view else None
        if category is Category.CONFIG:
            return self._config_location(name)
        if category is Category.TRANSLATION:
            translation = self._find("translations", name)
            return Location(self._resolve(translation.file)) if translation else None
        if category in ELOQUENT_CATEGORIES:
            return self._model_location(resolve_model(context), category, name)
        if category is Category.LIVEWIRE:
            component = self._find("livewire", name)
            return Location(Path(component.absolute_path)) if component else None
        if category is Category.INERTIA:
            page = self._find("inertia", name)
            return Location(Path(page.absolute_path)) if page else None
        return None

    def _find(self, domain: str, name: str) -> Any:
        repo = self._repo(domain)
        return repo.find(name) if repo is not None else None

    def _component_location(self, name: str) -> Location | None:
        component = self._find("blade_components", name)
        return Location(Path(component.absolute_path)) if component else None

    def _route_location(self, name: str) -> Location | None:
        route = self._find("routes", name)
        if route is None or not route.controller_file:
            return None
        path = self._resolve(route.controller_file)
        if not path.is_file():
            return None
        if route.controller_line:
            return Location(path, route.controller_line - 1)
        if route.controller_method:
            found = _find_line(
                path, re.compile(rf"\bfunction\s+({re.escape(route.controller_method)})\s*\(")
            )
            if found:
                return Location(path, *found)
        return Location(path)

    def _config_location(self, key: str) -> Location | None:
        config = self._find("configs", key)
        if config is None:
            return None
        path = self._resolve(config.file)
        if not path.is_file():
            return None
        leaf = key.rsplit(".", 1)[-1]
        found = _find_line(path, re.compile(rf"['\"]({re.escape(leaf)})['\"]\s*=>"))
        return Location(path, *found) if found else Location(path)

    def _model_location(self, model_name: str | None, category: Category, name: str) -> Location | None:
        if model_name is None:
            return None
        model = self._find("models", model_name)
        if model is None or not model.file_path:
            return None
        path = self._resolve(model.file_path)
        if not path.is_file():
            return None
        if category is Category.ELOQUENT_RELATION and name:
            found = _find_line(path, re.compile(rf"\bfunction\s+({re.escape(name)})\s*\("))
            if found:
                return Location(path, *found)
        return Location(path)

    # -- diagnostics --------------------------------------------------------

    def diagnostics(self, text: str) -> list[Diagnostic]:
        """Flag route, view and config references that do not resolve.

        Nothing is reported until at least one of the three domains has
        loaded, and a domain that is still empty is not checked.
        """
        if not self.session.is_laravel:
            return []

        checks = []
        for pattern, domain, label in _REFERENCE_CHECKS:
            repo = self._repo(domain)
            if repo is not None and repo.count() > 0:
                checks.append((pattern, repo, label))
        if not checks:
            return []

        found: list[Diagnostic] = []
        for number, line in enumerate(text.split("\n")):
            for pattern, repo, label in checks:
                for m in pattern.finditer(line):
                    name = m.group(1)
                    if repo.find(name) is not None:
                        continue
                    found.append(
                        Diagnostic(
                            line=number,
                            start=m.start(1),
                            end=m.end(1),
                            message=f"{label} '{name}' not found",
                        )
                    )
        return found


class DiagnosticScheduler:
    """Per-document debounce of diagnostics.

    Each :meth:`schedule` call cancels the document's pending run; only the
    latest text of a burst of edits is analysed.
    """

    def __init__(
        self,
        facade: QueryFacade,
        publish: Callable[[str, list[Diagnostic]], None],
        delay: float = DEFAULT_DIAGNOSTICS_DELAY,
    ) -> None:
        self.facade = facade
        self.publish = publish
        self.delay = delay
        self._pending: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def schedule(self, uri: str, text: str) -> None:
        with self._lock:
            previous = self._pending.pop(uri, None)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(self.delay, self._run, args=(uri, text))
            timer.daemon = True
            self._pending[uri] = timer
            timer.start()

    def cancel_all(self) -> None:
        with self._lock:
            timers, self._pending = list(self._pending.values()), {}
        for timer in timers:
            timer.cancel()

    def _run(self, uri: str, text: str) -> None:
        with self._lock:
            # A Timer runs its function on its own thread.
            if self._pending.get(uri) is not threading.current_thread():
                return
            del self._pending[uri]
        try:
            self.publish(uri, self.facade.diagnostics(text))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Diagnostics for %s failed: %s", uri, exc)
