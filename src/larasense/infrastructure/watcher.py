"""File watcher: observe project subtrees and map changes to affected domains.

Native events come from ``watchfiles`` running in daemon threads.  Editor
"files changed" batches bypass the watcher and go straight to
:func:`classify_change`, so both sources share one classification table.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from larasense.config import DEFAULT_DEBOUNCE_MS

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

_JOIN_TIMEOUT = 5.0  # seconds

# Subtrees watched natively for a Laravel project.
WATCHED_DIRS: tuple[str, ...] = (
    "routes",
    "config",
    "lang",
    "resources/lang",
    "resources/views",
    "resources/js",
    "resources/ts",
    "app",
    "bootstrap",
)

# Root-level files watched individually.
WATCHED_FILES: tuple[str, ...] = (".env", ".env.example")

# (substring of the root-relative path, domains to reload)
_SUBTREE_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("/routes/", ("routes",)),
    ("/resources/views/", ("views", "blade_components")),
    ("/app/View/Components/", ("blade_components",)),
    ("/config/", ("configs",)),
    ("/lang/", ("translations",)),
    ("/app/Livewire/", ("livewire",)),
    ("/app/Http/Livewire/", ("livewire",)),
    ("/app/Rules/", ("validation",)),
    ("/app/Policies/", ("gates",)),
    ("/app/Providers/", ("gates", "middleware")),
    ("/app/Http/Middleware/", ("middleware",)),
    ("/app/Http/Kernel.php", ("middleware", "routes")),
    ("/bootstrap/app.php", ("middleware", "routes")),
    ("/resources/js/Pages/", ("inertia",)),
    ("/resources/js/pages/", ("inertia",)),
    ("/resources/ts/Pages/", ("inertia",)),
    ("/resources/ts/pages/", ("inertia",)),
)


def _relative_key(path: Path, project_root: Path) -> str:
    """Return ``/``-prefixed posix path relative to *project_root* when possible."""
    try:
        rel = path.relative_to(project_root)
    except ValueError:
        return PurePosixPath(path).as_posix()
    return "/" + rel.as_posix()


def classify_change(path: str | Path, project_root: Path) -> set[str]:
    """Return the names of the domains invalidated by a change to *path*.

    One change may invalidate several domains, e.g. a Blade file under
    ``resources/views/components`` affects both views and components.
    """
    p = Path(path)
    key = _relative_key(p, project_root)
    domains: set[str] = set()

    for needle, affected in _SUBTREE_RULES:
        if needle in key:
            domains.update(affected)

    if "/app/Models/" in key and p.suffix == ".php":
        domains.add("models")
    if p.name.startswith(".env"):
        domains.add("env")

    return domains


def _filter_relevant(
    changes: Iterable[tuple[object, str]],
    project_root: Path,
) -> list[str]:
    """Keep changed paths that are not temp files or inside hidden directories."""
    result: list[str] = []
    for _change_type, path_str in changes:
        p = Path(path_str)

        if p.name.startswith("~") or p.name.endswith(".tmp"):
            continue

        try:
            rel = p.relative_to(project_root)
        except ValueError:
            result.append(path_str)
            continue

        if any(part.startswith(".") for part in rel.parts[:-1]):
            continue

        result.append(path_str)
    return result


class FileWatcher:
    """Recursive directory watches that report each changed path to a callback."""

    def __init__(self, project_root: Path, *, debounce_ms: int = DEFAULT_DEBOUNCE_MS) -> None:
        self.project_root = project_root
        self.debounce_ms = debounce_ms
        self._watches: list[tuple[threading.Event, threading.Thread]] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        """Number of running watch threads."""
        with self._lock:
            return len(self._watches)

    def watch(self, relative_dirs: Iterable[str], callback: Callable[[str], None]) -> list[Path]:
        """Watch each existing path of *relative_dirs*; directories recursively.

        Missing paths are skipped.  Returns the paths actually watched
        (empty when nothing exists, in which case no thread starts).
        """
        dirs = [self.project_root / rel for rel in relative_dirs]
        existing = [d for d in dirs if d.exists()]
        for skipped in set(dirs) - set(existing):
            logger.debug("Not watching missing path %s", skipped)
        if not existing:
            return []

        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._watch_loop,
            args=(existing, callback, stop_event),
            name="larasense-watcher",
            daemon=True,
        )
        with self._lock:
            self._watches.append((stop_event, thread))
        thread.start()
        logger.info(
            "Watching %d path(s): %s",
            len(existing),
            ", ".join(str(d.relative_to(self.project_root)) for d in existing),
        )
        return existing

    def dispose(self) -> None:
        """Stop every watch.  Safe to call more than once."""
        with self._lock:
            watches, self._watches = self._watches, []
        for stop_event, _thread in watches:
            stop_event.set()
        for _stop_event, thread in watches:
            if thread is not threading.current_thread():
                thread.join(timeout=_JOIN_TIMEOUT)

    def _watch_loop(
        self,
        dirs: list[Path],
        callback: Callable[[str], None],
        stop_event: threading.Event,
    ) -> None:
        from watchfiles import watch

        try:
            for batch in watch(
                *dirs,
                debounce=self.debounce_ms,
                stop_event=stop_event,
                raise_interrupt=False,
                ignore_permission_denied=True,
            ):
                if stop_event.is_set():
                    return
                for path_str in _filter_relevant(batch, self.project_root):
                    try:
                        callback(path_str)
                    except Exception as exc:  # noqa: BLE001
                        logger.warning("Change callback failed for %s: %s", path_str, exc)
        except OSError as exc:
            logger.debug("Watch on %s stopped: %s", ", ".join(map(str, dirs)), exc)
