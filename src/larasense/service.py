"""Session start-up, concurrent loading and change-driven invalidation.

``start_session`` runs the one-time detection sequence and returns a
:class:`SessionContext`; :class:`LaravelService` owns the worker pool and the
file watcher for that session.  Nothing here is a module-level singleton:
every consumer receives the session explicitly.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from larasense.config import load_settings
from larasense.context.parser import ContextParser
from larasense.errors import LarasenseError
from larasense.facade import DiagnosticScheduler, QueryFacade
from larasense.infrastructure.bridge import ProcessBridge
from larasense.infrastructure.environment import EnvironmentDetector
from larasense.infrastructure.project import ProjectInfo, detect_laravel_project
from larasense.infrastructure.watcher import (
    WATCHED_DIRS,
    WATCHED_FILES,
    FileWatcher,
    classify_change,
)
from larasense.repositories import (
    BladeComponentRepository,
    ConfigRepository,
    EnvRepository,
    GateRepository,
    InertiaRepository,
    LivewireRepository,
    MiddlewareRepository,
    ModelRepository,
    RouteRepository,
    TranslationRepository,
    ValidationRepository,
    ViewRepository,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from concurrent.futures import Future
    from pathlib import Path

    from larasense.config import Settings
    from larasense.facade import Diagnostic
    from larasense.repositories import Repository

logger = logging.getLogger(__name__)

LARAVEL_VERSION_PHP = "echo app()->version();"

_DEFAULT_WORKERS = 4


@dataclass
class SessionContext:
    """Everything a query needs: the project, its settings and repositories.

    ``repositories`` is empty when the workspace is not a Laravel project.
    """

    project: ProjectInfo
    settings: Settings
    bridge: ProcessBridge | None = None
    repositories: dict[str, Repository[Any]] = field(default_factory=dict)
    parser: ContextParser = field(default_factory=ContextParser)

    @property
    def is_laravel(self) -> bool:
        return self.project.is_laravel

    @property
    def root(self) -> Path:
        return self.project.root_path

    def repository(self, domain: str) -> Repository[Any] | None:
        return self.repositories.get(domain)


def build_repositories(
    project_root: Path, bridge: ProcessBridge, settings: Settings
) -> dict[str, Repository[Any]]:
    """Construct the twelve domain repositories, keyed by domain name."""
    bridge_backed: tuple[type[Any], ...] = (
        RouteRepository,
        ConfigRepository,
        MiddlewareRepository,
        ValidationRepository,
        GateRepository,
    )
    tree_backed: tuple[type[Any], ...] = (
        ViewRepository,
        TranslationRepository,
        EnvRepository,
        BladeComponentRepository,
        LivewireRepository,
        InertiaRepository,
    )
    repositories: dict[str, Repository[Any]] = {}
    for cls in bridge_backed:
        repositories[cls.domain] = cls(bridge, ttl=settings.ttl_for(cls.domain, cls.ttl))
    # Model sources are read on the host, relative to the project root.
    repositories[ModelRepository.domain] = ModelRepository(
        bridge, project_root, ttl=settings.ttl_for(ModelRepository.domain, ModelRepository.ttl)
    )
    for cls in tree_backed:
        repositories[cls.domain] = cls(project_root, ttl=settings.ttl_for(cls.domain, cls.ttl))
    return repositories


def detect_laravel_version(bridge: ProcessBridge) -> str | None:
    try:
        version = bridge.run(LARAVEL_VERSION_PHP).strip()
    except LarasenseError as exc:
        logger.warning("Could not determine Laravel version: %s", exc)
        return None
    return version or None


def start_session(project_root: Path, settings: Settings | None = None) -> SessionContext:
    """Detect the project and its PHP runtime and build the repositories.

    Repositories are constructed but not loaded; see
    :meth:`LaravelService.load_all`.  Raises :class:`ConfigError` for an
    invalid config file.
    """
    root = project_root.resolve()
    if settings is None:
        settings = load_settings(root)

    project = detect_laravel_project(root)
    if not project.is_laravel:
        logger.info("%s is not a Laravel project", root)
        return SessionContext(project=project, settings=settings)

    project.php = EnvironmentDetector(root).detect(settings.php_path)
    logger.info(
        "PHP %s (%s) at %s",
        project.php.version or "unknown",
        project.php.kind,
        project.php.php_path,
    )

    bridge = ProcessBridge(
        project.php,
        root,
        timeout=settings.timeout,
        max_output_bytes=settings.max_output_bytes,
    )
    project.laravel_version = detect_laravel_version(bridge)

    return SessionContext(
        project=project,
        settings=settings,
        bridge=bridge,
        repositories=build_repositories(root, bridge, settings),
    )


class LaravelService:
    """Runs loads and reloads for one session on a small thread pool."""

    def __init__(self, session: SessionContext, *, max_workers: int = _DEFAULT_WORKERS) -> None:
        self.session = session
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="larasense"
        )
        self._watcher: FileWatcher | None = None
        self._schedulers: list[DiagnosticScheduler] = []

    def __enter__(self) -> LaravelService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def load_all(self, timeout: float | None = None) -> dict[str, int]:
        """Load every repository concurrently and wait for them.

        One domain failing never affects another.  Returns the record count
        per domain once the loads settle (or *timeout* elapses).
        """
        futures = {
            self._executor.submit(repo.load): domain
            for domain, repo in self.session.repositories.items()
        }
        done, pending = wait(futures, timeout=timeout)
        for future in done:
            exc = future.exception()
            if exc is not None:
                logger.warning("[%s] Load raised: %s", futures[future], exc)
        for future in pending:
            logger.warning("[%s] Load still running after %ss", futures[future], timeout)
        return self.counts()

    def counts(self) -> dict[str, int]:
        return {domain: repo.count() for domain, repo in self.session.repositories.items()}

    def reload(self, domains: Iterable[str]) -> list[Future[None]]:
        """Schedule a reload of each named domain; does not wait."""
        futures: list[Future[None]] = []
        for domain in sorted(set(domains)):
            repo = self.session.repository(domain)
            if repo is None:
                continue
            logger.debug("Reloading %s", domain)
            futures.append(self._executor.submit(repo.reload))
        return futures

    def files_changed(self, paths: Iterable[str | Path]) -> set[str]:
        """Classify changed paths and reload the affected domains.

        Both native watcher events and editor change batches come through
        here.  Returns the set of domains scheduled for reload.
        """
        if not self.session.is_laravel:
            return set()
        domains: set[str] = set()
        for path in paths:
            domains |= classify_change(path, self.session.root)
        if domains:
            self.reload(domains)
        return domains

    def start_watching(self, on_change: Callable[[str], None] | None = None) -> list[Path]:
        """Watch the project tree natively; returns the watched paths.

        *on_change* is called with each changed path after its domains have
        been scheduled for reload.
        """
        if not self.session.is_laravel:
            return []
        if self._watcher is None:
            self._watcher = FileWatcher(
                self.session.root, debounce_ms=self.session.settings.debounce_ms
            )

        def changed(path: str) -> None:
            self.files_changed([path])
            if on_change is not None:
                on_change(path)

        return self._watcher.watch(WATCHED_DIRS + WATCHED_FILES, changed)

    def diagnostics_scheduler(
        self, publish: Callable[[str, list[Diagnostic]], None]
    ) -> DiagnosticScheduler:
        """Debounced diagnostics for this session, using the configured delay."""
        scheduler = DiagnosticScheduler(
            QueryFacade(self.session),
            publish,
            delay=self.session.settings.diagnostics_delay_ms / 1000,
        )
        self._schedulers.append(scheduler)
        return scheduler

    def close(self) -> None:
        for scheduler in self._schedulers:
            scheduler.cancel_all()
        if self._watcher is not None:
            self._watcher.dispose()
        self._executor.shutdown(wait=False, cancel_futures=True)
