"""Infrastructure layer: TTL cache, PHP process bridge, runtime detection and file watching."""

from larasense.infrastructure.bridge import ProcessBridge, decode_json, extract_output
from larasense.infrastructure.cache import BoundedCache, CacheEntry
from larasense.infrastructure.environment import EnvironmentDetector, PhpEnvironment
from larasense.infrastructure.project import ProjectInfo, detect_laravel_project
from larasense.infrastructure.watcher import (
    WATCHED_DIRS,
    WATCHED_FILES,
    FileWatcher,
    classify_change,
)

__all__ = [
    "WATCHED_DIRS",
    "WATCHED_FILES",
    "BoundedCache",
    "CacheEntry",
    "EnvironmentDetector",
    "FileWatcher",
    "PhpEnvironment",
    "ProcessBridge",
    "ProjectInfo",
    "classify_change",
    "decode_json",
    "detect_laravel_project",
    "extract_output",
]
