"""Middleware aliases and groups registered on the router."""

from __future__ import annotations

from typing import TYPE_CHECKING

from larasense.infrastructure.bridge import decode_json
from larasense.models import MiddlewareInfo
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from larasense.infrastructure.bridge import ProcessBridge

MIDDLEWARE_PHP = r"""
$router = app('router');
$result = [];

$aliases = [];
if (method_exists($router, 'getMiddleware')) {
    $aliases = $router->getMiddleware();
} elseif (property_exists($router, 'middleware')) {
    $ref = new \ReflectionProperty($router, 'middleware');
    $ref->setAccessible(true);
    $aliases = $ref->getValue($router);
}

foreach ($aliases as $name => $class) {
    $filePath = null;
    try {
        $filePath = (new \ReflectionClass($class))->getFileName();
    } catch (\Throwable $e) {}
    $result[] = [
        'name' => $name,
        'class' => is_string($class) ? $class : get_class($class),
        'filePath' => $filePath,
        'type' => 'alias',
    ];
}

$groups = method_exists($router, 'getMiddlewareGroups') ? $router->getMiddlewareGroups() : [];
foreach ($groups as $name => $middlewares) {
    $result[] = [
        'name' => $name,
        'class' => implode(', ', array_map(fn($m) => is_string($m) ? $m : get_class($m), $middlewares)),
        'filePath' => null,
        'type' => 'group',
    ];
}

echo json_encode($result);
"""


class MiddlewareRepository(Repository[MiddlewareInfo]):
    domain = "middleware"

    def __init__(self, bridge: ProcessBridge, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge

    def key_of(self, record: MiddlewareInfo) -> str:
        return record.name

    def _acquire(self) -> list[MiddlewareInfo]:
        rows = decode_json(self.bridge.run(MIDDLEWARE_PHP), list, "middleware")
        return [
            MiddlewareInfo(
                name=str(row["name"]),
                class_name=str(row.get("class") or ""),
                file_path=row.get("filePath") or None,
                kind=str(row.get("type") or "alias"),
            )
            for row in rows
            if isinstance(row, dict) and "name" in row
        ]

    def groups(self) -> list[MiddlewareInfo]:
        return [m for m in self.all() if m.kind == "group"]
