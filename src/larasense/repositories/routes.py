"""Named routes, resolved through the router with reflection for file/line."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from larasense.infrastructure.bridge import decode_json
from larasense.models import RouteInfo
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from larasense.infrastructure.bridge import ProcessBridge

ROUTES_PHP = r"""
$projectPath = base_path();

$getReflection = function ($route) {
    try {
        if ($route->getActionName() === 'Closure') {
            return new \ReflectionFunction($route->getAction()['uses']);
        }
        if (!str_contains($route->getActionName(), '@')) {
            return new \ReflectionClass($route->getActionName());
        }
        return new \ReflectionMethod($route->getControllerClass(), $route->getActionMethod());
    } catch (\Throwable $e) {
        return null;
    }
};

$routes = collect(app('router')->getRoutes()->getRoutes())
    ->map(function ($route) use ($getReflection, $projectPath) {
        $reflection = $getReflection($route);
        $filename = null;
        $line = null;
        if ($reflection) {
            $filename = $reflection->getFileName();
            $line = $reflection->getStartLine();
            if ($filename && str_starts_with($filename, $projectPath)) {
                $filename = substr($filename, strlen($projectPath) + 1);
            }
        }
        return [
            'name' => $route->getName(),
            'uri' => $route->uri(),
            'methods' => array_values(array_filter($route->methods(), fn($m) => $m !== 'HEAD')),
            'action' => $route->getActionName(),
            'parameters' => $route->parameterNames(),
            'middleware' => array_values((array) ($route->middleware() ?? [])),
            'filename' => $filename,
            'line' => $line,
        ];
    })
    ->filter(fn($r) => $r['name'] !== null)
    ->values()
    ->toArray();

echo json_encode($routes);
"""


def split_action(action: str) -> tuple[str | None, str | None]:
    """Split ``Controller@method`` into its parts.

    Closures have no controller; an action without ``@`` is an invokable
    controller handled by ``__invoke``.
    """
    if not action or action == "Closure":
        return None, None
    if "@" in action:
        controller, method = action.split("@", 1)
        return controller, method
    return action, "__invoke"


def to_route_info(raw: dict[str, Any]) -> RouteInfo:
    action = str(raw.get("action") or "")
    controller, method = split_action(action)
    line = raw.get("line")
    return RouteInfo(
        name=str(raw["name"]),
        uri=str(raw.get("uri", "")),
        methods=tuple(m for m in raw.get("methods") or () if m != "HEAD"),
        action=action,
        controller=controller,
        controller_method=method,
        controller_file=raw.get("filename") or None,
        controller_line=int(line) if line else None,
        middleware=tuple(str(m) for m in raw.get("middleware") or ()),
        parameters=tuple(str(p) for p in raw.get("parameters") or ()),
    )


class RouteRepository(Repository[RouteInfo]):
    """Named routes; last registration of a name wins the index."""

    domain = "routes"

    def __init__(self, bridge: ProcessBridge, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge

    def key_of(self, record: RouteInfo) -> str:
        return record.name

    def _acquire(self) -> list[RouteInfo]:
        rows = decode_json(self.bridge.run(ROUTES_PHP), list, "routes")
        # Unnamed routes cannot be referenced and are not indexed.
        return [to_route_info(row) for row in rows if isinstance(row, dict) and row.get("name")]
