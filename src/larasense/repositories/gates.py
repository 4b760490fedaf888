"""Gate abilities and model policies registered with the authorization gate.

Both kinds are stored as :class:`AuthorizationRule` records in one snapshot.
A gate is keyed by its ability name and a policy by its model basename.
``find_gate`` and ``find_policy`` go through per-kind indexes, so a gate and
a model sharing a name do not collide.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from larasense.infrastructure.bridge import decode_json
from larasense.models import AuthorizationRule
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from collections.abc import Mapping

    from larasense.infrastructure.bridge import ProcessBridge

logger = logging.getLogger(__name__)

GATES_PHP = r"""
$gate = app(\Illuminate\Contracts\Auth\Access\Gate::class);
$reflection = new \ReflectionClass($gate);

$gates = [];
$abilitiesProp = $reflection->getProperty('abilities');
$abilitiesProp->setAccessible(true);
foreach ($abilitiesProp->getValue($gate) as $name => $callback) {
    $gates[] = ['name' => $name, 'handler' => is_string($callback) ? $callback : 'Closure'];
}

$policies = [];
$policiesProp = $reflection->getProperty('policies');
$policiesProp->setAccessible(true);
$projectPath = base_path();
foreach ($policiesProp->getValue($gate) as $model => $policyClass) {
    $abilities = [];
    $filePath = null;
    try {
        $policyReflection = new \ReflectionClass($policyClass);
        $filePath = $policyReflection->getFileName();
        if ($filePath && str_starts_with($filePath, $projectPath)) {
            $filePath = substr($filePath, strlen($projectPath) + 1);
        }
        foreach ($policyReflection->getMethods(\ReflectionMethod::IS_PUBLIC) as $method) {
            if ($method->class !== $policyClass) continue;
            if (str_starts_with($method->getName(), '__')) continue;
            $abilities[] = $method->getName();
        }
    } catch (\Throwable $e) {}

    $policies[] = [
        'model' => class_basename($model),
        'policyClass' => $policyClass,
        'abilities' => $abilities,
        'filePath' => $filePath,
    ];
}

echo json_encode(['gates' => $gates, 'policies' => $policies]);
"""

GATE = "gate"
POLICY = "policy"


def to_rules(payload: dict[str, Any]) -> list[AuthorizationRule]:
    rules: list[AuthorizationRule] = []
    for row in payload.get("gates") or ():
        if isinstance(row, dict) and row.get("name"):
            rules.append(
                AuthorizationRule(
                    name=str(row["name"]),
                    kind=GATE,
                    handler=row.get("handler") or None,
                )
            )
    for row in payload.get("policies") or ():
        if isinstance(row, dict) and row.get("model"):
            rules.append(
                AuthorizationRule(
                    name=str(row["model"]),
                    kind=POLICY,
                    model=str(row["model"]),
                    policy_class=row.get("policyClass") or None,
                    abilities=tuple(str(a) for a in row.get("abilities") or ()),
                    file_path=row.get("filePath") or None,
                )
            )
    return rules


class GateRepository(Repository[AuthorizationRule]):
    domain = "gates"

    def __init__(self, bridge: ProcessBridge, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge

    def key_of(self, record: AuthorizationRule) -> str:
        return record.name

    def _acquire(self) -> list[AuthorizationRule]:
        payload = decode_json(self.bridge.run(GATES_PHP), dict, "gates")
        return to_rules(payload)

    def _build_indexes(self, records: tuple[AuthorizationRule, ...]) -> dict[str, Mapping[str, AuthorizationRule]]:
        indexes = super()._build_indexes(records)
        indexes[GATE] = {r.name: r for r in records if r.kind == GATE}
        indexes[POLICY] = {r.name: r for r in records if r.kind == POLICY}
        return indexes

    def _matches(self, record: AuthorizationRule, needle: str) -> bool:
        if needle in record.name.lower():
            return True
        return any(needle in ability.lower() for ability in record.abilities)

    def gates(self) -> list[AuthorizationRule]:
        return [r for r in self.all() if r.kind == GATE]

    def policies(self) -> list[AuthorizationRule]:
        return [r for r in self.all() if r.kind == POLICY]

    def find_gate(self, name: str) -> AuthorizationRule | None:
        return self._index(GATE).get(name)

    def find_policy(self, model: str) -> AuthorizationRule | None:
        return self._index(POLICY).get(model)

    def ability_names(self) -> list[str]:
        """Gate names and policy abilities, deduplicated, first occurrence kept."""
        names: dict[str, None] = {}
        for rule in self.all():
            if rule.kind == GATE:
                names.setdefault(rule.name, None)
            else:
                for ability in rule.abilities:
                    names.setdefault(ability, None)
        return list(names)
