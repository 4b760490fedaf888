"""Eloquent models: schema columns, declared casts, relations and scopes.

PHP discovers the concrete model classes, asks the live database schema for
their columns and reports casts and ``scope*`` methods.  Relations are
inferred here from the model source by matching the relation-method
vocabulary, which avoids calling relation methods on unbooted models.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from larasense.infrastructure.bridge import decode_json
from larasense.models import ModelAttribute, ModelInfo, ModelRelation
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from larasense.infrastructure.bridge import ProcessBridge

logger = logging.getLogger(__name__)

RELATION_TYPES = (
    "hasOne",
    "hasMany",
    "belongsTo",
    "belongsToMany",
    "morphOne",
    "morphMany",
    "morphTo",
    "morphToMany",
    "morphedByMany",
    "hasOneThrough",
    "hasManyThrough",
)

# Longer names first so the alternation never stops at a shorter prefix.
_RELATION_RE = re.compile(
    r"public\s+function\s+(\w+)\s*\([^)]*\)[^{]*\{[^}]*?\$this->("
    + "|".join(sorted(RELATION_TYPES, key=len, reverse=True))
    + r")\s*\(\s*([\w\\:]+::class|['\"][\w\\]+['\"])?",
    re.DOTALL,
)

MODELS_PHP = r"""
$projectPath = base_path();
$modelFiles = [];
foreach ([app_path(), app_path('Models')] as $dir) {
    if (!is_dir($dir)) continue;
    $iterator = new \RecursiveIteratorIterator(
        new \RecursiveDirectoryIterator($dir, \FilesystemIterator::SKIP_DOTS)
    );
    foreach ($iterator as $file) {
        if ($file->getExtension() === 'php') {
            $modelFiles[$file->getRealPath()] = true;
        }
    }
}

$models = [];
foreach (array_keys($modelFiles) as $file) {
    $content = file_get_contents($file);
    if (!preg_match('/namespace\s+([^;]+)/', $content, $nsMatch)) continue;
    if (!preg_match('/class\s+(\w+)\s+extends\s+[^{]*Model/', $content, $classMatch)) continue;

    $fqcn = $nsMatch[1] . '\\' . $classMatch[1];
    if (!class_exists($fqcn)) continue;

    try {
        $reflection = new \ReflectionClass($fqcn);
        if ($reflection->isAbstract()) continue;
        $instance = $reflection->newInstanceWithoutConstructor();
        if (!($instance instanceof \Illuminate\Database\Eloquent\Model)) continue;

        $table = $instance->getTable();
        $columns = [];
        try {
            foreach (\Illuminate\Support\Facades\Schema::getColumnListing($table) as $col) {
                $type = 'string';
                try {
                    $type = \Illuminate\Support\Facades\Schema::getColumnType($table, $col);
                } catch (\Throwable $e) {}
                $columns[] = ['name' => $col, 'type' => $type];
            }
        } catch (\Throwable $e) {}

        $scopes = [];
        foreach ($reflection->getMethods(\ReflectionMethod::IS_PUBLIC) as $method) {
            if ($method->class !== $fqcn) continue;
            $name = $method->getName();
            if (str_starts_with($name, 'scope') && strlen($name) > 5) {
                $scopes[] = lcfirst(substr($name, 5));
            }
        }

        $models[] = [
            'name' => $classMatch[1],
            'fqcn' => $fqcn,
            'tableName' => $table,
            'file' => $file,
            'filePath' => str_starts_with($file, $projectPath) ? substr($file, strlen($projectPath) + 1) : $file,
            'columns' => $columns,
            'casts' => (object) $instance->getCasts(),
            'scopes' => $scopes,
        ];
    } catch (\Throwable $e) {
    }
}

echo json_encode($models);
"""


def class_basename(reference: str) -> str:
    """``\\App\\Models\\Post::class`` / ``'App\\Models\\Post'`` -> ``Post``."""
    cleaned = reference.replace("::class", "").strip("'\"")
    return cleaned.replace("\\\\", "\\").rsplit("\\", 1)[-1]


def extract_relations(source: str) -> list[ModelRelation]:
    """Infer relations declared in a model's PHP source.

    ``morphTo()`` takes no related class, so its related model is empty.
    """
    relations: list[ModelRelation] = []
    for m in _RELATION_RE.finditer(source):
        related = class_basename(m.group(3)) if m.group(3) else ""
        relations.append(ModelRelation(m.group(1), m.group(2), related))
    return relations


def build_attributes(columns: list[Any], casts: dict[str, Any]) -> tuple[ModelAttribute, ...]:
    """Overlay declared casts onto the schema columns."""
    attributes: list[ModelAttribute] = []
    for column in columns:
        if not isinstance(column, dict) or "name" not in column:
            continue
        name = str(column["name"])
        cast = casts.get(name)
        attributes.append(
            ModelAttribute(
                name=name,
                type=str(column.get("type") or "string"),
                nullable=bool(column.get("nullable", False)),
                default=column.get("default"),
                cast=str(cast) if cast is not None else None,
            )
        )
    return tuple(attributes)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        logger.debug("Cannot read model source %s", path)
        return ""


def source_path(raw: dict[str, Any], project_root: Path | None = None) -> Path | None:
    """Host-side path of a model file.

    ``file`` is the path PHP saw, which is a container path under Sail, so the
    project-relative ``filePath`` is resolved against *project_root* first.
    """
    relative = str(raw.get("filePath") or "")
    if project_root is not None and relative and not Path(relative).is_absolute():
        candidate = project_root / relative
        if candidate.is_file():
            return candidate
    reported = str(raw.get("file") or "")
    return Path(reported) if reported else None


def to_model_info(raw: dict[str, Any], project_root: Path | None = None) -> ModelInfo:
    casts = raw.get("casts") or {}
    path = source_path(raw, project_root)
    source = _read_source(path) if path is not None else ""
    return ModelInfo(
        name=str(raw["name"]),
        fqcn=str(raw.get("fqcn") or raw["name"]),
        table_name=str(raw.get("tableName") or ""),
        file_path=str(raw.get("filePath") or ""),
        attributes=build_attributes(list(raw.get("columns") or []), casts if isinstance(casts, dict) else {}),
        relations=tuple(extract_relations(source)),
        scopes=tuple(str(s) for s in raw.get("scopes") or ()),
    )


class ModelRepository(Repository[ModelInfo]):
    """Models indexed by class basename and by table name."""

    domain = "models"

    def __init__(
        self, bridge: ProcessBridge, project_root: Path | None = None, *, ttl: float | None = None
    ) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge
        self.project_root = project_root

    def key_of(self, record: ModelInfo) -> str:
        return record.name

    def _acquire(self) -> list[ModelInfo]:
        rows = decode_json(self.bridge.run(MODELS_PHP), list, "models")
        return [to_model_info(row, self.project_root) for row in rows if isinstance(row, dict) and row.get("name")]

    def _build_indexes(self, records: tuple[ModelInfo, ...]) -> dict[str, Any]:
        indexes = super()._build_indexes(records)
        indexes["table"] = {m.table_name: m for m in records}
        return indexes

    def find_by_table(self, table: str) -> ModelInfo | None:
        return self._index("table").get(table)

    def attributes(self, model: str) -> tuple[ModelAttribute, ...]:
        found = self.find(model)
        return found.attributes if found else ()

    def relations(self, model: str) -> tuple[ModelRelation, ...]:
        found = self.find(model)
        return found.relations if found else ()

    def scopes(self, model: str) -> tuple[str, ...]:
        found = self.find(model)
        return found.scopes if found else ()
