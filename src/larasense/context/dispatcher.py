"""Map a call context to the metadata category that answers it.

Precedence: a receiver class name wins over the function name; then the
function table, whose insertion order resolves names that appear in more
than one group.  Unknown names map to ``None``.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from larasense.context.parser import FunctionCallContext


class Category(enum.Enum):
    ROUTE = "route"
    VIEW = "view"
    CONFIG = "config"
    TRANSLATION = "translation"
    ENV = "env"
    MIDDLEWARE = "middleware"
    ELOQUENT_COLUMN = "eloquent_column"
    ELOQUENT_RELATION = "eloquent_relation"
    VALIDATION = "validation"
    GATE = "gate"
    LIVEWIRE = "livewire"
    INERTIA = "inertia"
    BLADE_COMPONENT = "blade_component"


ELOQUENT_CATEGORIES = frozenset({Category.ELOQUENT_COLUMN, Category.ELOQUENT_RELATION})

# Keys are lower-case; lookups lower-case the receiver.
CLASS_CATEGORIES: dict[str, Category] = {
    "view": Category.VIEW,
    "blade": Category.VIEW,
    "config": Category.CONFIG,
    "route": Category.ROUTE,
    "url": Category.ROUTE,
    "redirect": Category.ROUTE,
    "lang": Category.TRANSLATION,
    "translator": Category.TRANSLATION,
    "gate": Category.GATE,
    "inertia": Category.INERTIA,
    "livewire": Category.LIVEWIRE,
    "validator": Category.VALIDATION,
}

ROUTE_FUNCTIONS = ("route", "to_route", "signedRoute", "temporarySignedRoute")
TRANSLATION_FUNCTIONS = ("__", "trans", "trans_choice", "lang")
ENV_FUNCTIONS = ("env",)
MIDDLEWARE_FUNCTIONS = ("middleware",)
GATE_FUNCTIONS = ("can", "cannot", "allows", "denies", "authorize")
LIVEWIRE_FUNCTIONS = ("livewire",)
VALIDATION_FUNCTIONS = ("validate", "sometimes")
ELOQUENT_QUERY_FUNCTIONS = (
    "where",
    "orWhere",
    "whereIn",
    "whereNotIn",
    "whereBetween",
    "whereNotBetween",
    "whereNull",
    "whereNotNull",
    "orderBy",
    "orderByDesc",
    "groupBy",
    "select",
    "addSelect",
    "pluck",
    "value",
    "firstWhere",
)
ELOQUENT_MASS_FUNCTIONS = (
    "create",
    "forceCreate",
    "fill",
    "forceFill",
    "update",
    "updateOrCreate",
    "firstOrCreate",
    "firstOrNew",
)
RELATION_FUNCTIONS = (
    "with",
    "without",
    "load",
    "loadMissing",
    "has",
    "orHas",
    "doesntHave",
    "orDoesntHave",
    "whereHas",
    "orWhereHas",
    "whereDoesntHave",
    "withCount",
    "withSum",
    "withAvg",
    "withMin",
    "withMax",
)
CONFIG_FUNCTIONS = ("config",)
VIEW_FUNCTIONS = (
    "view",
    "make",
    "renderWhen",
    "renderUnless",
    "include",
    "includeIf",
    "includeWhen",
    "includeUnless",
    "includeFirst",
    "extends",
    "component",
    "each",
)
INERTIA_FUNCTIONS = ("inertia",)


def _build_function_table(
    groups: Iterable[tuple[tuple[str, ...], Category]],
) -> dict[str, Category]:
    table: dict[str, Category] = {}
    for names, category in groups:
        for name in names:
            table.setdefault(name, category)
    return table


# Earlier groups take precedence over later ones for a shared name.
FUNCTION_CATEGORIES: dict[str, Category] = _build_function_table(
    (
        (ROUTE_FUNCTIONS, Category.ROUTE),
        (TRANSLATION_FUNCTIONS, Category.TRANSLATION),
        (ENV_FUNCTIONS, Category.ENV),
        (MIDDLEWARE_FUNCTIONS, Category.MIDDLEWARE),
        (GATE_FUNCTIONS, Category.GATE),
        (LIVEWIRE_FUNCTIONS, Category.LIVEWIRE),
        (VALIDATION_FUNCTIONS, Category.VALIDATION),
        (ELOQUENT_QUERY_FUNCTIONS, Category.ELOQUENT_COLUMN),
        (ELOQUENT_MASS_FUNCTIONS, Category.ELOQUENT_COLUMN),
        (RELATION_FUNCTIONS, Category.ELOQUENT_RELATION),
        (CONFIG_FUNCTIONS, Category.CONFIG),
        (VIEW_FUNCTIONS, Category.VIEW),
        (INERTIA_FUNCTIONS, Category.INERTIA),
    )
)


def dispatch(function_name: str, class_name: str | None = None) -> Category | None:
    """Return the category for a call, or ``None`` when nothing handles it."""
    if class_name:
        by_class = CLASS_CATEGORIES.get(class_name.lower())
        if by_class is not None:
            return by_class
    return FUNCTION_CATEGORIES.get(function_name)


def resolve_model(context: FunctionCallContext) -> str | None:
    """Model name for the Eloquent categories: the static receiver, if any.

    ``User::where('`` resolves to ``User``; ``$query->where('`` resolves to
    nothing because variable types are not tracked.
    """
    return context.class_name or None
