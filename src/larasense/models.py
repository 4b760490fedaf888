"""Immutable records produced by the repositories.

Each record is a snapshot of one named entity of a Laravel project.  Records
are created by a repository load and replaced wholesale on reload; they are
never mutated in place, so sequences are stored as tuples.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RouteInfo:
    """A named route with its controller location resolved via reflection."""

    name: str
    uri: str
    methods: tuple[str, ...]
    action: str
    controller: str | None = None
    controller_method: str | None = None
    controller_file: str | None = None  # relative to project root when inside it
    controller_line: int | None = None
    middleware: tuple[str, ...] = ()
    parameters: tuple[str, ...] = ()


@dataclass(frozen=True)
class ViewInfo:
    name: str  # dot notation, "pkg::name" for vendor views
    relative_path: str
    absolute_path: str


@dataclass(frozen=True)
class ConfigInfo:
    key: str  # dot-separated
    value: str
    file: str  # config/<top-level>.php
    has_children: bool = False


@dataclass(frozen=True)
class TranslationInfo:
    key: str
    value: str
    locale: str
    file: str


@dataclass(frozen=True)
class EnvVariable:
    key: str
    value: str
    line: int  # 1-based
    comment: str | None = None
    file: str = ".env"


@dataclass(frozen=True)
class MiddlewareInfo:
    name: str
    class_name: str
    file_path: str | None = None
    kind: str = "alias"  # alias | group


@dataclass(frozen=True)
class ModelAttribute:
    name: str
    type: str
    nullable: bool = False
    default: str | None = None
    cast: str | None = None


@dataclass(frozen=True)
class ModelRelation:
    name: str
    type: str  # hasMany, belongsTo, ...
    related_model: str


@dataclass(frozen=True)
class ModelInfo:
    """An Eloquent model with its schema columns, relations and scopes."""

    name: str
    fqcn: str
    table_name: str
    file_path: str
    attributes: tuple[ModelAttribute, ...] = ()
    relations: tuple[ModelRelation, ...] = ()
    scopes: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationRule:
    name: str
    description: str
    has_parameters: bool = False
    custom: bool = False


@dataclass(frozen=True)
class ComponentProp:
    name: str
    type: str | None = None
    default: str | None = None
    required: bool = True


@dataclass(frozen=True)
class BladeComponentInfo:
    name: str  # tag name without the x- prefix: "alert", "forms.input"
    kind: str  # anonymous | class
    file_path: str
    absolute_path: str
    props: tuple[ComponentProp, ...] = ()


@dataclass(frozen=True)
class LivewireProperty:
    name: str
    type: str | None = None


@dataclass(frozen=True)
class LivewireComponentInfo:
    name: str  # kebab-case, dot separated
    class_name: str
    file_path: str
    absolute_path: str
    properties: tuple[LivewireProperty, ...] = ()
    methods: tuple[str, ...] = ()


@dataclass(frozen=True)
class InertiaPageInfo:
    name: str  # "Users/Index"
    file_path: str
    absolute_path: str
    framework: str  # vue | react | svelte | unknown


@dataclass(frozen=True)
class AuthorizationRule:
    """A gate ability or a policy registered for a model.

    Gates carry a *handler*; policies carry *model*, *policy_class* and the
    public *abilities* declared on the policy class.
    """

    name: str
    kind: str  # gate | policy
    handler: str | None = None
    model: str | None = None
    policy_class: str | None = None
    abilities: tuple[str, ...] = ()
    file_path: str | None = None
