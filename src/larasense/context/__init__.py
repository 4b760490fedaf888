"""Cursor context parsing and category dispatch."""

from larasense.context.dispatcher import Category, dispatch, resolve_model
from larasense.context.parser import (
    BladeTrigger,
    ContextParser,
    FunctionCallContext,
    Position,
    Range,
    detect_blade_trigger,
)

__all__ = [
    "BladeTrigger",
    "Category",
    "ContextParser",
    "FunctionCallContext",
    "Position",
    "Range",
    "detect_blade_trigger",
    "dispatch",
    "resolve_model",
]
