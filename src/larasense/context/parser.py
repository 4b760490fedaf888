"""Cursor context detection: which call's string argument is being typed.

A regex heuristic over the current line, not a PHP grammar.  Everything goes
through :class:`ContextParser` so a parser built on a real AST can take its
place without touching the dispatcher or the repositories.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

QUOTES = "'\""


@dataclass(frozen=True)
class Position:
    line: int  # 0-based
    character: int  # 0-based str index


@dataclass(frozen=True)
class Range:
    start: Position
    end: Position


@dataclass(frozen=True)
class FunctionCallContext:
    """A call whose first string argument contains the cursor."""

    function_name: str
    class_name: str | None
    prefix: str  # text typed so far inside the string, or the whole string
    full_match: str
    range: Range
    parameter_index: int = 0


@dataclass(frozen=True)
class BladeTrigger:
    kind: str  # directive | component
    prefix: str


# ---------------------------------------------------------------------------
# Patterns, tried in order; the first match wins
# ---------------------------------------------------------------------------

# Static call first so ``Route::has('`` is not read as a bare ``has('``.
_STATIC_CALL_RE = re.compile(r"(\w+)::(\w+)\s*\(\s*['\"]([^'\"]*)$")
_FUNCTION_CALL_RE = re.compile(r"(?<![:\w])(\w+)\s*\(\s*['\"]([^'\"]*)$")
_METHOD_CHAIN_RE = re.compile(r"->(\w+)\s*\(\s*['\"]([^'\"]*)$")
_DIRECTIVE_CALL_RE = re.compile(r"@(\w+)\s*\(\s*['\"]([^'\"]*)$")

_PATTERNS: tuple[tuple[re.Pattern[str], bool], ...] = (
    (_STATIC_CALL_RE, True),
    (_FUNCTION_CALL_RE, False),
    (_METHOD_CHAIN_RE, False),
    (_DIRECTIVE_CALL_RE, False),
)

_DIRECTIVE_TRIGGER_RE = re.compile(r"@(\w*)$")
_COMPONENT_TRIGGER_RE = re.compile(r"<x-([\w.-]*)$")


def line_at(text: str, line: int) -> str:
    lines = text.split("\n")
    if line < 0 or line >= len(lines):
        return ""
    return lines[line].rstrip("\r")


def detect_blade_trigger(line_prefix: str) -> BladeTrigger | None:
    """Recognise ``@word`` and ``<x-name`` at the end of *line_prefix*.

    These are not function calls, so callers check them before asking
    :meth:`ContextParser.get_context`.
    """
    m = _COMPONENT_TRIGGER_RE.search(line_prefix)
    if m:
        return BladeTrigger("component", m.group(1))
    m = _DIRECTIVE_TRIGGER_RE.search(line_prefix)
    if m:
        return BladeTrigger("directive", m.group(1))
    return None


def _is_unescaped_quote(line: str, index: int) -> bool:
    if line[index] not in QUOTES:
        return False
    backslashes = 0
    i = index - 1
    while i >= 0 and line[i] == "\\":
        backslashes += 1
        i -= 1
    return backslashes % 2 == 0


def _closing_quote(line: str, quote: str, start: int) -> int:
    for i in range(start, len(line)):
        if line[i] == quote and _is_unescaped_quote(line, i):
            return i
    return -1


class ContextParser:
    """Stateless per-call scan of the line up to the cursor."""

    def get_context(self, text: str, position: Position) -> FunctionCallContext | None:
        line_prefix = line_at(text, position.line)[: position.character]
        return self.context_for_line(line_prefix, position)

    def context_for_line(self, line_prefix: str, position: Position) -> FunctionCallContext | None:
        for pattern, has_class in _PATTERNS:
            m = pattern.search(line_prefix)
            if m is None:
                continue
            if has_class:
                class_name, function_name = m.group(1), m.group(2)
            else:
                class_name, function_name = None, m.group(1)
            prefix = m.group(m.lastindex or 0)
            start = len(line_prefix) - len(prefix)
            return FunctionCallContext(
                function_name=function_name,
                class_name=class_name,
                prefix=prefix,
                full_match=m.group(0),
                range=Range(
                    Position(position.line, start),
                    Position(position.line, len(line_prefix)),
                ),
            )
        return None

    def get_string_at_position(self, text: str, position: Position) -> FunctionCallContext | None:
        """Context for a cursor anywhere inside a complete quoted string.

        The prefix of the result is the whole string content and the range
        covers it from the opening to the closing quote (exclusive).
        """
        line = line_at(text, position.line)
        cursor = min(position.character, len(line))

        # The nearest quote may be an apostrophe inside a string of the other
        # style, so keep walking back until a quote with a matching close.
        opening = closing = -1
        for i in range(cursor - 1, -1, -1):
            if not _is_unescaped_quote(line, i):
                continue
            closing = _closing_quote(line, line[i], cursor)
            if closing != -1:
                opening = i
                break
        if opening == -1:
            return None

        start = opening + 1
        context = self.context_for_line(line[:start], Position(position.line, start))
        if context is None:
            return None

        return FunctionCallContext(
            function_name=context.function_name,
            class_name=context.class_name,
            prefix=line[start:closing],
            full_match=context.full_match,
            range=Range(Position(position.line, start), Position(position.line, closing)),
            parameter_index=context.parameter_index,
        )
