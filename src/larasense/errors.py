"""Fault taxonomy shared by the bridge, repositories and CLI."""

from __future__ import annotations


class LarasenseError(Exception):
    """Base class for every fault raised inside larasense."""


class ProcessFault(LarasenseError):
    """Subprocess failed: missing executable, non-zero exit, timeout or output overflow."""


class RuntimeFault(LarasenseError):
    """The Laravel application raised inside an executed PHP fragment."""


class ParseFault(LarasenseError):
    """Structured output did not match the expected shape."""


class FilesystemFault(LarasenseError):
    """An expected directory or file is missing or unreadable."""


class ConfigError(LarasenseError):
    """``.larasense/config.yml`` holds a value of the wrong type."""
