"""Larasense: Laravel runtime metadata index for editor tooling."""

__version__ = "0.1.0"
