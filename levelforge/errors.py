"""Exceptions raised by the level generation engine.

Only configuration problems are fatal. Placement shortfalls and validation
concerns are reported through return values, never raised.
"""

from __future__ import annotations


class LevelForgeError(Exception):
    """Base class for all errors raised by levelforge."""


class ConfigError(LevelForgeError, ValueError):
    """A level configuration cannot be used to allocate a level.

    Raised before any layer is allocated when the requested dimensions
    or tile size are not positive integers.
    """


class ExportFormatError(LevelForgeError, ValueError):
    """An export document or export format name is not supported."""
