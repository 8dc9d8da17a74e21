"""
Exception taxonomy for the conquest engine.

Rejected moves are not exceptions; they are reported through MoveReport.
"""


class ConquestError(Exception):
    """Base class for engine errors."""


class ConfigurationError(ConquestError, ValueError):
    """Invalid catalog, options or saved layout. The game must not start."""


class InvariantViolation(ConquestError, RuntimeError):
    """Internal consistency failure that should be unreachable."""
