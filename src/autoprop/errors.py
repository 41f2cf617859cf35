"""
Exception hierarchy raised by generated accessors.

Each error also derives from the builtin a plain Python caller would expect,
so `hasattr()` keeps working for unknown accessors and a rejected value is
still a `ValueError`.
"""


class AutoPropError(Exception):
    """Base class for every error raised by autoprop."""


class UnknownMethod(AutoPropError, AttributeError):
    """The accessor name does not parse, or is not granted to the property."""

    def __init__(self, name: str = "", detail: str | None = None):
        message = f"Method {name} does not exist." if name else ""
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.name = name


class InvalidValue(AutoPropError, ValueError):
    """The constraint validator rejected a value; nothing was written."""


class ArityMismatch(AutoPropError, TypeError):
    """An accessor or constructor was called with the wrong number of arguments."""


class DefinitionError(AutoPropError, TypeError):
    """Property declarations on a record type are inconsistent."""
