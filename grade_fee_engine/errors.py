from __future__ import annotations


class GradeFeeError(ValueError):
    """Base error for the grading / fee engines."""


class InvalidInput(GradeFeeError):
    """A caller passed a value the engines cannot interpret (non-numeric metric, unknown tier, ...)."""

    def __init__(self, field: str, value: object, message: str = ""):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid value for '{field}': {value!r}")


class TableError(GradeFeeError):
    """A lookup-table definition file is missing keys or breaks a table invariant."""


__all__ = ["GradeFeeError", "InvalidInput", "TableError"]
