"""Pure utility helpers with no dependencies on other morbitgen modules."""

from .callbacks import DiagnosticCallback, ItemProgressCallback

__all__ = ["DiagnosticCallback", "ItemProgressCallback"]
