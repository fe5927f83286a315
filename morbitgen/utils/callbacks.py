"""Typed callback protocols for progress and diagnostic reporting.

These Protocol classes provide type-safe callback signatures without
requiring runtime changes. Existing callables keep working via duck typing.
"""

from typing import Any, Protocol


class ItemProgressCallback(Protocol):
    """Callback for item-based progress (batch generation).

    Args:
        current: Current item index
        total: Total items to process
    """

    def __call__(self, current: int, total: int) -> None: ...


class DiagnosticCallback(Protocol):
    """Callback invoked for each soft failure recorded during generation.

    Args:
        event: The DiagnosticEvent that was recorded
    """

    def __call__(self, event: Any) -> None: ...
