"""Structured sink for soft generation failures.

Generation never raises for things like an unsatisfiable preset or a name in
``order`` with no attribute. Those are recorded here as DiagnosticEvents,
logged, and optionally forwarded to a callback, so callers and tests can see
them without scraping console output.
"""

import logging
from enum import Enum

from pydantic import BaseModel

from ..utils.callbacks import DiagnosticCallback

logger = logging.getLogger(__name__)


class DiagnosticKind(str, Enum):
    UNRESOLVED_REQUIREMENT = "unresolved_requirement"
    MISSING_ATTRIBUTE = "missing_attribute"
    MISSING_REFERENCE = "missing_reference"
    REFERENCE_DEPTH_EXCEEDED = "reference_depth_exceeded"


class DiagnosticEvent(BaseModel):
    kind: DiagnosticKind
    message: str
    attribute: str | None = None
    requirement: str | None = None


class Diagnostics:
    """Collects DiagnosticEvents for one or more generation runs."""

    def __init__(self, callback: DiagnosticCallback | None = None):
        self.events: list[DiagnosticEvent] = []
        self._callback = callback

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    def of_kind(self, kind: DiagnosticKind) -> list[DiagnosticEvent]:
        return [event for event in self.events if event.kind == kind]

    def record(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        attribute: str | None = None,
        requirement: str | None = None,
    ) -> DiagnosticEvent:
        event = DiagnosticEvent(
            kind=kind, message=message, attribute=attribute, requirement=requirement
        )
        self.events.append(event)
        logger.warning(message)
        if self._callback is not None:
            self._callback(event)
        return event

    def unresolved_requirement(self, requirement) -> DiagnosticEvent:
        return self.record(
            DiagnosticKind.UNRESOLVED_REQUIREMENT,
            f"Unable to find valid possibility for requirement '{requirement}'",
            requirement=str(requirement),
        )

    def missing_attribute(self, name: str) -> DiagnosticEvent:
        return self.record(
            DiagnosticKind.MISSING_ATTRIBUTE,
            f"Attribute '{name}' in order not found",
            attribute=name,
        )

    def missing_reference(self, name: str, target: str) -> DiagnosticEvent:
        return self.record(
            DiagnosticKind.MISSING_REFERENCE,
            f"Attribute '{name}' reuses unknown attribute '{target}'",
            attribute=name,
        )

    def reference_depth_exceeded(self, name: str, depth: int) -> DiagnosticEvent:
        return self.record(
            DiagnosticKind.REFERENCE_DEPTH_EXCEEDED,
            f"Attribute '{name}' exceeded reference depth {depth}; possible reuse cycle",
            attribute=name,
        )
