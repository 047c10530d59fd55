"""Diagnostic model: structured findings reported while bundling."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Severity level for a diagnostic message. Circular dependencies are ``INFO``."""

    WARNING = "WARNING"
    INFO = "INFO"


CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
MISSING_EXPORT = "MISSING_EXPORT"
UNKNOWN_IMPORT_TYPE = "UNKNOWN_IMPORT_TYPE"


@dataclass(frozen=True)
class Diagnostic:
    """A single bundler finding.

    Attributes:
        code: Identifier for the kind of finding, e.g. ``CIRCULAR_DEPENDENCY``.
        severity: How serious the issue is.
        message: Human-readable description of the problem.
        module_id: The module involved, if applicable.
    """

    code: str
    severity: Severity
    message: str
    module_id: str | None = None

    @property
    def is_circular(self) -> bool:
        return self.code == CIRCULAR_DEPENDENCY

    def __str__(self) -> str:
        location = f" [{self.module_id}]" if self.module_id else ""
        return f"{self.severity.value} {self.code}{location}: {self.message}"
