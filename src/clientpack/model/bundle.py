"""Bundle model: linked modules and the emitted code unit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from clientpack.model.diagnostic import Diagnostic, Severity


class ModuleKind(Enum):
    JAVASCRIPT = "js"
    CSS = "css"
    JSON = "json"


@dataclass
class Module:
    """One file of the import graph."""

    id: str
    path: Path
    kind: ModuleKind
    source: str = ""
    dependencies: list[str] = field(default_factory=list)
    exports: set[str] = field(default_factory=set)
    star_exports: bool = False

    def provides(self, name: str) -> bool:
        """Return True if *name* may be imported from this module."""
        return self.star_exports or name in self.exports


@dataclass
class BundleOutput:
    """The result of bundling an entry module."""

    code: str
    modules: list[Module] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def module_ids(self) -> list[str]:
        return [m.id for m in self.modules]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]
