"""Base protocol for per-file source transforms."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class Transform(Protocol):
    """A per-file source rewrite applied by the bundler before linking.

    Returns the replacement text, or ``None`` to leave the source unchanged.
    """

    def transform(self, source: str, path: Path) -> str | None: ...
