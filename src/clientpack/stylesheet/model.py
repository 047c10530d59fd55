"""Stylesheet model: a single property declaration and its source span."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StyleDeclaration:
    """A ``property: value`` pair found in a stylesheet.

    ``start`` and ``end`` delimit the value inside the stylesheet source so a
    rewritten value can be spliced back without touching any other byte.
    """

    property: str
    value: str
    start: int
    end: int

    @property
    def has_url(self) -> bool:
        return "url(" in self.value
