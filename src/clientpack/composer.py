"""HTMLComposer: splice the built script into the HTML shell."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from clientpack.errors import StructuralError

logger = logging.getLogger(__name__)

SCRIPT_OPEN = "<script"
SCRIPT_CLOSE = "</script"

_SCRIPT_CLOSE_RE = re.compile(r"</script\s*>", re.IGNORECASE)


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start


class HTMLDocument:
    """HTML text plus the two structural edits made to it during a build.

    ``remove_script`` and ``inject_script`` each run at most once; replaying
    them on an already-composed document raises StructuralError.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.removed: Span | None = None
        self.injected: Span | None = None

    def __str__(self) -> str:
        return self.text

    # ------------------------------------------------------------------
    # Locating
    # ------------------------------------------------------------------

    def _line_offsets(self) -> list[int]:
        offsets = [0]
        for match in re.finditer("\n", self.text):
            offsets.append(match.end())
        return offsets

    def find_script(self, reference: str) -> Span:
        """Return the span of the one ``<script>`` element whose src contains *reference*."""
        soup = BeautifulSoup(self.text, "html.parser")
        matches = [
            tag
            for tag in soup.find_all("script")
            if reference in (tag.get("src") or "")
        ]
        if not matches:
            raise StructuralError(f"No <script> element references {reference!r}")
        if len(matches) > 1:
            raise StructuralError(
                f"Expected one <script> element referencing {reference!r}, found {len(matches)}"
            )

        tag = matches[0]
        if tag.sourceline is None or tag.sourcepos is None:
            raise StructuralError(f"Cannot locate the <script> element referencing {reference!r}")
        start = self._line_offsets()[tag.sourceline - 1] + tag.sourcepos
        if self.text[start : start + len(SCRIPT_OPEN)].lower() != SCRIPT_OPEN:
            raise StructuralError(f"<script> element referencing {reference!r} not found at offset {start}")

        close = _SCRIPT_CLOSE_RE.search(self.text, start)
        if close is None:
            raise StructuralError(f"<script> element referencing {reference!r} is never closed")
        return Span(start, close.end())

    def find_marker(self, marker: str) -> int:
        count = self.text.count(marker)
        if count != 1:
            raise StructuralError(f"Expected exactly one injection marker {marker!r}, found {count}")
        return self.text.index(marker)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def remove_script(self, reference: str) -> Span:
        """Remove the module-loading ``<script>`` element for *reference*."""
        if self.removed is not None:
            raise StructuralError("The entry <script> element has already been removed")
        span = self.find_script(reference)
        self.text = self.text[: span.start] + self.text[span.end :]
        self.removed = span
        logger.debug("Removed %d chars of <script> at offset %d", len(span), span.start)
        return span

    def inject_script(self, code: str, marker: str) -> Span:
        """Insert ``<script>code</script>`` immediately before *marker*, which is kept."""
        if self.injected is not None:
            raise StructuralError("A script has already been injected")
        if SCRIPT_CLOSE in code.lower():
            raise StructuralError("Inline script contains '</script' and would close its element early")
        index = self.find_marker(marker)
        element = f"<script>{code}</script>"
        self.text = self.text[:index] + element + self.text[index:]
        self.injected = Span(index, index + len(element))
        logger.debug("Injected %d chars of <script> at offset %d", len(element), index)
        return self.injected


def compose(shell: str, script: str, reference: str, marker: str) -> str:
    """Replace the shell's module ``<script>`` with an inline one at *marker*."""
    document = HTMLDocument(shell)
    document.remove_script(reference)
    document.inject_script(script, marker)
    return document.text
