"""HeaderEmitter: write the firmware header and the debug HTML copy."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

HEADER_TEMPLATE = """\
// This file is automatically generated by clientpack.
// To update it, run `clientpack build`.

const String {name} = "{content}";
"""

_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        "\n": "\\n",
        "\r": "\\r",
    }
)


def escape_string_literal(text: str) -> str:
    """Escape *text* for a double-quoted C/C++ string literal."""
    return text.translate(_ESCAPES)


def render_header(html: str, name: str = "HTML") -> str:
    return HEADER_TEMPLATE.format(name=name, content=escape_string_literal(html))


def write_atomic(path: Path, text: str) -> None:
    """Replace *path* with *text* so readers never observe a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(text)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class HeaderEmitter:
    """Write the minified HTML as a header constant plus a raw debug copy."""

    def __init__(self, header_path: Path, debug_path: Path, constant_name: str = "HTML") -> None:
        self.header_path = Path(header_path)
        self.debug_path = Path(debug_path)
        self.constant_name = constant_name

    def emit(self, html: str) -> tuple[Path, Path]:
        header = render_header(html, self.constant_name)
        logger.info("Writing %s", self.debug_path)
        write_atomic(self.debug_path, html)
        logger.info("Writing %s", self.header_path)
        write_atomic(self.header_path, header)
        return self.header_path, self.debug_path
