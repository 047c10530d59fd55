"""Hand-written declaration scanner for plain CSS.

Only declarations are located; selectors, at-rules and nesting are skipped
over rather than understood. Example:
    .logo { background: no-repeat url("img/logo.svg") center; }
yields one declaration, ``background``, whose value span covers
``no-repeat url("img/logo.svg") center``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from clientpack.stylesheet.model import StyleDeclaration

__all__ = ["parse_declarations", "rewrite_declarations"]

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

# A declaration opens a block or follows the previous declaration.
_DECL_RE = re.compile(
    r"""
    (?:^|(?<=[{;]))
    \s*
    (?P<property>-{0,2}[a-zA-Z_][a-zA-Z0-9_-]*)     # property name
    \s*:\s*                                          # colon separator
    (?P<value>
        (?:url\([^)]*\)|"[^"]*"|'[^']*'|[^;{}"'])+?  # value, url()/strings kept whole
    )
    \s*
    (?=[;}]|$)                                       # terminated by ; or }
    """,
    re.VERBOSE,
)


def _mask_comments(source: str) -> str:
    """Blank out comments while keeping every offset stable."""
    return _COMMENT_RE.sub(lambda m: " " * len(m.group(0)), source)


def parse_declarations(source: str) -> list[StyleDeclaration]:
    """Return every declaration in *source* in source order."""
    masked = _mask_comments(source)
    declarations: list[StyleDeclaration] = []
    for match in _DECL_RE.finditer(masked):
        start, end = match.span("value")
        declarations.append(
            StyleDeclaration(
                property=match.group("property"),
                value=source[start:end],
                start=start,
                end=end,
            )
        )
    return declarations


def rewrite_declarations(
    source: str, rewrites: Iterable[tuple[StyleDeclaration, str]]
) -> str:
    """Splice new values into *source* for each ``(declaration, value)`` pair."""
    result = source
    for decl, value in sorted(rewrites, key=lambda item: item[0].start, reverse=True):
        if value == decl.value:
            continue
        result = result[: decl.start] + value + result[decl.end :]
    return result
