"""Thin wrappers around the third-party JS and HTML minifiers."""
from __future__ import annotations

import logging

import jsmin
import minify_html

from clientpack.bundler.lexer import tokenize
from clientpack.errors import TransformError

logger = logging.getLogger(__name__)


class JSMinifier:
    """Minify JavaScript with :mod:`jsmin`.

    The source is lexed first; unterminated comments, strings, templates or
    regular expressions and unbalanced brackets raise :class:`TransformError`.
    """

    def __init__(self, quote_chars: str = "'\"`") -> None:
        self.quote_chars = quote_chars

    def minify(self, source: str) -> str:
        tokenize(source, "jsmin")
        result = jsmin.jsmin(source, quote_chars=self.quote_chars)
        logger.info("Minified JS: %d -> %d chars", len(source), len(result))
        return result


class HTMLMinifier:
    """Minify a full HTML document with :mod:`minify_html`.

    Inline scripts are left alone (they are minified upstream); inline CSS is
    minified.
    """

    def __init__(self, minify_css: bool = True, minify_js: bool = False) -> None:
        self.minify_css = minify_css
        self.minify_js = minify_js

    def minify(self, html: str) -> str:
        try:
            result = minify_html.minify(html, minify_css=self.minify_css, minify_js=self.minify_js)
        except Exception as exc:
            raise TransformError(f"HTML minification failed: {exc}", source="minify_html", cause=exc) from exc
        logger.info("Minified HTML: %d -> %d chars", len(html), len(result))
        return result
