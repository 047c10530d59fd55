"""Asset inlining transform: replaces stylesheet ``url(...)`` references with data URIs."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from clientpack.errors import ReadError
from clientpack.model.asset import AssetReference
from clientpack.stylesheet import StyleDeclaration, parse_declarations, rewrite_declarations

logger = logging.getLogger(__name__)

# The first url(...) in a value; quotes around the reference are optional.
_URL_RE = re.compile(r"""url\(\s*(["']?)(?P<ref>[^"')]*)\1\s*\)""")


def inline_asset_url(value: str, declared_in: Path) -> str:
    """Rewrite the first ``url(...)`` of a declaration value as a data URI.

    *declared_in* is the absolute path of the stylesheet the value comes from;
    the reference resolves against its directory, never the build root.
    Values without a ``url(...)``, or whose reference is already a ``data:``
    URI, are returned unchanged.
    """
    match = _URL_RE.search(value)
    if not match or not match.group("ref"):
        return value
    raw = match.group("ref").strip()
    if raw.startswith("data:"):
        return value

    ref = AssetReference.resolve(raw, declared_in)
    try:
        data = ref.path.read_bytes()
    except OSError as exc:
        raise ReadError(
            f"Cannot read asset {raw!r} referenced from {declared_in}: {exc.strerror or exc}",
            path=ref.path,
            cause=exc,
        ) from exc
    logger.debug("Inlined %s (%s, %d bytes)", ref.path, ref.media_type, len(data))
    return f"{value[: match.start()]}url({ref.data_uri(data)}){value[match.end():]}"


class InlineAssetsTransform:
    """Inline every local asset referenced by a ``.css`` file.

    Declarations are read concurrently on a thread pool; all reads settle
    before the stylesheet is rewritten, so the result is never partial. The
    first failure (in source order) is re-raised.
    """

    extensions = (".css",)

    def __init__(self, max_workers: int = 8) -> None:
        self.max_workers = max_workers

    def transform(self, source: str, path: Path) -> str | None:
        if Path(path).suffix.lower() not in self.extensions:
            return None

        candidates = [d for d in parse_declarations(source) if d.has_url]
        if not candidates:
            return None

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(inline_asset_url, d.value, Path(path)) for d in candidates]
            wait(futures)

        rewrites: list[tuple[StyleDeclaration, str]] = []
        for decl, future in zip(candidates, futures):
            rewrites.append((decl, future.result()))
        logger.debug("Processed %d url() declaration(s) in %s", len(rewrites), path)
        return rewrite_declarations(source, rewrites)
