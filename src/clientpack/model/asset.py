"""Asset references found in stylesheets and their data-URI encoding."""
from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MEDIA_TYPE = "text/plain"

# Extensions whose type must not depend on the platform's mimetypes table.
_FIXED_MEDIA_TYPES = {
    ".svg": "image/svg+xml",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}


def infer_media_type(path: str | Path) -> str:
    """Guess the media type for an asset path, defaulting to ``text/plain``."""
    suffix = Path(str(path)).suffix.lower()
    if suffix in _FIXED_MEDIA_TYPES:
        return _FIXED_MEDIA_TYPES[suffix]
    mime, _ = mimetypes.guess_type(str(path))
    return mime or DEFAULT_MEDIA_TYPE


@dataclass(frozen=True)
class AssetReference:
    """A ``url(...)`` target resolved against the stylesheet that declares it."""

    raw: str
    path: Path

    @classmethod
    def resolve(cls, raw: str, declared_in: Path) -> AssetReference:
        # Query strings and fragments (font-face hacks) are not part of the file name.
        target = raw.split("?", 1)[0].split("#", 1)[0]
        return cls(raw=raw, path=(Path(declared_in).parent / target).resolve())

    @property
    def media_type(self) -> str:
        return infer_media_type(self.path)

    def data_uri(self, data: bytes) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"
