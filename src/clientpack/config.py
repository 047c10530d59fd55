from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class BuildConfig:
    """Paths and constants for one build.

    Every relative path is resolved against ``root``; the process working
    directory is never consulted.
    """

    root: Path
    entry: str = "src/main.js"
    shell: str = "src/index.html"
    debug_output: str = "dist.html"
    header_output: str = "../Arduino/client.h"
    inject_marker: str = "<!--inline main.js inject position-->"
    entry_reference: str = ""  # derived from entry/shell when empty
    constant_name: str = "HTML"
    max_workers: int = 8

    def resolve(self, relative: str) -> Path:
        """Return ``relative`` as an absolute, normalized path under ``root``."""
        return Path(os.path.normpath(Path(self.root).absolute() / relative))

    @property
    def entry_path(self) -> Path:
        return self.resolve(self.entry)

    @property
    def shell_path(self) -> Path:
        return self.resolve(self.shell)

    @property
    def debug_output_path(self) -> Path:
        return self.resolve(self.debug_output)

    @property
    def header_output_path(self) -> Path:
        return self.resolve(self.header_output)

    @property
    def script_reference(self) -> str:
        """The ``src`` the shell uses for the entry module, e.g. ``./main.js``."""
        if self.entry_reference:
            return self.entry_reference
        rel = os.path.relpath(self.entry_path, self.shell_path.parent)
        posix = PurePosixPath(Path(rel).as_posix())
        if posix.parts and posix.parts[0] == "..":
            return str(posix)
        return f"./{posix}"
