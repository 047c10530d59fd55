"""BuildPipeline: bundle, minify, compose, minify, emit."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from clientpack.bundler import ModuleBundler
from clientpack import composer
from clientpack.config import BuildConfig
from clientpack.errors import ReadError
from clientpack.header import HeaderEmitter
from clientpack.minify import HTMLMinifier, JSMinifier
from clientpack.model.bundle import BundleOutput
from clientpack.model.diagnostic import Diagnostic
from clientpack.transforms import build_transforms
from clientpack.transforms.base import Transform

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Everything one build produced."""

    bundle: BundleOutput
    script: str
    html: str
    written: list[Path] = field(default_factory=list)

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.bundle.diagnostics


class BuildPipeline:
    """Run the packaging stages strictly in sequence.

    Any failure propagates immediately; output files are written only after
    every earlier stage has succeeded.
    """

    def __init__(
        self,
        config: BuildConfig,
        transforms: Sequence[Transform] | None = None,
        on_diagnostic: Callable[[Diagnostic], None] | None = None,
        progress: Callable[[str], None] | None = None,
    ) -> None:
        self.config = config
        if transforms is None:
            transforms = build_transforms(max_workers=config.max_workers)
        self.bundler = ModuleBundler(transforms, on_diagnostic=on_diagnostic)
        self.js_minifier = JSMinifier()
        self.html_minifier = HTMLMinifier()
        self.emitter = HeaderEmitter(
            config.header_output_path,
            config.debug_output_path,
            constant_name=config.constant_name,
        )
        self._progress = progress or (lambda message: logger.info("%s", message))

    def read_shell(self) -> str:
        path = self.config.shell_path
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ReadError(f"Cannot read HTML shell {path}: {exc}", path=path, cause=exc) from exc

    def compose(self, shell: str, script: str) -> str:
        return composer.compose(shell, script, self.config.script_reference, self.config.inject_marker)

    def build(self) -> BuildResult:
        """Produce the minified document without writing anything."""
        shell = self.read_shell()

        self._progress("Building client...")
        bundle = self.bundler.bundle(self.config.entry_path)

        self._progress("Minifying js...")
        script = self.js_minifier.minify(bundle.code)

        composed = self.compose(shell, script)

        self._progress("Minifying html...")
        html = self.html_minifier.minify(composed)
        return BuildResult(bundle=bundle, script=script, html=html)

    def run(self) -> BuildResult:
        result = self.build()
        self._progress(f"Writing {self.config.debug_output_path.name} and {self.config.header_output_path.name}")
        header_path, debug_path = self.emitter.emit(result.html)
        result.written = [debug_path, header_path]
        self._progress("Done!")
        return result
