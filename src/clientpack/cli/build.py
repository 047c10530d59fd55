"""CLI command: clientpack build -- package the client into a header file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from clientpack.config import BuildConfig
from clientpack.errors import ClientpackError
from clientpack.pipeline import BuildPipeline


@click.command()
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    help="Directory all other paths are relative to",
)
@click.option("--entry", default=BuildConfig.entry, show_default=True, help="Entry JS module")
@click.option("--shell", default=BuildConfig.shell, show_default=True, help="HTML shell")
@click.option("--dist", "debug_output", default=BuildConfig.debug_output, show_default=True, help="Debug HTML output")
@click.option("--header", "header_output", default=BuildConfig.header_output, show_default=True, help="Header file output")
def build(root: Path, entry: str, shell: str, debug_output: str, header_output: str) -> None:
    """Bundle, minify and inline the web client, then write the header file.

    Exits with code 0 on success and 1 if any stage fails; no output file
    is written by a failed build.
    """
    config = BuildConfig(
        root=root.absolute(),
        entry=entry,
        shell=shell,
        debug_output=debug_output,
        header_output=header_output,
    )
    pipeline = BuildPipeline(config, progress=click.echo)
    try:
        result = pipeline.run()
    except ClientpackError as exc:
        click.echo(f"Build failed: {exc}", err=True)
        sys.exit(1)

    warnings = result.bundle.warnings
    if warnings:
        click.echo(f"{len(warnings)} bundler warning(s)", err=True)
    click.echo(f"Modules: {len(result.bundle.modules)}, HTML: {len(result.html)} chars")
