"""clientpack CLI entry point: Click group with subcommands."""

import logging

import click

from clientpack import __version__


@click.group()
@click.version_option(version=__version__, prog_name="clientpack")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v, -vv)")
def cli(verbose: int) -> None:
    """clientpack - bundle the web client into a firmware header."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


# Import and register subcommands
from clientpack.cli.build import build  # noqa: E402
from clientpack.cli.serve import serve  # noqa: E402
from clientpack.cli.settings import set_setting  # noqa: E402

cli.add_command(build)
cli.add_command(set_setting)
cli.add_command(serve)
