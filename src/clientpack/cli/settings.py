"""CLI command: clientpack set -- change a setting on a running device."""

from __future__ import annotations

import sys

import click

from clientpack.errors import NetworkError
from clientpack.settings import SettingsClient, parse_setting_value


@click.command("set")
@click.argument("name")
@click.argument("value")
@click.option("--device", default="http://192.168.4.1", show_default=True, help="Device base URL")
@click.option("--timeout", default=5.0, type=float, show_default=True, help="Request timeout in seconds")
def set_setting(name: str, value: str, device: str, timeout: float) -> None:
    """Change setting NAME to VALUE (true/false or a number) on the device."""
    try:
        parsed = parse_setting_value(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="VALUE") from exc

    with SettingsClient(device, timeout=timeout) as client:
        try:
            client.change(name, parsed)
        except NetworkError as exc:
            click.echo(f"Error: could not change {name!r}: {exc}", err=True)
            sys.exit(1)
    click.echo(f"Changed {name!r} to {value}")
