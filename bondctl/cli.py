"""Typer CLI entrypoint."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import typer

from bondctl.api import Client
from bondctl.core.config import config_path, load_settings
from bondctl.core.errors import BondctlError
from bondctl.core.model import Bonded, Error, Failed, NotImplementedResponse, Success

app = typer.Typer(help="Request Bluetooth bonding from the host Bluetooth stack")


@app.callback()
def main(
    ctx: typer.Context,
    backend: str | None = typer.Option(None, "--backend", help="bluetoothctl or ble"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds to wait on the host stack"),
    surface_faults: bool | None = typer.Option(
        None,
        "--surface-faults/--collapse-faults",
        help="Report adapter faults as BOND_FAILED errors instead of false",
    ),
    config: Path | None = typer.Option(None, "--config", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to stderr"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
    ctx.obj = {
        "backend": backend,
        "timeout_s": timeout,
        "surface_faults": surface_faults,
        "config": config,
    }


def _build_client(ctx: typer.Context) -> Client:
    opts = dict(ctx.obj or {})
    path = opts.pop("config", None)
    settings = load_settings(path, **opts)
    return Client(settings=settings)


def _parse_args(pairs: list[str]) -> dict[str, str | None]:
    arguments: dict[str, str | None] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--arg")
        arguments[key] = value if value != "null" else None
    return arguments


@app.command("bond")
def bond(ctx: typer.Context, address: str) -> None:
    """Request bonding with the device at ADDRESS."""
    try:
        client = _build_client(ctx)
        result = client.create_bond(address)
    except BondctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    if isinstance(result, Bonded):
        typer.echo(f"Bond request sent to {result.address}")
        return
    if isinstance(result, Failed):
        typer.echo(f"Error: bonding {result.address} failed: {result.reason}", err=True)
    else:
        typer.echo(f"Bond request not initiated for {result.address} (already bonded or rejected)")
    raise typer.Exit(code=1)


@app.command("call")
def call(
    ctx: typer.Context,
    method: str,
    arg: list[str] = typer.Option([], "--arg", help="Argument as key=value; value 'null' sends null"),
) -> None:
    """Invoke a channel METHOD once and print the response as JSON."""
    arguments = _parse_args(arg)
    try:
        client = _build_client(ctx)
    except BondctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    response = client.call(method, arguments)
    typer.echo(json.dumps(response.to_dict()))
    if isinstance(response, (Error, NotImplementedResponse)):
        raise typer.Exit(code=1)
    if isinstance(response, Success) and response.value is not True:
        raise typer.Exit(code=1)


@app.command("serve")
def serve(ctx: typer.Context) -> None:
    """Answer JSON requests read line by line from stdin, one response per line."""
    try:
        client = _build_client(ctx)
    except BondctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    for line in sys.stdin:
        if not line.strip():
            continue
        typer.echo(json.dumps(client.call_json(line)))


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Print the effective settings."""
    opts = dict(ctx.obj or {})
    path = opts.pop("config", None) or config_path()
    try:
        settings = load_settings(path, **opts)
    except BondctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"config: {path}{'' if path.exists() else ' (not found, using defaults)'}")
    typer.echo(f"backend: {settings.backend}")
    typer.echo(f"controller: {settings.controller or '<default>'}")
    typer.echo(f"timeout_s: {settings.timeout_s}")
    typer.echo(f"surface_faults: {str(settings.surface_faults).lower()}")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
