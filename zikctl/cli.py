"""Typer CLI entrypoint."""

from __future__ import annotations

import logging

import typer

from zikctl.core.errors import ZikctlError
from zikctl.core.facets import FACETS, read_facet, resolve_facet, write_facet
from zikctl.core.service import ZikService

app = typer.Typer(help="Parrot Zik headset control over Bluetooth RFCOMM")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log protocol traffic"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _build_service() -> ZikService:
    service = ZikService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command("devices")
def list_devices() -> None:
    """List currently connected Bluetooth devices and whether they look like a headset."""
    try:
        service = _build_service()
        devices = service.list_devices()
        if not devices:
            typer.echo("No Bluetooth devices found")
            return

        for device in devices:
            matched = "headset" if service.match_score(device) > 0 else "<no-match>"
            typer.echo(f"{device.mac} {device.name} -> {matched}")
    except ZikctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("facets")
def list_facets() -> None:
    """List facets, whether they can be set, and their accepted values."""
    for name, facet in sorted(FACETS.items()):
        if not facet.writable:
            typer.echo(f"{name} (read-only)")
        elif facet.values:
            typer.echo(f"{name}: {', '.join(facet.values)}")
        else:
            typer.echo(f"{name}: <any>")


@app.command("info")
def show_info(
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
) -> None:
    """Read every facet from the headset."""
    try:
        service = _build_service()
        with service.connect(device, sync=False) as zik:
            typer.echo(f"Target: {zik.address} ({zik.name})")
            kinds = tuple(dict.fromkeys(facet.kind for facet in FACETS.values()))
            zik.sync_all(kinds)
            for name, facet in FACETS.items():
                typer.echo(f"  {name}: {facet.render(zik)}")
    except ZikctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("get")
def get_facet(
    facet: str,
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
) -> None:
    """Read one facet from the headset."""
    try:
        resolve_facet(facet)
        service = _build_service()
        with service.connect(device, sync=False) as zik:
            typer.echo(f"{facet}: {read_facet(zik, facet)}")
    except ZikctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("set")
def set_facet(
    facet: str,
    value: str | None = typer.Argument(None),
    device: str | None = typer.Option(None, "--device", help="MAC or partial name"),
) -> None:
    """Set a facet on the headset and print the value read back.

    If VALUE is omitted, prints the accepted values for FACET.
    """
    try:
        spec = resolve_facet(facet)
        if value is None:
            if not spec.writable:
                typer.echo(f"Facet '{facet}' is read-only")
                return
            values = ", ".join(spec.values) if spec.values else "<any>"
            typer.echo(f"Available values for '{facet}': {values}")
            return
        service = _build_service()
        with service.connect(device, sync=False) as zik:
            zik.sync(spec.kind)
            result = write_facet(zik, facet, value)
            typer.echo(f"Set {facet}={value} on {zik.address}; now {result}")
    except ZikctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
