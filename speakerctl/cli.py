"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer

from speakerctl.core.config import load_config
from speakerctl.core.errors import SpeakerctlError
from speakerctl.core.model import Switch
from speakerctl.core.service import SpeakerService

app = typer.Typer(help="Sonos Night Sound / Speech Enhancement control with filtered discovery")

_STATE: dict[str, Path | None] = {"config": None}
_VALUES = {"on": True, "off": False}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log discovery and control details"),
    config: Path | None = typer.Option(None, "--config", help="Path to a YAML/JSON config file"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.CRITICAL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _STATE["config"] = config


def _build_service() -> SpeakerService:
    return SpeakerService(config=load_config(_STATE["config"]))


def _on_off(value: bool) -> str:
    return "on" if value else "off"


@app.command("discover")
def discover() -> None:
    """Run one discovery pass and register or update matching accessories."""
    try:
        service = _build_service()
        report = asyncio.run(service.run_discovery())
        for warning in report.warnings:
            typer.echo(f"Warning: {warning}", err=True)
        if report.skipped:
            return

        for record in report.registered:
            typer.echo(f"Added {record.display_name} ({record.device.host}) {record.identity}")
        for record in report.updated:
            typer.echo(f"Updated {record.display_name} ({record.device.host}) {record.identity}")
        for device in report.rejected:
            typer.echo(f"Ignored {device.display_name} ({device.host})")
        for failure in report.failures:
            typer.echo(f"Warning: {failure}", err=True)
        if not (report.registered or report.updated or report.rejected or report.failures):
            typer.echo("No Sonos devices found")
    except SpeakerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("accessories")
def list_accessories() -> None:
    """List registered accessories and their last known switch states."""
    try:
        service = _build_service()
        accessories = service.list_accessories()
        if not accessories:
            typer.echo("No accessories registered")
            return

        for accessory in accessories:
            typer.echo(f"{accessory.identity} {accessory.display_name} ({accessory.record.device.host})")
            for switch in Switch:
                typer.echo(f"  {switch.value}: {_on_off(accessory.get_switch(switch))}")
    except SpeakerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("get")
def get_switch(
    switch: Switch,
    accessory: str | None = typer.Option(None, "--accessory", help="Identity prefix, host, or partial name"),
) -> None:
    """Print the last value set for SWITCH. The device itself is not queried."""
    try:
        service = _build_service()
        result = service.get_switch(switch, accessory_hint=accessory)
        typer.echo(f"{result.record.display_name} {result.switch.label}: {_on_off(result.value)}")
    except SpeakerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("set")
def set_switch(
    switch: Switch,
    value: str,
    accessory: str | None = typer.Option(None, "--accessory", help="Identity prefix, host, or partial name"),
) -> None:
    """Turn SWITCH on or off on a registered accessory."""
    desired = _VALUES.get(value.lower())
    if desired is None:
        typer.echo(f"Error: Value must be 'on' or 'off', got '{value}'", err=True)
        raise typer.Exit(code=1)

    try:
        service = _build_service()
        result = asyncio.run(service.set_switch(switch, desired, accessory_hint=accessory))
        typer.echo(
            f"Set {result.switch.value}={_on_off(result.value)} on "
            f"{result.record.display_name} ({result.record.device.host})"
        )
    except SpeakerctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
