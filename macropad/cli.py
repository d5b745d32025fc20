"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from macropad.core.actions import Action, Combination, EnterText, KeySequence, Shell
from macropad.core.errors import MacropadError
from macropad.core.service import MacroPadService

app = typer.Typer(help="Turn MIDI controller events into keyboard and shell macros")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _describe_action(action: Action) -> str:
    if isinstance(action, KeySequence):
        return f"key_sequence {action.sequence!r} x{action.count}"
    if isinstance(action, EnterText):
        return f"enter_text {action.text!r} x{action.count}"
    if isinstance(action, Shell):
        return f"shell {' '.join([action.command, *(action.args or ())])}"
    if isinstance(action, Combination):
        return "combination [" + "; ".join(_describe_action(a) for a in action.actions) + "]"
    return repr(action)


@app.command("list-ports")
def list_ports() -> None:
    """List available MIDI input ports."""
    try:
        service = MacroPadService()
        ports = service.list_ports()
        if not ports:
            typer.echo("No MIDI input ports found")
            return
        typer.echo("Available MIDI ports:")
        for port in ports:
            typer.echo(f"  {port}")
    except MacropadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("check")
def check_config(
    config: Path | None = typer.Argument(None, help="Configuration file (defaults to the XDG location)"),
) -> None:
    """Load and resolve a configuration file, then list its macros in evaluation order."""
    try:
        service = MacroPadService()
        loaded = service.load(config)
        typer.echo(f"{len(loaded.macros)} macro(s) loaded")
        for index, macro in enumerate(loaded.macros, start=1):
            typer.echo(f"{index}. {macro.name or '<unnamed>'}")
            for action in macro.actions:
                typer.echo(f"     {_describe_action(action)}")
    except MacropadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("listen")
def listen(
    port: str | None = typer.Argument(None, help="Substring of the MIDI port name to open"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
) -> None:
    """Listen for MIDI events and run matching macros until the stop event arrives."""
    try:
        service = MacroPadService()
        loaded = service.load(config)
        summary = service.listen(loaded, port_pattern=port)
        typer.echo(
            f"Stopped listening on {summary.port}: "
            f"{summary.events_seen} event(s), {summary.macros_fired} macro(s) run"
        )
    except MacropadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        typer.echo("Interrupted", err=True)
        raise typer.Exit(code=130) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
