from __future__ import annotations

import typer

from .config import Settings
from .demo import run_demo
from .logging import configure_logging
from .naming import derive_method_name

app = typer.Typer(help="In-process publish/subscribe dispatcher utility")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, help="Logging level, e.g. DEBUG"),
) -> None:
    configure_logging(log_level.upper() if log_level else None)


@app.command()
def derive(type_names: list[str] = typer.Argument(..., help="Event type identifiers")) -> None:
    """Print the handler method name for each event type."""
    for name in type_names:
        typer.echo(f"{name} -> {derive_method_name(name)}")


@app.command()
def settings() -> None:
    """Print the effective settings."""
    typer.echo(Settings().model_dump_json(indent=2))


@app.command()
def demo(
    failure: bool = typer.Option(False, "--failure", help="Broadcast the failure events"),
) -> None:
    """Run a short scripted exchange between a publisher and two listeners."""
    for line in run_demo(succeed=not failure):
        typer.echo(line)


if __name__ == "__main__":  # pragma: no cover
    app()
