"""quartereval CLI: Typer application."""
from __future__ import annotations

import typer

from quartereval import __version__
from quartereval.cli.evaluate_cmd import confusion_app, evaluate_app

app = typer.Typer(
    name="quartereval",
    help="quartereval: per-quarter evaluation of classifier predictions.",
    add_completion=False,
    no_args_is_help=True,
)

app.add_typer(evaluate_app, name="evaluate")
app.add_typer(confusion_app, name="confusion")


@app.command()
def version() -> None:
    """Print the installed quartereval version."""
    typer.echo(f"quartereval {__version__}")
