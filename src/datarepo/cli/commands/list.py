"""List command for CLI."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from datarepo.cli.formatting import echo_error, format_partitioning
from datarepo.cli.main import app, load_repository
from datarepo.core.exceptions import RepositoryError


@app.command(name="list")
def list_datasets(
    ctx: typer.Context,
    details: bool = typer.Option(
        False,
        "--details",
        "-l",
        help="Show format, partitioning and location of each dataset.",
    ),
) -> None:
    """List all datasets in the repository."""
    repository = load_repository(ctx)

    try:
        names = repository.list()
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    if not names:
        typer.echo(f"No datasets found in {repository.uri}")
        return

    if not details:
        for name in names:
            typer.echo(name)
        return

    # Build Rich table
    table = Table()
    table.add_column("Name")
    table.add_column("Format")
    table.add_column("Partitioning")
    table.add_column("Location")

    for name in names:
        try:
            dataset = repository.load(name)
        except RepositoryError as e:
            # Listed but unreadable or deleted since; show it anyway
            table.add_row(name, "?", "?", f"error: {e}")
            continue
        table.add_row(
            name,
            dataset.format.value,
            format_partitioning(dataset),
            dataset.location or "",
        )

    # Force terminal output to ensure tables render correctly in all environments
    console = Console(force_terminal=True)
    console.print(table)
