"""Show command for CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from datarepo.cli.formatting import echo_error, format_partitioning, schema_table
from datarepo.cli.main import app, load_repository
from datarepo.core.exceptions import RepositoryError
from datarepo.core.serialization import descriptor_to_json


@app.command()
def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the dataset to show."),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the descriptor document instead of a summary.",
    ),
) -> None:
    """Show a dataset's descriptor."""
    repository = load_repository(ctx)

    try:
        dataset = repository.load(name)
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    if as_json:
        typer.echo(descriptor_to_json(dataset.descriptor), nl=False)
        return

    typer.echo(f"Dataset: {dataset.name}")
    typer.echo(f"  Format: {dataset.format.value}")
    typer.echo(f"  Location: {dataset.location}")
    typer.echo(f"  Partitioning: {format_partitioning(dataset)}")
    for key, value in sorted(dataset.descriptor.properties.items()):
        typer.echo(f"  {key}: {value}")

    console = Console(force_terminal=True)
    console.print(schema_table(dataset))
