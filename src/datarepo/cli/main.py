"""CLI commands for datarepo."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer

from datarepo.cli.formatting import echo_error
from datarepo.core.exceptions import RepositoryError


if TYPE_CHECKING:
    from datarepo import Repository


app = typer.Typer(
    name="datarepo",
    help="Create, inspect and delete datasets in a dataset repository.",
    no_args_is_help=True,
)


@app.callback()
def configure(
    ctx: typer.Context,
    repo: str | None = typer.Option(
        None,
        "--repo",
        "-r",
        help="Repository URI (path, file://, s3://bucket/prefix, memory:). "
        "Defaults to DATAREPO_URI or <project root>/datasets.",
    ),
) -> None:
    """Resolve settings and configure logging for every command."""
    from datarepo.config import RepositorySettings
    from datarepo.logging_config import configure_logging

    try:
        settings = RepositorySettings.from_env()
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    if repo:
        settings = settings.with_uri(repo)

    configure_logging(settings.log_level)
    ctx.obj = settings


def load_repository(ctx: typer.Context) -> Repository:
    """Open the repository selected by the global options.

    Args:
        ctx: Typer context carrying RepositorySettings.

    Returns:
        Repository for the configured URI.

    Raises:
        typer.Exit: If the URI cannot be opened.
    """
    from datarepo import Repository
    from datarepo.config import RepositorySettings

    settings = ctx.obj if isinstance(ctx.obj, RepositorySettings) else None
    if settings is None:
        settings = RepositorySettings.from_env()

    try:
        return Repository.from_uri(
            settings.uri, s3_client=settings.create_s3_client()
        )
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None


@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the dataset to create."),
    descriptor: Path = typer.Option(
        ...,
        "--descriptor",
        "-d",
        help="Path to a JSON descriptor document.",
    ),
) -> None:
    """Create a dataset from a descriptor file."""
    from datarepo.descriptor_files import load_descriptor_file

    repository = load_repository(ctx)
    try:
        dataset = repository.create(name, load_descriptor_file(descriptor))
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    typer.echo(f"Created dataset '{dataset.name}' at {dataset.location}")


@app.command()
def update(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the dataset to update."),
    descriptor: Path = typer.Option(
        ...,
        "--descriptor",
        "-d",
        help="Path to a JSON descriptor document.",
    ),
) -> None:
    """Replace a dataset's descriptor (schema and properties)."""
    from datarepo.descriptor_files import load_descriptor_file

    repository = load_repository(ctx)
    try:
        dataset = repository.update(name, load_descriptor_file(descriptor))
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    typer.echo(f"Updated dataset '{dataset.name}'")


@app.command()
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the dataset to delete."),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Delete without asking for confirmation.",
    ),
) -> None:
    """Delete a dataset and all of its data."""
    repository = load_repository(ctx)

    if not yes:
        typer.confirm(
            f"Delete dataset '{name}' and all of its data?",
            abort=True,
        )

    try:
        repository.delete(name)
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(1) from None

    typer.echo(f"Deleted dataset '{name}'")


@app.command()
def exists(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the dataset to check."),
) -> None:
    """Exit with status 0 if the dataset exists, 1 otherwise."""
    repository = load_repository(ctx)
    try:
        found = repository.exists(name)
    except RepositoryError as e:
        echo_error(e)
        raise typer.Exit(2) from None

    typer.echo("yes" if found else "no")
    if not found:
        raise typer.Exit(1)


def main() -> None:
    """Entry point for the CLI."""
    app()
