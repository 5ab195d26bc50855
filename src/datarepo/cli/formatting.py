"""Shared formatting helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.table import Table


if TYPE_CHECKING:
    from datarepo.core.exceptions import RepositoryError
    from datarepo.core.models import Dataset


def echo_error(error: RepositoryError) -> None:
    """Print an error and its recovery hint to stderr."""
    typer.echo(f"Error: {error}", err=True)
    if error.recovery_hint:
        typer.echo(f"Hint: {error.recovery_hint}", err=True)


def format_partitioning(dataset: Dataset[object]) -> str:
    """Render a dataset's partition strategy as "name(kind:source), ...".

    Returns:
        The rendered strategy, or "-" for unpartitioned datasets.
    """
    strategy = dataset.partition_strategy
    if strategy is None:
        return "-"
    parts = []
    for p in strategy.fields:
        detail = f"{p.kind.value}:{p.source}"
        if p.buckets is not None:
            detail += f"/{p.buckets}"
        parts.append(f"{p.name}({detail})")
    return ", ".join(parts)


def schema_table(dataset: Dataset[object]) -> Table:
    """Build a table listing the fields of a dataset's schema."""
    table = Table(title=f"Schema: {dataset.schema.name}")
    table.add_column("Field")
    table.add_column("Type")
    table.add_column("Nullable")
    table.add_column("Doc")
    for f in dataset.schema.fields:
        table.add_row(f.name, f.type.value, "yes" if f.nullable else "no", f.doc)
    return table
