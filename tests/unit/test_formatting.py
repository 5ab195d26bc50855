"""Unit tests for CLI formatting helpers."""

from __future__ import annotations

import pytest

from datarepo.cli.formatting import format_partitioning, schema_table
from datarepo.core.models import (
    Dataset,
    DatasetDescriptor,
    FieldPartitioner,
    FieldType,
    PartitionKind,
    PartitionStrategy,
    Schema,
    SchemaField,
)


_SCHEMA = Schema(
    fields=(
        SchemaField("id", FieldType.LONG, nullable=False, doc="Event id"),
        SchemaField("created_at", FieldType.TIMESTAMP),
    ),
    name="event",
)


@pytest.mark.cli
@pytest.mark.tra("Domain.Format.Partitioning")
@pytest.mark.tier(0)
def test_format_partitioning_unpartitioned() -> None:
    """Unpartitioned datasets render as a dash."""
    dataset = Dataset(name="events", descriptor=DatasetDescriptor(schema=_SCHEMA))

    assert format_partitioning(dataset) == "-"


@pytest.mark.cli
@pytest.mark.tra("Domain.Format.Partitioning")
@pytest.mark.tier(0)
def test_format_partitioning_lists_each_partitioner() -> None:
    """Each partitioner shows name, kind, source and buckets if any."""
    descriptor = DatasetDescriptor(
        schema=_SCHEMA,
        partition_strategy=PartitionStrategy(
            fields=(
                FieldPartitioner("created_at", PartitionKind.DAY),
                FieldPartitioner("id", PartitionKind.HASH, buckets=16),
            )
        ),
    )

    result = format_partitioning(Dataset(name="events", descriptor=descriptor))

    assert result == "day(day:created_at), id_hash(hash:id/16)"


@pytest.mark.cli
@pytest.mark.tra("Domain.Format.Schema")
@pytest.mark.tier(0)
def test_schema_table_has_a_row_per_field() -> None:
    """The schema table lists fields in order."""
    table = schema_table(Dataset(name="events", descriptor=DatasetDescriptor(schema=_SCHEMA)))

    assert table.title == "Schema: event"
    assert table.row_count == 2
    assert [c.header for c in table.columns] == ["Field", "Type", "Nullable", "Doc"]
