"""Basic dataset lifecycle example.

This example shows the simplest usage pattern: open a repository,
create a dataset from a descriptor, evolve its schema, and delete it.
"""

from datarepo import (
    DatasetDescriptor,
    FieldPartitioner,
    FieldType,
    Format,
    PartitionKind,
    PartitionStrategy,
    Repository,
    Schema,
    SchemaField,
)


# Option 1: Explicit URI (memory:, a path, file://... or s3://bucket/prefix)
repo = Repository.from_uri("./datasets")

# Option 2: Factory method
# Auto-discovers the project root and uses <project root>/datasets
# repo = Repository.from_directory()

schema = Schema(
    fields=(
        SchemaField("id", FieldType.LONG, nullable=False),
        SchemaField("payload", FieldType.STRING),
        SchemaField("created_at", FieldType.TIMESTAMP),
    ),
    name="event",
)

# Location is left out, so the repository picks <root>/events
events = repo.create(
    "events",
    DatasetDescriptor(
        schema=schema,
        format=Format.PARQUET,
        partition_strategy=PartitionStrategy(
            fields=(FieldPartitioner("created_at", PartitionKind.DAY),)
        ),
        properties={"owner": "analytics"},
    ),
)
print(f"Created {events.name} at {events.location}")

# Schema changes are the common update; format, partitioning and
# location stay as they were created
repo.update(
    "events",
    DatasetDescriptor(
        schema=Schema(
            fields=(*schema.fields, SchemaField("country", FieldType.STRING)),
            name="event",
        ),
        format=Format.PARQUET,
        partition_strategy=events.partition_strategy,
        properties={"owner": "analytics"},
    ),
)

# Handles are snapshots; load again to see the update
print(repo.load("events").schema.field_names)
print(repo.list())

repo.delete("events")
