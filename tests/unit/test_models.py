"""Unit tests for core domain models."""

import pytest

from datarepo.core.exceptions import InvalidArgumentError
from datarepo.core.models import (
    Dataset,
    DatasetDescriptor,
    FieldPartitioner,
    FieldType,
    Format,
    PartitionKind,
    PartitionStrategy,
    Schema,
    SchemaField,
    validate_name,
)


def _schema() -> Schema:
    return Schema(
        fields=(
            SchemaField("id", FieldType.LONG, nullable=False),
            SchemaField("country", FieldType.STRING),
            SchemaField("created_at", FieldType.TIMESTAMP),
        ),
        name="event",
    )


@pytest.mark.core
@pytest.mark.tier(0)
class TestValidateName:
    """Tests for dataset name validation."""

    @pytest.mark.parametrize(
        "name", ["events", "raw_events", "events-2024", "_staging", "0day", "a" * 128]
    )
    def test_accepts_valid_names(self, name: str) -> None:
        """Letters, digits, '_' and '-' are allowed."""
        assert validate_name(name) == name

    @pytest.mark.parametrize(
        "name",
        ["", "-events", "a/b", "a.b", "..", "with space", "a" * 129, "événement"],
    )
    def test_rejects_malformed_names(self, name: str) -> None:
        """Path separators, dots and overlong names are rejected."""
        with pytest.raises(InvalidArgumentError, match="Invalid dataset name"):
            validate_name(name)

    def test_rejects_none(self) -> None:
        """None has its own message."""
        with pytest.raises(InvalidArgumentError, match="cannot be None"):
            validate_name(None)

    def test_rejects_non_string(self) -> None:
        """Only strings are names."""
        with pytest.raises(InvalidArgumentError, match="must be a string"):
            validate_name(42)


@pytest.mark.core
@pytest.mark.tier(0)
class TestSchema:
    """Tests for SchemaField and Schema."""

    def test_field_type_is_coerced_from_string(self) -> None:
        """A type given as its string value becomes a FieldType."""
        field = SchemaField("id", "long")  # type: ignore[arg-type]

        assert field.type is FieldType.LONG

    def test_unknown_field_type_raises(self) -> None:
        """Types outside FieldType are rejected."""
        with pytest.raises(InvalidArgumentError, match="Unknown type 'decimal'"):
            SchemaField("amount", "decimal")  # type: ignore[arg-type]

    def test_empty_field_name_raises(self) -> None:
        """Field names are required."""
        with pytest.raises(InvalidArgumentError):
            SchemaField("", FieldType.STRING)

    def test_nullable_must_be_bool(self) -> None:
        """Truthy strings are not accepted as nullable flags."""
        with pytest.raises(InvalidArgumentError, match="must be a bool"):
            SchemaField("id", FieldType.LONG, nullable="no")  # type: ignore[arg-type]

    def test_schema_requires_fields(self) -> None:
        """An empty schema is not a schema."""
        with pytest.raises(InvalidArgumentError, match="at least one field"):
            Schema(fields=())

    def test_schema_rejects_duplicate_names(self) -> None:
        """Field names must be unique."""
        with pytest.raises(InvalidArgumentError, match="duplicate"):
            Schema(
                fields=(
                    SchemaField("id", FieldType.LONG),
                    SchemaField("id", FieldType.STRING),
                )
            )

    def test_field_names_and_get(self) -> None:
        """field_names keeps declaration order and get() finds fields."""
        schema = _schema()

        assert schema.field_names == ("id", "country", "created_at")
        assert schema.get("country") == SchemaField("country", FieldType.STRING)
        assert schema.get("missing") is None

    def test_schema_accepts_list_of_fields(self) -> None:
        """Fields passed as a list are stored as a tuple."""
        schema = Schema(fields=[SchemaField("id", FieldType.LONG)])  # type: ignore[arg-type]

        assert schema.fields == (SchemaField("id", FieldType.LONG),)


@pytest.mark.core
@pytest.mark.tier(0)
class TestPartitioning:
    """Tests for FieldPartitioner and PartitionStrategy."""

    def test_default_names(self) -> None:
        """Each kind gets a predictable default partition name."""
        assert FieldPartitioner("country").name == "country"
        assert FieldPartitioner("id", PartitionKind.HASH, buckets=8).name == "id_hash"
        assert FieldPartitioner("created_at", PartitionKind.MONTH).name == "month"

    def test_explicit_name_is_kept(self) -> None:
        """A caller-supplied name wins over the default."""
        partitioner = FieldPartitioner("created_at", PartitionKind.YEAR, name="yr")

        assert partitioner.name == "yr"

    def test_hash_requires_positive_buckets(self) -> None:
        """Hash partitioners need a bucket count."""
        with pytest.raises(InvalidArgumentError, match="positive bucket count"):
            FieldPartitioner("id", PartitionKind.HASH)
        with pytest.raises(InvalidArgumentError):
            FieldPartitioner("id", PartitionKind.HASH, buckets=0)

    @pytest.mark.parametrize("buckets", ["4", True, 2.5, -1])
    def test_hash_buckets_must_be_positive_int(self, buckets: object) -> None:
        """Strings, bools and floats are not bucket counts."""
        with pytest.raises(InvalidArgumentError, match="positive bucket count"):
            FieldPartitioner("id", PartitionKind.HASH, buckets=buckets)  # type: ignore[arg-type]

    def test_buckets_only_for_hash(self) -> None:
        """Other kinds reject a bucket count."""
        with pytest.raises(InvalidArgumentError, match="Only hash"):
            FieldPartitioner("country", PartitionKind.IDENTITY, buckets=4)

    def test_unknown_kind_raises(self) -> None:
        """Kinds outside PartitionKind are rejected."""
        with pytest.raises(InvalidArgumentError, match="Unknown partition kind"):
            FieldPartitioner("country", "range")  # type: ignore[arg-type]

    def test_strategy_rejects_duplicate_partition_names(self) -> None:
        """Two partitioners may not produce the same partition name."""
        with pytest.raises(InvalidArgumentError, match="duplicate"):
            PartitionStrategy(
                fields=(
                    FieldPartitioner("created_at", PartitionKind.YEAR),
                    FieldPartitioner("updated_at", PartitionKind.YEAR),
                )
            )

    def test_strategy_requires_fields(self) -> None:
        """An empty strategy is rejected; use None for unpartitioned."""
        with pytest.raises(InvalidArgumentError):
            PartitionStrategy(fields=())

    def test_source_names(self) -> None:
        """source_names lists the schema fields read, in order."""
        strategy = PartitionStrategy(
            fields=(
                FieldPartitioner("created_at", PartitionKind.YEAR),
                FieldPartitioner("country"),
            )
        )

        assert strategy.source_names == ("created_at", "country")


@pytest.mark.core
@pytest.mark.tier(0)
class TestDatasetDescriptor:
    """Tests for DatasetDescriptor."""

    def test_defaults(self) -> None:
        """Avro, unpartitioned, no location and no properties by default."""
        descriptor = DatasetDescriptor(schema=_schema())

        assert descriptor.format is Format.AVRO
        assert descriptor.partition_strategy is None
        assert descriptor.location is None
        assert descriptor.properties == {}
        assert descriptor.is_partitioned is False

    def test_format_is_coerced_from_string(self) -> None:
        """A format given as its string value becomes a Format."""
        descriptor = DatasetDescriptor(schema=_schema(), format="parquet")  # type: ignore[arg-type]

        assert descriptor.format is Format.PARQUET

    def test_unknown_format_raises(self) -> None:
        """Formats outside Format are rejected."""
        with pytest.raises(InvalidArgumentError, match="Unknown format"):
            DatasetDescriptor(schema=_schema(), format="xml")  # type: ignore[arg-type]

    def test_schema_is_required(self) -> None:
        """A descriptor without a schema is rejected."""
        with pytest.raises(InvalidArgumentError):
            DatasetDescriptor(schema=None)  # type: ignore[arg-type]

    def test_empty_location_raises(self) -> None:
        """Location is either absent or a non-empty string."""
        with pytest.raises(InvalidArgumentError):
            DatasetDescriptor(schema=_schema(), location="")

    def test_partition_source_must_be_in_schema(self) -> None:
        """Partitioners can only read fields that exist."""
        strategy = PartitionStrategy(fields=(FieldPartitioner("region"),))

        with pytest.raises(InvalidArgumentError, match="'region' is not in the schema"):
            DatasetDescriptor(schema=_schema(), partition_strategy=strategy)

    def test_date_partition_needs_timestamp_or_long(self) -> None:
        """Year/month/day partitioners reject string sources."""
        strategy = PartitionStrategy(
            fields=(FieldPartitioner("country", PartitionKind.DAY),)
        )

        with pytest.raises(InvalidArgumentError, match="timestamp or long"):
            DatasetDescriptor(schema=_schema(), partition_strategy=strategy)

    def test_partitioned_descriptor(self) -> None:
        """A valid strategy marks the descriptor as partitioned."""
        strategy = PartitionStrategy(
            fields=(
                FieldPartitioner("created_at", PartitionKind.DAY),
                FieldPartitioner("id", PartitionKind.HASH, buckets=4),
            )
        )

        descriptor = DatasetDescriptor(schema=_schema(), partition_strategy=strategy)

        assert descriptor.is_partitioned is True

    def test_with_location_returns_new_descriptor(self) -> None:
        """with_location leaves the original untouched."""
        original = DatasetDescriptor(schema=_schema(), properties={"owner": "data"})

        moved = original.with_location("/data/events")

        assert moved.location == "/data/events"
        assert original.location is None
        assert moved.schema == original.schema
        assert moved.properties == {"owner": "data"}

    def test_properties_are_copied(self) -> None:
        """Mutating the caller's dict does not change the descriptor."""
        properties = {"owner": "data"}
        descriptor = DatasetDescriptor(schema=_schema(), properties=properties)

        properties["owner"] = "someone-else"

        assert descriptor.properties == {"owner": "data"}

    def test_is_immutable(self) -> None:
        """Descriptors are frozen."""
        from dataclasses import FrozenInstanceError

        descriptor = DatasetDescriptor(schema=_schema())

        with pytest.raises(FrozenInstanceError):
            descriptor.location = "/elsewhere"  # type: ignore[misc]

    def test_properties_are_read_only(self) -> None:
        """Properties can only change by building a new descriptor."""
        descriptor = DatasetDescriptor(schema=_schema(), properties={"owner": "data"})

        with pytest.raises(TypeError):
            descriptor.properties["owner"] = "someone-else"  # type: ignore[index]

        assert descriptor.properties == {"owner": "data"}

    @pytest.mark.parametrize("properties", [{"retention": 30}, {1: "one"}, {"n": None}])
    def test_properties_must_be_strings(self, properties: dict) -> None:
        """Non-string keys or values are rejected up front."""
        with pytest.raises(InvalidArgumentError, match="string to a string"):
            DatasetDescriptor(schema=_schema(), properties=properties)

    def test_descriptors_are_hashable(self) -> None:
        """Equal descriptors hash alike and can be used in sets."""
        first = DatasetDescriptor(schema=_schema(), properties={"owner": "data"})
        second = DatasetDescriptor(schema=_schema(), properties={"owner": "data"})

        assert hash(first) == hash(second)
        assert len({first, second}) == 1


@pytest.mark.core
@pytest.mark.tier(0)
class TestDataset:
    """Tests for the Dataset handle."""

    def test_properties_delegate_to_descriptor(self) -> None:
        """Handle accessors read through to the descriptor."""
        descriptor = DatasetDescriptor(
            schema=_schema(), format=Format.JSON, location="/data/events"
        )
        handle = Dataset(name="events", descriptor=descriptor)

        assert handle.location == "/data/events"
        assert handle.format is Format.JSON
        assert handle.schema == descriptor.schema
        assert handle.partition_strategy is None
        assert handle.is_partitioned is False
        assert handle.record_type is None

    def test_handles_are_hashable(self) -> None:
        """Handles can be used as dict keys."""
        descriptor = DatasetDescriptor(schema=_schema(), properties={"owner": "data"})
        handle = Dataset(name="events", descriptor=descriptor)

        assert {handle: 1}[Dataset(name="events", descriptor=descriptor)] == 1

    def test_as_type_rebinds_record_type(self) -> None:
        """as_type returns a new handle with the same name and descriptor."""
        handle = Dataset(name="events", descriptor=DatasetDescriptor(schema=_schema()))

        typed = handle.as_type(dict)

        assert typed.record_type is dict
        assert typed.name == handle.name
        assert typed.descriptor is handle.descriptor
        assert handle.record_type is None
