"""Core domain models for datarepo.

These models are pure Python dataclasses with no I/O dependencies.
They represent the dataset names, descriptors and handles that the
repository contract is expressed in.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Generic, Self, TypeVar

from datarepo.core.exceptions import InvalidArgumentError


E = TypeVar("E")

NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_-]{0,127}$")


def validate_name(name: object) -> str:
    """Check that a dataset name is usable by every backend.

    Names are 1-128 characters of letters, digits, underscores and
    hyphens, and may not start with a hyphen. They never contain "." or
    "/", so they are safe as path components and object-key segments.

    Args:
        name: The candidate dataset name.

    Returns:
        The validated name.

    Raises:
        InvalidArgumentError: If name is None, not a string, or malformed.
    """
    if name is None:
        raise InvalidArgumentError("Dataset name cannot be None")
    if not isinstance(name, str):
        raise InvalidArgumentError(
            f"Dataset name must be a string, got {type(name).__name__}"
        )
    if not NAME_PATTERN.match(name):
        raise InvalidArgumentError(
            f"Invalid dataset name '{name}': use 1-128 letters, digits, '_' or '-'"
        )
    return name


class FieldType(StrEnum):
    """Logical type of a schema field."""

    STRING = "string"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    BYTES = "bytes"
    TIMESTAMP = "timestamp"


class Format(StrEnum):
    """Storage format of a dataset's records."""

    AVRO = "avro"
    PARQUET = "parquet"
    CSV = "csv"
    JSON = "json"
    ORC = "orc"


class PartitionKind(StrEnum):
    """How a field partitioner derives its partition value."""

    IDENTITY = "identity"
    HASH = "hash"
    YEAR = "year"
    MONTH = "month"
    DAY = "day"


_DATE_KINDS = frozenset({PartitionKind.YEAR, PartitionKind.MONTH, PartitionKind.DAY})
_DATE_SOURCE_TYPES = frozenset({FieldType.TIMESTAMP, FieldType.LONG})


@dataclass(frozen=True, slots=True)
class SchemaField:
    """A single named, typed field of a record schema."""

    name: str
    type: FieldType
    nullable: bool = True
    doc: str = ""

    def __post_init__(self) -> None:
        """Validate field name and coerce the type."""
        if not self.name:
            raise InvalidArgumentError("Schema field name cannot be empty")
        if not isinstance(self.nullable, bool):
            raise InvalidArgumentError(
                f"nullable for field '{self.name}' must be a bool, "
                f"got {type(self.nullable).__name__}"
            )
        try:
            object.__setattr__(self, "type", FieldType(self.type))
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown type '{self.type}' for field '{self.name}'"
            ) from None


@dataclass(frozen=True, slots=True)
class Schema:
    """Ordered record schema.

    Attributes:
        fields: The record's fields, in declaration order.
        name: The record name.

    Example:
        >>> schema = Schema(
        ...     fields=(
        ...         SchemaField("id", FieldType.LONG, nullable=False),
        ...         SchemaField("email", FieldType.STRING),
        ...     ),
        ...     name="user",
        ... )
        >>> schema.field_names
        ('id', 'email')
    """

    fields: tuple[SchemaField, ...]
    name: str = "record"

    def __post_init__(self) -> None:
        """Validate that the schema has uniquely named fields."""
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise InvalidArgumentError("Schema must contain at least one field")
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise InvalidArgumentError(f"Schema '{self.name}' has duplicate field names")

    @property
    def field_names(self) -> tuple[str, ...]:
        """Names of all fields, in order."""
        return tuple(f.name for f in self.fields)

    def get(self, name: str) -> SchemaField | None:
        """Return the field called name, or None."""
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True, slots=True)
class FieldPartitioner:
    """Derives one partition level from a source field.

    Attributes:
        source: Name of the schema field the value is taken from.
        kind: How the partition value is derived.
        buckets: Bucket count, required for hash partitioners only.
        name: Partition name. Defaults to the source name for identity,
            "<source>_hash" for hash, and the kind name for date kinds.
    """

    source: str
    kind: PartitionKind = PartitionKind.IDENTITY
    buckets: int | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate bucket settings and fill in the default name."""
        try:
            kind = PartitionKind(self.kind)
        except ValueError:
            raise InvalidArgumentError(
                f"Unknown partition kind '{self.kind}' for '{self.source}'"
            ) from None
        object.__setattr__(self, "kind", kind)

        if kind is PartitionKind.HASH:
            if (
                not isinstance(self.buckets, int)
                or isinstance(self.buckets, bool)
                or self.buckets <= 0
            ):
                raise InvalidArgumentError(
                    f"Hash partitioner on '{self.source}' needs a positive bucket count"
                )
        elif self.buckets is not None:
            raise InvalidArgumentError(
                f"Only hash partitioners take buckets, got {kind} on '{self.source}'"
            )

        if self.name is None:
            if kind is PartitionKind.IDENTITY:
                default = self.source
            elif kind is PartitionKind.HASH:
                default = f"{self.source}_hash"
            else:
                default = kind.value
            object.__setattr__(self, "name", default)


@dataclass(frozen=True, slots=True)
class PartitionStrategy:
    """Ordered list of field partitioners."""

    fields: tuple[FieldPartitioner, ...]

    def __post_init__(self) -> None:
        """Validate partition names are unique."""
        object.__setattr__(self, "fields", tuple(self.fields))
        if not self.fields:
            raise InvalidArgumentError("Partition strategy must have at least one field")
        names = [p.name for p in self.fields]
        if len(set(names)) != len(names):
            raise InvalidArgumentError("Partition strategy has duplicate partition names")

    @property
    def source_names(self) -> tuple[str, ...]:
        """Schema fields the strategy reads from."""
        return tuple(p.source for p in self.fields)


class Properties(Mapping[str, str]):
    """Read-only, hashable string key/value pairs.

    Compares equal to any mapping with the same items, so
    ``descriptor.properties == {"owner": "data"}`` works as expected.

    Raises:
        InvalidArgumentError: If a key or value is not a string.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        items = dict(items or {})
        for key, value in items.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise InvalidArgumentError(
                    f"Property {key!r}: {value!r} must map a string to a string"
                )
        self._items = items

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"Properties({self._items!r})"


@dataclass(frozen=True)
class DatasetDescriptor:
    """Schema, format and storage configuration of a dataset.

    Attributes:
        schema: Record schema.
        format: Storage format of the records.
        partition_strategy: Optional partitioning of the records.
        location: Storage location hint. Backends fill this in on create
            when it is left as None.
        properties: Free-form string key/value pairs, stored read-only.

    Example:
        >>> descriptor = DatasetDescriptor(
        ...     schema=Schema(fields=(SchemaField("id", FieldType.LONG),)),
        ...     format=Format.PARQUET,
        ... )
        >>> descriptor.location is None
        True
    """

    schema: Schema
    format: Format = Format.AVRO
    partition_strategy: PartitionStrategy | None = None
    location: str | None = None
    properties: Mapping[str, str] = field(default_factory=Properties)

    def __post_init__(self) -> None:
        """Validate the descriptor is structurally sound."""
        if not isinstance(self.schema, Schema):
            raise InvalidArgumentError("Descriptor schema must be a Schema")
        try:
            object.__setattr__(self, "format", Format(self.format))
        except ValueError:
            raise InvalidArgumentError(f"Unknown format '{self.format}'") from None
        if self.location is not None and not self.location:
            raise InvalidArgumentError("Descriptor location cannot be empty")
        if not isinstance(self.properties, Properties):
            if not isinstance(self.properties, Mapping):
                raise InvalidArgumentError("Descriptor properties must be a mapping")
            object.__setattr__(self, "properties", Properties(self.properties))

        if self.partition_strategy is not None:
            for partitioner in self.partition_strategy.fields:
                source = self.schema.get(partitioner.source)
                if source is None:
                    raise InvalidArgumentError(
                        f"Partition source '{partitioner.source}' is not in the schema"
                    )
                if (
                    partitioner.kind in _DATE_KINDS
                    and source.type not in _DATE_SOURCE_TYPES
                ):
                    raise InvalidArgumentError(
                        f"{partitioner.kind} partitioner needs a timestamp or long "
                        f"field, '{source.name}' is {source.type}"
                    )

    @property
    def is_partitioned(self) -> bool:
        """Whether the descriptor declares a partition strategy."""
        return self.partition_strategy is not None

    def with_location(self, location: str) -> Self:
        """Return a new descriptor with the specified location.

        Args:
            location: The storage location of the dataset.

        Returns:
            A new DatasetDescriptor instance with the updated location.
        """
        return replace(self, location=location)


@dataclass(frozen=True)
class Dataset(Generic[E]):
    """Handle to one dataset, as it was when it was created or loaded.

    The handle is bound to the name and the descriptor active at retrieval
    time; it does not refresh when another caller updates the dataset.

    Attributes:
        name: The dataset name.
        descriptor: The descriptor active at retrieval time.
        record_type: Optional caller-supplied record type. The repository
            does not check it against the schema.

    Example:
        >>> handle = repository.load("events")
        >>> handle.format
        <Format.PARQUET: 'parquet'>
    """

    name: str
    descriptor: DatasetDescriptor
    record_type: type[E] | None = None

    @property
    def location(self) -> str | None:
        """Storage location of the dataset."""
        return self.descriptor.location

    @property
    def format(self) -> Format:
        """Storage format of the dataset."""
        return self.descriptor.format

    @property
    def schema(self) -> Schema:
        """Record schema of the dataset."""
        return self.descriptor.schema

    @property
    def partition_strategy(self) -> PartitionStrategy | None:
        """Partition strategy, if any."""
        return self.descriptor.partition_strategy

    @property
    def is_partitioned(self) -> bool:
        """Whether the dataset is partitioned."""
        return self.descriptor.is_partitioned

    def as_type(self, record_type: type[Any]) -> Dataset[Any]:
        """Return a view of this handle typed with record_type."""
        return Dataset(
            name=self.name,
            descriptor=self.descriptor,
            record_type=record_type,
        )
