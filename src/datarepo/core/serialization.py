"""Descriptor document codec.

Maps DatasetDescriptor to and from the JSON document persisted by the
filesystem and S3 stores. Pure functions, no I/O.
"""

from __future__ import annotations

import json
from typing import Any

from datarepo.core.exceptions import InvalidArgumentError
from datarepo.core.models import (
    DatasetDescriptor,
    FieldPartitioner,
    PartitionStrategy,
    Schema,
    SchemaField,
)


DOCUMENT_VERSION = 1


def descriptor_to_dict(descriptor: DatasetDescriptor) -> dict[str, Any]:
    """Convert a descriptor into a JSON-compatible document.

    Args:
        descriptor: The descriptor to convert.

    Returns:
        Document dict, tagged with the document version.
    """
    strategy = descriptor.partition_strategy
    return {
        "version": DOCUMENT_VERSION,
        "schema": {
            "name": descriptor.schema.name,
            "fields": [
                {
                    "name": f.name,
                    "type": f.type.value,
                    "nullable": f.nullable,
                    "doc": f.doc,
                }
                for f in descriptor.schema.fields
            ],
        },
        "format": descriptor.format.value,
        "partition_strategy": (
            None
            if strategy is None
            else [
                {
                    "source": p.source,
                    "kind": p.kind.value,
                    "buckets": p.buckets,
                    "name": p.name,
                }
                for p in strategy.fields
            ]
        ),
        "location": descriptor.location,
        "properties": dict(descriptor.properties),
    }


def descriptor_from_dict(data: Any) -> DatasetDescriptor:
    """Build a descriptor from a document produced by descriptor_to_dict.

    Documents without a "version" key are read as the current version, so
    hand-written descriptor files may leave it out.

    Args:
        data: Parsed JSON document.

    Returns:
        The decoded DatasetDescriptor.

    Raises:
        InvalidArgumentError: If the document is malformed or has an
            unsupported version.
    """
    if not isinstance(data, dict):
        raise InvalidArgumentError("Descriptor document must be a JSON object")

    version = data.get("version", DOCUMENT_VERSION)
    if version != DOCUMENT_VERSION:
        raise InvalidArgumentError(f"Unsupported descriptor document version: {version}")

    try:
        schema_data = data["schema"]
        schema = Schema(
            fields=tuple(
                SchemaField(
                    name=f["name"],
                    type=f["type"],
                    nullable=f.get("nullable", True),
                    doc=f.get("doc", ""),
                )
                for f in schema_data["fields"]
            ),
            name=schema_data.get("name", "record"),
        )

        strategy_data = data.get("partition_strategy")
        strategy = None
        if strategy_data is not None:
            strategy = PartitionStrategy(
                fields=tuple(
                    FieldPartitioner(
                        source=p["source"],
                        kind=p.get("kind", "identity"),
                        buckets=p.get("buckets"),
                        name=p.get("name"),
                    )
                    for p in strategy_data
                )
            )

        return DatasetDescriptor(
            schema=schema,
            format=data.get("format", "avro"),
            partition_strategy=strategy,
            location=data.get("location"),
            properties=_properties_from_document(data.get("properties")),
        )
    except InvalidArgumentError:
        raise
    except (KeyError, TypeError, AttributeError) as e:
        raise InvalidArgumentError(f"Malformed descriptor document: {e!r}") from e


def _properties_from_document(value: Any) -> dict[str, str]:
    """Read the properties object; scalar values are kept as their text."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidArgumentError(
            f"Descriptor properties must be a JSON object, got {type(value).__name__}"
        )
    properties = {}
    for key, item in value.items():
        if isinstance(item, bool):
            properties[key] = "true" if item else "false"
        elif isinstance(item, (str, int, float)):
            properties[key] = str(item)
        else:
            raise InvalidArgumentError(
                f"Property '{key}' must be a string, got {type(item).__name__}"
            )
    return properties


def descriptor_to_json(descriptor: DatasetDescriptor) -> str:
    """Serialize a descriptor to an indented JSON string."""
    return json.dumps(descriptor_to_dict(descriptor), indent=2, sort_keys=True) + "\n"


def descriptor_from_json(text: str | bytes) -> DatasetDescriptor:
    """Parse a descriptor from JSON text.

    Raises:
        InvalidArgumentError: If the text is not valid JSON or not a valid
            descriptor document. JSON syntax errors are chained as the
            cause so callers can report the line number.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidArgumentError(f"Descriptor is not valid JSON: {e.msg}") from e
    except UnicodeDecodeError as e:
        raise InvalidArgumentError(f"Descriptor is not valid UTF-8: {e.reason}") from e
    return descriptor_from_dict(data)
