"""Core domain module for datarepo.

This module contains pure Python domain models, the error taxonomy and
port definitions. It has no storage dependencies and can be tested in
isolation.
"""

from datarepo.core.models import (
    Dataset,
    DatasetDescriptor,
    FieldPartitioner,
    FieldType,
    Format,
    PartitionKind,
    PartitionStrategy,
    Properties,
    Schema,
    SchemaField,
)
from datarepo.core.ports import DatasetRepository, MetadataStorePort


__all__ = [
    "Dataset",
    "DatasetDescriptor",
    "DatasetRepository",
    "FieldPartitioner",
    "FieldType",
    "Format",
    "MetadataStorePort",
    "PartitionKind",
    "PartitionStrategy",
    "Properties",
    "Schema",
    "SchemaField",
]
