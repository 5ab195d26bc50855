"""datarepo - A logical repository of named, schema-described datasets.

This library lets callers create, load, update, delete and list datasets
by name while the catalog itself lives in memory, on the local
filesystem, or in S3.

Example:
    >>> from datarepo import DatasetDescriptor, Format, Repository, Schema, SchemaField
    >>> repo = Repository.from_uri("file:///srv/datasets")
    >>> events = repo.create(
    ...     "events",
    ...     DatasetDescriptor(
    ...         schema=Schema(fields=(SchemaField("id", "long"),)),
    ...         format=Format.PARQUET,
    ...     ),
    ... )
    >>> repo.list()
    ['events']
"""

from datarepo.adapters.metadata import (
    FilesystemMetadataStore,
    InMemoryMetadataStore,
    S3MetadataStore,
    create_store,
)
from datarepo.config import RepositorySettings, find_project_root
from datarepo.core.exceptions import (
    ConfigurationError,
    DatasetExistsError,
    DatasetLocationError,
    DescriptorLoadError,
    InvalidArgumentError,
    MetadataCorruptError,
    NoSuchDatasetError,
    RepositoryError,
    StorageAccessError,
    StorageError,
    UnsupportedDescriptorError,
    UnsupportedUpdateError,
)
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
from datarepo.core.services import Repository
from datarepo.descriptor_files import load_descriptor_file
from datarepo.logging_config import configure_logging


__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "Dataset",
    "DatasetDescriptor",
    "DatasetExistsError",
    "DatasetLocationError",
    "DatasetRepository",
    "DescriptorLoadError",
    "FieldPartitioner",
    "FieldType",
    "FilesystemMetadataStore",
    "Format",
    "InMemoryMetadataStore",
    "InvalidArgumentError",
    "MetadataCorruptError",
    "MetadataStorePort",
    "NoSuchDatasetError",
    "PartitionKind",
    "PartitionStrategy",
    "Properties",
    "Repository",
    "RepositoryError",
    "RepositorySettings",
    "S3MetadataStore",
    "Schema",
    "SchemaField",
    "StorageAccessError",
    "StorageError",
    "UnsupportedDescriptorError",
    "UnsupportedUpdateError",
    "__version__",
    "configure_logging",
    "create_store",
    "find_project_root",
    "load_descriptor_file",
]
