"""Metadata store adapters."""

from datarepo.adapters.metadata.filesystem import FilesystemMetadataStore
from datarepo.adapters.metadata.memory import InMemoryMetadataStore
from datarepo.adapters.metadata.router import create_store
from datarepo.adapters.metadata.s3 import S3MetadataStore


__all__ = [
    "FilesystemMetadataStore",
    "InMemoryMetadataStore",
    "S3MetadataStore",
    "create_store",
]
