"""Core domain services for datarepo."""

from __future__ import annotations

import builtins
from pathlib import Path
from typing import Any

from datarepo.core.exceptions import (
    InvalidArgumentError,
    UnsupportedDescriptorError,
    UnsupportedUpdateError,
)
from datarepo.core.locking import NameLocks
from datarepo.core.models import Dataset, DatasetDescriptor, validate_name
from datarepo.core.ports import MetadataStorePort
from datarepo.logging_config import get_logger


logger = get_logger(__name__)


class Repository:
    """Dataset repository over a pluggable metadata store.

    Implements the DatasetRepository contract: validates names and
    descriptors, normalizes locations, enforces the update rules, and
    linearizes same-name mutations within the process. The store provides
    persistence and the cross-process guarantees.

    The store is fixed at construction; instances are safe to share.

    Example:
        >>> repo = Repository.from_uri("memory:")
        >>> handle = repo.create("events", descriptor)
        >>> repo.exists("events")
        True
    """

    def __init__(self, store: MetadataStorePort) -> None:
        self._store = store
        self._locks = NameLocks()

    @classmethod
    def from_uri(cls, uri: str, s3_client: Any | None = None) -> Repository:
        """Create a Repository for a catalog URI.

        Args:
            uri: "memory:", a local path or file:// URI, or s3://bucket/prefix.
            s3_client: Optional boto3 S3 client for s3:// URIs.

        Returns:
            Repository backed by the matching store.

        Raises:
            ConfigurationError: If no backend handles the URI scheme.
        """
        from datarepo.adapters.metadata import create_store

        return cls(create_store(uri, s3_client=s3_client))

    @classmethod
    def from_directory(
        cls,
        directory: Path | None = None,
        root: Path | str = "datasets",
    ) -> Repository:
        """Create a filesystem Repository rooted inside the project.

        Args:
            directory: Start directory for root discovery (defaults to cwd).
            root: Repository root relative to project root or absolute path.

        Returns:
            Repository backed by a FilesystemMetadataStore.
        """
        from datarepo.adapters.metadata import FilesystemMetadataStore
        from datarepo.config import find_project_root

        resolved_root = Path(root)
        if not resolved_root.is_absolute():
            resolved_root = find_project_root(directory) / resolved_root

        return cls(FilesystemMetadataStore(resolved_root))

    @property
    def store(self) -> MetadataStorePort:
        """The metadata store backing this repository."""
        return self._store

    @property
    def uri(self) -> str:
        """URI of the underlying catalog."""
        return self._store.uri

    def load(self, name: str, record_type: type[Any] | None = None) -> Dataset[Any]:
        """Get a handle to the named dataset.

        Args:
            name: The dataset name.
            record_type: Optional record type to attach to the handle.

        Returns:
            Handle bound to the dataset's current descriptor.

        Raises:
            InvalidArgumentError: If name is None or malformed.
            NoSuchDatasetError: If no dataset with that name exists.
            StorageError: For storage faults.
        """
        validate_name(name)
        descriptor = self._store.load(name)
        logger.debug("dataset_loaded", name=name, repository=self.uri)
        return Dataset(name=name, descriptor=descriptor, record_type=record_type)

    def create(
        self,
        name: str,
        descriptor: DatasetDescriptor,
        record_type: type[Any] | None = None,
    ) -> Dataset[Any]:
        """Create a dataset with the supplied descriptor.

        A descriptor without a location gets the store's default location;
        the returned handle carries that normalized descriptor.

        Args:
            name: The dataset name.
            descriptor: Schema, format and storage configuration.
            record_type: Optional record type to attach to the handle.

        Returns:
            Handle to the newly created dataset.

        Raises:
            InvalidArgumentError: If name or descriptor is None or malformed.
            UnsupportedDescriptorError: If the store cannot host descriptor.
            DatasetExistsError: If a dataset with that name already exists.
            StorageError: For storage faults.
        """
        validate_name(name)
        _require_descriptor(descriptor)
        normalized = self._normalize(name, descriptor)
        self._store.check_supported(normalized)

        with self._locks.hold(name):
            self._store.create(name, normalized)

        logger.info(
            "dataset_created",
            name=name,
            format=normalized.format.value,
            location=normalized.location,
            repository=self.uri,
        )
        return Dataset(name=name, descriptor=normalized, record_type=record_type)

    def update(
        self,
        name: str,
        descriptor: DatasetDescriptor,
        record_type: type[Any] | None = None,
    ) -> Dataset[Any]:
        """Replace the descriptor of an existing dataset.

        The common case is a schema change. Changes to the format, the
        partition strategy or the location are rejected, and a rejected
        update leaves the stored descriptor untouched. A descriptor without
        a location keeps the current one.

        Args:
            name: The dataset name.
            descriptor: The new descriptor.
            record_type: Optional record type to attach to the handle.

        Returns:
            Handle bound to the updated descriptor.

        Raises:
            InvalidArgumentError: If name or descriptor is None or malformed.
            NoSuchDatasetError: If no dataset with that name exists.
            UnsupportedUpdateError: If the change cannot be applied.
            StorageError: For storage faults.
        """
        validate_name(name)
        _require_descriptor(descriptor)

        with self._locks.hold(name):
            current = self._store.load(name)
            if descriptor.location is None and current.location is not None:
                updated = descriptor.with_location(current.location)
            else:
                updated = descriptor

            try:
                updated = self._normalize(name, updated)
                self._store.check_supported(updated)
                _check_compatible(name, current, updated)
            except (UnsupportedDescriptorError, UnsupportedUpdateError) as e:
                logger.warning(
                    "dataset_update_rejected",
                    name=name,
                    reason=str(e),
                    repository=self.uri,
                )
                if isinstance(e, UnsupportedDescriptorError):
                    raise UnsupportedUpdateError(name, e.reason) from e
                raise

            self._store.update(name, updated)

        logger.info("dataset_updated", name=name, repository=self.uri)
        return Dataset(name=name, descriptor=updated, record_type=record_type)

    def delete(self, name: str) -> bool:
        """Delete the named dataset and the data at its location.

        Args:
            name: The dataset name.

        Returns:
            True once the dataset has been removed.

        Raises:
            InvalidArgumentError: If name is None or malformed.
            NoSuchDatasetError: If no dataset with that name exists.
            DatasetLocationError: If data exists but the metadata needed to
                locate it is missing or unreadable.
            StorageError: For storage faults.
        """
        validate_name(name)
        with self._locks.hold(name):
            self._store.delete(name)
        logger.info("dataset_deleted", name=name, repository=self.uri)
        return True

    def exists(self, name: str) -> bool:
        """Check whether a dataset with that name exists.

        Raises:
            InvalidArgumentError: If name is None or malformed.
            StorageError: For storage faults.
        """
        validate_name(name)
        return self._store.exists(name)

    def list(self) -> builtins.list[str]:
        """List all dataset names, sorted.

        Raises:
            StorageError: For storage faults.
        """
        return sorted(self._store.list())

    def _normalize(self, name: str, descriptor: DatasetDescriptor) -> DatasetDescriptor:
        """Fill in or canonicalize the descriptor's location."""
        if descriptor.location is None:
            return descriptor.with_location(self._store.default_location(name))
        normalized = self._store.normalize_location(descriptor.location)
        if normalized == descriptor.location:
            return descriptor
        return descriptor.with_location(normalized)

    def __repr__(self) -> str:
        return f"Repository({self.uri!r})"


def _require_descriptor(descriptor: object) -> None:
    if descriptor is None:
        raise InvalidArgumentError("Descriptor cannot be None")
    if not isinstance(descriptor, DatasetDescriptor):
        raise InvalidArgumentError(
            f"Descriptor must be a DatasetDescriptor, got {type(descriptor).__name__}"
        )


def _check_compatible(
    name: str,
    current: DatasetDescriptor,
    updated: DatasetDescriptor,
) -> None:
    """Reject descriptor changes that would strand existing data.

    Raises:
        UnsupportedUpdateError: If format, partitioning or location differ.
    """
    if updated.format != current.format:
        raise UnsupportedUpdateError(
            name,
            f"format change from {current.format} to {updated.format}",
        )
    if updated.partition_strategy != current.partition_strategy:
        raise UnsupportedUpdateError(name, "partition strategy change")
    if updated.location != current.location:
        raise UnsupportedUpdateError(
            name,
            f"location change from {current.location} to {updated.location}",
        )
