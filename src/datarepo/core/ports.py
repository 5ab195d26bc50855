"""Port interfaces for hexagonal architecture.

Ports define contracts that adapters must implement. The core domain
depends only on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    import builtins

    from datarepo.core.models import Dataset, DatasetDescriptor


@runtime_checkable
class DatasetRepository(Protocol):
    """A logical repository of named datasets.

    A repository is both a factory and a registry of datasets. Callers
    create a dataset with a name and descriptor, or retrieve a handle to an
    existing one by name, without knowing how the catalog is stored.

    Repositories are immutable: their configuration is fixed at
    construction and only their contents change, so one instance can be
    shared between threads without external locking.
    """

    def load(self, name: str, record_type: type[Any] | None = None) -> Dataset[Any]:
        """Get a handle to the named dataset.

        Raises:
            InvalidArgumentError: If name is None or malformed.
            NoSuchDatasetError: If there is no dataset named name.
            RepositoryError: For storage faults.
        """
        ...

    def create(
        self,
        name: str,
        descriptor: DatasetDescriptor,
        record_type: type[Any] | None = None,
    ) -> Dataset[Any]:
        """Create a dataset; a name may be created at most once.

        Raises:
            InvalidArgumentError: If name or descriptor is None or malformed.
            DatasetExistsError: If a dataset named name already exists.
            UnsupportedDescriptorError: If the backend cannot host descriptor.
            RepositoryError: For storage faults.
        """
        ...

    def update(
        self,
        name: str,
        descriptor: DatasetDescriptor,
        record_type: type[Any] | None = None,
    ) -> Dataset[Any]:
        """Replace the descriptor of an existing dataset, all or nothing.

        Raises:
            InvalidArgumentError: If name or descriptor is None or malformed.
            NoSuchDatasetError: If there is no dataset named name.
            UnsupportedUpdateError: If the change cannot be applied.
            RepositoryError: For storage faults.
        """
        ...

    def delete(self, name: str) -> bool:
        """Delete the named dataset and its data.

        Returns:
            True once the dataset has been removed.

        Raises:
            InvalidArgumentError: If name is None or malformed.
            NoSuchDatasetError: If the dataset does not exist or its
                location cannot be determined.
            RepositoryError: For storage faults.
        """
        ...

    def exists(self, name: str) -> bool:
        """Check whether a dataset named name exists. Never raises for absence."""
        ...

    def list(self) -> builtins.list[str]:
        """List dataset names; empty when the repository holds none."""
        ...


@runtime_checkable
class MetadataStorePort(Protocol):
    """Persistent name -> descriptor catalog (memory, filesystem, S3).

    Stores hold no caller-visible state between calls beyond what they
    persist, and each method is a single atomic transition of the catalog.
    """

    @property
    def uri(self) -> str:
        """URI identifying the catalog root."""
        ...

    def default_location(self, name: str) -> str:
        """Location used for a dataset created without one."""
        ...

    def normalize_location(self, location: str) -> str:
        """Bring a caller-supplied location into this store's canonical form.

        Raises:
            UnsupportedDescriptorError: If the location is outside this store.
        """
        ...

    def check_supported(self, descriptor: DatasetDescriptor) -> None:
        """Raise UnsupportedDescriptorError if descriptor cannot be hosted."""
        ...

    def create(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Persist a new catalog entry atomically.

        Raises:
            DatasetExistsError: If an entry for name already exists.
        """
        ...

    def load(self, name: str) -> DatasetDescriptor:
        """Read the descriptor stored for name.

        Raises:
            NoSuchDatasetError: If there is no entry for name.
            MetadataCorruptError: If the stored entry cannot be decoded.
        """
        ...

    def update(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Replace the descriptor stored for name in one step.

        Raises:
            NoSuchDatasetError: If there is no entry for name.
        """
        ...

    def delete(self, name: str) -> None:
        """Remove the entry for name, then the data at its location.

        Raises:
            NoSuchDatasetError: If there is no entry for name.
            DatasetLocationError: If the location cannot be resolved.
        """
        ...

    def exists(self, name: str) -> bool:
        """Check whether an entry for name exists."""
        ...

    def list(self) -> builtins.list[str]:
        """List the names of all entries."""
        ...
