"""In-memory metadata store for tests and ephemeral repositories."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from datarepo.core.exceptions import DatasetExistsError, NoSuchDatasetError


if TYPE_CHECKING:
    import builtins

    from datarepo.core.models import DatasetDescriptor


class InMemoryMetadataStore:
    """Metadata store keeping descriptors in a process-local dict.

    Implements MetadataStorePort. Every format and any location string is
    accepted, and nothing survives the process. Descriptors are immutable,
    so they are stored and returned as-is.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, DatasetDescriptor] = {}
        self._lock = threading.Lock()

    @property
    def uri(self) -> str:
        """URI identifying this store."""
        return "memory:"

    def default_location(self, name: str) -> str:
        """Return a memory: location for the dataset."""
        return f"memory:{name}"

    def normalize_location(self, location: str) -> str:
        """Accept any location unchanged."""
        return location

    def check_supported(self, descriptor: DatasetDescriptor) -> None:
        """Accept every descriptor."""
        _ = descriptor  # Unused but required by protocol

    def create(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Add an entry, failing if the name is taken.

        Raises:
            DatasetExistsError: If name already has an entry.
        """
        with self._lock:
            if name in self._descriptors:
                raise DatasetExistsError(name)
            self._descriptors[name] = descriptor

    def load(self, name: str) -> DatasetDescriptor:
        """Return the descriptor for name.

        Raises:
            NoSuchDatasetError: If name has no entry.
        """
        with self._lock:
            try:
                return self._descriptors[name]
            except KeyError:
                raise NoSuchDatasetError(
                    name, available=sorted(self._descriptors)
                ) from None

    def update(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Replace the descriptor for name.

        Raises:
            NoSuchDatasetError: If name has no entry.
        """
        with self._lock:
            if name not in self._descriptors:
                raise NoSuchDatasetError(name, available=sorted(self._descriptors))
            self._descriptors[name] = descriptor

    def delete(self, name: str) -> None:
        """Remove the entry for name.

        Raises:
            NoSuchDatasetError: If name has no entry.
        """
        with self._lock:
            if self._descriptors.pop(name, None) is None:
                raise NoSuchDatasetError(name)

    def exists(self, name: str) -> bool:
        """Check whether name has an entry."""
        with self._lock:
            return name in self._descriptors

    def list(self) -> builtins.list[str]:
        """List all names."""
        with self._lock:
            return list(self._descriptors)
