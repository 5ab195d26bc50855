"""Domain exceptions for datarepo.

All library errors inherit from RepositoryError, allowing users to catch
any library exception with a single except clause. Each exception provides
a recovery_hint property with guidance on resolving the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path


class RepositoryError(Exception):
    """Base class for all datarepo exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class InvalidArgumentError(RepositoryError, ValueError):
    """Raised when a required argument is missing or malformed.

    Always a caller bug; retrying with the same input fails the same way.
    """

    @property
    def recovery_hint(self) -> str:
        """Point at the offending argument."""
        return "Fix the argument and call again; this error is never transient"


class NoSuchDatasetError(RepositoryError):
    """Raised when a requested dataset doesn't exist in the repository.

    Attributes:
        name: The dataset name that was not found.
        available: List of available dataset names, when known.
    """

    def __init__(
        self,
        name: str,
        available: list[str] | None = None,
        message: str | None = None,
    ) -> None:
        self.name = name
        self.available = available if available is not None else []
        super().__init__(message or f"Dataset '{name}' not found")

    @property
    def recovery_hint(self) -> str:
        """Suggest available datasets or how to check them."""
        if self.available:
            return f"Available datasets: {', '.join(self.available)}"
        return "Check repository.list() for available names"


class DatasetLocationError(NoSuchDatasetError):
    """Raised when a dataset's location cannot be resolved from its metadata.

    Happens when data is present but the descriptor is missing, or when the
    descriptor exists but cannot be read.

    Attributes:
        location: The location that was inspected, if any.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        name: str,
        location: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.location = location
        self.cause = cause
        super().__init__(
            name,
            message=f"Cannot resolve location of dataset '{name}': no readable metadata",
        )

    @property
    def recovery_hint(self) -> str:
        """Suggest cleaning up orphaned data."""
        if self.location:
            return f"Inspect or remove orphaned data at {self.location}"
        return "Inspect the repository metadata for this dataset"


class DatasetExistsError(RepositoryError):
    """Raised when creating a dataset whose name is already taken.

    Attributes:
        name: The dataset name that already exists.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Dataset '{name}' already exists")

    @property
    def recovery_hint(self) -> str:
        """Suggest loading instead."""
        return f"Use load('{self.name}') to open the existing dataset"


class UnsupportedDescriptorError(RepositoryError):
    """Raised when a backend cannot host the requested descriptor.

    Attributes:
        reason: Why the descriptor was rejected.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unsupported descriptor: {reason}")

    @property
    def recovery_hint(self) -> str:
        """Suggest changing the request."""
        return "Change the format or location to one this repository supports"


class UnsupportedUpdateError(RepositoryError):
    """Raised when a descriptor change cannot be applied safely.

    The existing descriptor is left untouched.

    Attributes:
        name: The dataset being updated.
        reason: Why the change was rejected.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Cannot update dataset '{name}': {reason}")

    @property
    def recovery_hint(self) -> str:
        """Suggest creating a new dataset instead."""
        return "Create a new dataset with the new layout and migrate the data"


class StorageError(RepositoryError):
    """Base class for storage-related errors.

    Raised when catalog storage operations (S3, filesystem) fail.

    Attributes:
        source: The storage path/URI that caused the error.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        source: str,
        cause: Exception | None = None,
    ) -> None:
        self.source = source
        self.cause = cause
        super().__init__(message)


class StorageAccessError(StorageError):
    """Raised when access is denied to storage (permissions, credentials)."""

    @property
    def recovery_hint(self) -> str:
        """Suggest checking permissions."""
        return "Check credentials and bucket/path permissions"


class MetadataCorruptError(StorageError):
    """Raised when a stored descriptor is corrupt or unreadable."""

    @property
    def recovery_hint(self) -> str:
        """Suggest repairing the descriptor document."""
        return f"Repair or remove the descriptor document at {self.source}"


class ConfigurationError(RepositoryError):
    """Raised for configuration problems (bad URIs, invalid settings)."""

    pass


class DescriptorLoadError(RepositoryError):
    """Raised when a descriptor file cannot be loaded.

    Attributes:
        path: Path to the descriptor file that failed to load.
        line: Line number where the error occurred (if available).
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        path: Path,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.path = path
        self.line = line
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the descriptor file at the specific line."""
        if self.line:
            return f"Check {self.path.name} at line {self.line}"
        return f"Check {self.path.name} for missing or invalid fields"
