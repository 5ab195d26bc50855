"""Filesystem metadata store for local repositories.

Layout under the repository root:

    <root>/.metadata/<name>.json   descriptor documents
    <root>/<name>/                 default data location
"""

from __future__ import annotations

import errno
import fcntl
import os
import shutil
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from datarepo.core.exceptions import (
    DatasetExistsError,
    DatasetLocationError,
    InvalidArgumentError,
    MetadataCorruptError,
    NoSuchDatasetError,
    StorageAccessError,
    StorageError,
    UnsupportedDescriptorError,
)
from datarepo.core.models import Format
from datarepo.core.serialization import descriptor_from_json, descriptor_to_json


if TYPE_CHECKING:
    import builtins
    from collections.abc import Iterator

    from datarepo.core.models import DatasetDescriptor


METADATA_DIR = ".metadata"
_SUFFIX = ".json"
_SUPPORTED_FORMATS = frozenset({Format.AVRO, Format.PARQUET, Format.CSV, Format.JSON})


class FilesystemMetadataStore:
    """Metadata store for a repository on the local filesystem.

    Implements MetadataStorePort. Descriptor documents are written to a
    temporary file first and then published in one step: os.link for
    create, which fails if the target exists, and os.replace for update.
    Readers therefore only ever see complete documents, and concurrent
    creates from any number of processes produce exactly one winner.

    Attributes:
        root: Repository root directory.
    """

    def __init__(self, root: Path | str) -> None:
        """Initialize the store.

        Args:
            root: Repository root directory. Created lazily on first create.
        """
        self._root = Path(root).expanduser().resolve()

    @property
    def root(self) -> Path:
        """Repository root directory."""
        return self._root

    @property
    def uri(self) -> str:
        """file:// URI of the repository root."""
        return self._root.as_uri()

    def _metadata_dir(self) -> Path:
        return self._root / METADATA_DIR

    def _descriptor_path(self, name: str) -> Path:
        return self._metadata_dir() / f"{name}{_SUFFIX}"

    def _temp_path(self, name: str, suffix: str) -> Path:
        # Leading dot keeps temp files out of list()
        return self._metadata_dir() / f".{name}.{uuid.uuid4().hex}{suffix}"

    def default_location(self, name: str) -> str:
        """Return <root>/<name>."""
        return str(self._root / name)

    def normalize_location(self, location: str) -> str:
        """Convert file:// URIs and relative paths to absolute paths.

        Raises:
            UnsupportedDescriptorError: For URIs with any other scheme.
        """
        if location.startswith("file://"):
            location = location[7:]  # len("file://") == 7
        elif "://" in location:
            scheme = location.split("://", 1)[0]
            raise UnsupportedDescriptorError(
                f"location scheme '{scheme}' is not supported by a filesystem repository"
            )
        path = Path(location).expanduser()
        if not path.is_absolute():
            path = self._root / path
        path = path.resolve()

        if path == self._root or path in self._root.parents:
            raise UnsupportedDescriptorError(
                f"location '{path}' would contain the repository root"
            )
        if path.is_relative_to(self._metadata_dir()):
            raise UnsupportedDescriptorError(
                f"location '{path}' is inside the repository metadata"
            )
        return str(path)

    def check_supported(self, descriptor: DatasetDescriptor) -> None:
        """Reject formats this store cannot host.

        Raises:
            UnsupportedDescriptorError: If the format is not supported.
        """
        if descriptor.format not in _SUPPORTED_FORMATS:
            supported = ", ".join(sorted(f.value for f in _SUPPORTED_FORMATS))
            raise UnsupportedDescriptorError(
                f"format '{descriptor.format}' is not supported (supported: {supported})"
            )

    def create(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Publish a new descriptor document and create the data directory.

        Raises:
            DatasetExistsError: If a descriptor for name already exists.
            UnsupportedDescriptorError: If the location overlaps the data
                of another dataset.
            StorageError: If the filesystem operation fails.
        """
        target = self._descriptor_path(name)
        if self.exists(name):
            raise DatasetExistsError(name)
        if descriptor.location is not None:
            self._check_location_free(name, Path(descriptor.location))

        try:
            self._metadata_dir().mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _translate_os_error(e, str(self._metadata_dir())) from e

        try:
            temp = self._write_temp(name, descriptor)
            try:
                os.link(temp, target)
            finally:
                temp.unlink(missing_ok=True)
        except FileExistsError:
            raise DatasetExistsError(name) from None
        except OSError as e:
            raise _translate_os_error(e, str(target)) from e

        if descriptor.location is not None:
            try:
                Path(descriptor.location).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                # Roll back so a failed create leaves nothing behind
                target.unlink(missing_ok=True)
                raise _translate_os_error(e, descriptor.location) from e

    def load(self, name: str) -> DatasetDescriptor:
        """Read the descriptor document for name.

        Raises:
            NoSuchDatasetError: If there is no descriptor for name.
            MetadataCorruptError: If the document cannot be decoded.
            StorageError: If the file cannot be read.
        """
        path = self._descriptor_path(name)
        try:
            raw = path.read_bytes()
        except FileNotFoundError:
            raise NoSuchDatasetError(name) from None
        except OSError as e:
            raise _translate_os_error(e, str(path)) from e

        try:
            return descriptor_from_json(raw)
        except InvalidArgumentError as e:
            raise MetadataCorruptError(
                f"Descriptor for '{name}' is corrupt: {e}",
                source=str(path),
                cause=e,
            ) from e

    def update(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Replace the descriptor document for name in one step.

        Holds the name's lock file, so a delete from another process either
        finishes first or waits until the new document is in place.

        Raises:
            NoSuchDatasetError: If there is no descriptor for name.
            StorageError: If the filesystem operation fails.
        """
        target = self._descriptor_path(name)
        with self._locked(name):
            if not target.is_file():
                raise NoSuchDatasetError(name)
            try:
                temp = self._write_temp(name, descriptor)
                try:
                    os.replace(temp, target)
                finally:
                    temp.unlink(missing_ok=True)
            except OSError as e:
                raise _translate_os_error(e, str(target)) from e

    def delete(self, name: str) -> None:
        """Remove the descriptor document, then the dataset's data.

        The document is renamed to a tombstone first, so the dataset
        disappears in one step before any data is touched. The name's lock
        file is held throughout.

        Raises:
            NoSuchDatasetError: If the dataset does not exist.
            DatasetLocationError: If data exists without a readable
                descriptor.
            StorageError: If the filesystem operation fails.
        """
        with self._locked(name):
            self._delete_locked(name)

    def _delete_locked(self, name: str) -> None:
        try:
            descriptor = self.load(name)
        except MetadataCorruptError as e:
            raise DatasetLocationError(name, cause=e) from e
        except NoSuchDatasetError:
            orphan = self._root / name
            if orphan.exists():
                raise DatasetLocationError(name, location=str(orphan)) from None
            raise

        tombstone = self._temp_path(name, ".deleted")
        try:
            os.rename(self._descriptor_path(name), tombstone)
        except FileNotFoundError:
            # Lost a race with another delete
            raise NoSuchDatasetError(name) from None
        except OSError as e:
            raise _translate_os_error(e, str(self._descriptor_path(name))) from e

        try:
            if descriptor.location is not None:
                shutil.rmtree(descriptor.location)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise _translate_os_error(e, descriptor.location or "") from e
        finally:
            tombstone.unlink(missing_ok=True)

    def exists(self, name: str) -> bool:
        """Check whether a descriptor document exists for name."""
        try:
            return self._descriptor_path(name).is_file()
        except OSError as e:
            raise _translate_os_error(e, str(self._descriptor_path(name))) from e

    def list(self) -> builtins.list[str]:
        """List names with a descriptor document, sorted."""
        metadata_dir = self._metadata_dir()
        try:
            entries = list(metadata_dir.iterdir())
        except FileNotFoundError:
            return []
        except OSError as e:
            raise _translate_os_error(e, str(metadata_dir)) from e

        return sorted(
            p.name[: -len(_SUFFIX)]
            for p in entries
            if p.name.endswith(_SUFFIX) and not p.name.startswith(".") and p.is_file()
        )

    @contextmanager
    def _locked(self, name: str) -> Iterator[None]:
        """Hold an exclusive flock on .metadata/.<name>.lock.

        Lock files are left in place; removing one while another process
        waits on it would let two holders in.
        """
        lock_path = self._metadata_dir() / f".{name}.lock"
        fd: int | None
        try:
            fd = os.open(lock_path, os.O_CREAT | os.O_RDWR, 0o644)
        except FileNotFoundError:
            fd = None
        except OSError as e:
            raise _translate_os_error(e, str(lock_path)) from e

        if fd is None:
            # No metadata directory, so there is nothing to guard
            yield
            return
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            yield
        finally:
            os.close(fd)

    def _check_location_free(self, name: str, location: Path) -> None:
        """Refuse locations that share a directory tree with another dataset.

        Each other dataset claims its recorded location and its default
        location; deleting either would otherwise remove the new data.

        Raises:
            UnsupportedDescriptorError: If location equals, contains or sits
                inside a claimed location.
        """
        for other in self.list():
            if other == name:
                continue
            claimed = [self._root / other]
            try:
                other_location = self.load(other).location
            except (NoSuchDatasetError, MetadataCorruptError):
                other_location = None
            if other_location is not None:
                claimed.append(Path(other_location))
            for path in claimed:
                if location.is_relative_to(path) or path.is_relative_to(location):
                    raise UnsupportedDescriptorError(
                        f"location '{location}' overlaps the data of dataset '{other}'"
                    )

    def _write_temp(self, name: str, descriptor: DatasetDescriptor) -> Path:
        """Write the document to a fresh temp file and fsync it."""
        temp = self._temp_path(name, ".tmp")
        with temp.open("w", encoding="utf-8") as f:
            f.write(descriptor_to_json(descriptor))
            f.flush()
            os.fsync(f.fileno())
        return temp


def _translate_os_error(error: OSError, source: str) -> StorageError:
    """Translate an OSError to a domain exception.

    Args:
        error: The OSError raised by the filesystem.
        source: The path involved, for context.

    Returns:
        StorageAccessError for permission problems, StorageError otherwise.
    """
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return StorageAccessError(
            f"Access denied: {source}",
            source=source,
            cause=error,
        )
    return StorageError(
        f"Filesystem error ({error.strerror or error}): {source}",
        source=source,
        cause=error,
    )
