"""S3 metadata store using boto3.

Layout under the repository prefix:

    s3://bucket/prefix/.metadata/<name>.json   descriptor documents
    s3://bucket/prefix/<name>/                 default data location
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from datarepo.core.exceptions import (
    ConfigurationError,
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

    from mypy_boto3_s3 import S3Client

    from datarepo.core.models import DatasetDescriptor


METADATA_PREFIX = ".metadata/"
_SUFFIX = ".json"
_SUPPORTED_FORMATS = frozenset({Format.AVRO, Format.PARQUET, Format.JSON})
# delete_objects accepts at most 1000 keys per request
_DELETE_BATCH = 1000

_NOT_FOUND_CODES = ("404", "NoSuchKey", "NotFound")
_CONFLICT_CODES = ("412", "PreconditionFailed", "ConditionalRequestConflict")
# Conditional updates retry while other writers keep replacing the document
_UPDATE_ATTEMPTS = 5


def parse_s3_uri_prefix(uri: str) -> tuple[str, str]:
    """Parse an S3 URI prefix into bucket and key prefix.

    The key prefix is returned with a trailing slash, or empty for a
    bucket-level prefix.

    Args:
        uri: S3 URI in format s3://bucket or s3://bucket/prefix.

    Returns:
        Tuple of (bucket, key_prefix).

    Raises:
        ConfigurationError: If uri is not a valid S3 URI.
    """
    if not uri.startswith("s3://"):
        raise ConfigurationError(f"Invalid S3 URI: {uri}")

    path = uri[5:]  # Remove s3://
    bucket, _, key_prefix = path.partition("/")
    if not bucket:
        raise ConfigurationError(f"Invalid S3 URI (missing bucket): {uri}")

    key_prefix = key_prefix.strip("/")
    return bucket, f"{key_prefix}/" if key_prefix else ""


class S3MetadataStore:
    """Metadata store for a repository under an S3 prefix.

    Implements MetadataStorePort for AWS S3. Creates use a conditional
    put (If-None-Match: *), so S3 itself guarantees a single winner among
    concurrent creators. Updates replace the descriptor object in a single
    put, which S3 applies atomically.
    """

    def __init__(self, root: str, client: S3Client | None = None) -> None:
        """Initialize S3 metadata store.

        Args:
            root: Repository root, s3://bucket or s3://bucket/prefix.
            client: Optional boto3 S3 client. If not provided, creates a default client.

        Raises:
            ConfigurationError: If root is not a valid S3 URI.
        """
        self._bucket, self._prefix = parse_s3_uri_prefix(root)
        self._client = client or boto3.client("s3")

    @property
    def bucket(self) -> str:
        """Bucket holding the repository."""
        return self._bucket

    @property
    def uri(self) -> str:
        """s3:// URI of the repository root."""
        return f"s3://{self._bucket}/{self._prefix}"

    def _descriptor_key(self, name: str) -> str:
        return f"{self._prefix}{METADATA_PREFIX}{name}{_SUFFIX}"

    def _descriptor_uri(self, name: str) -> str:
        return f"s3://{self._bucket}/{self._descriptor_key(name)}"

    def default_location(self, name: str) -> str:
        """Return s3://bucket/prefix/<name>."""
        return f"s3://{self._bucket}/{self._prefix}{name}"

    def normalize_location(self, location: str) -> str:
        """Require locations inside this store's bucket.

        Raises:
            UnsupportedDescriptorError: For non-S3 locations or other buckets.
        """
        if not location.startswith("s3://"):
            raise UnsupportedDescriptorError(
                f"location '{location}' is not an s3:// URI"
            )
        try:
            bucket, key_prefix = parse_s3_uri_prefix(location)
        except ConfigurationError as e:
            raise UnsupportedDescriptorError(str(e)) from e
        if bucket != self._bucket:
            raise UnsupportedDescriptorError(
                f"location bucket '{bucket}' differs from repository bucket "
                f"'{self._bucket}'"
            )
        metadata_prefix = f"{self._prefix}{METADATA_PREFIX}"
        if not key_prefix or self._prefix.startswith(key_prefix):
            raise UnsupportedDescriptorError(
                f"location '{location}' would contain the repository root"
            )
        if key_prefix.startswith(metadata_prefix):
            raise UnsupportedDescriptorError(
                f"location '{location}' is inside the repository metadata"
            )
        return f"s3://{bucket}/{key_prefix.rstrip('/')}"

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
        """Put a new descriptor object unless one already exists.

        Raises:
            DatasetExistsError: If a descriptor for name already exists.
            UnsupportedDescriptorError: If the location overlaps the data
                of another dataset.
            StorageAccessError: If access is denied.
            StorageError: For other S3 errors.
        """
        if self.exists(name):
            raise DatasetExistsError(name)
        if descriptor.location is not None:
            self._check_location_free(name, descriptor.location)

        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=self._descriptor_key(name),
                Body=descriptor_to_json(descriptor).encode("utf-8"),
                ContentType="application/json",
                IfNoneMatch="*",
            )
        except ClientError as e:
            if _error_code(e) in _CONFLICT_CODES:
                raise DatasetExistsError(name) from None
            raise self._translate_client_error(e, self._descriptor_uri(name)) from e
        except BotoCoreError as e:
            raise self._translate_client_error(e, self._descriptor_uri(name)) from e

    def load(self, name: str) -> DatasetDescriptor:
        """Read the descriptor object for name.

        Raises:
            NoSuchDatasetError: If there is no descriptor for name.
            MetadataCorruptError: If the document cannot be decoded.
            StorageAccessError: If access is denied.
            StorageError: For other S3 errors.
        """
        source = self._descriptor_uri(name)
        try:
            response = self._client.get_object(
                Bucket=self._bucket, Key=self._descriptor_key(name)
            )
            body = response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise NoSuchDatasetError(name) from None
            raise self._translate_client_error(e, source) from e
        except BotoCoreError as e:
            raise self._translate_client_error(e, source) from e

        try:
            return descriptor_from_json(body)
        except InvalidArgumentError as e:
            raise MetadataCorruptError(
                f"Descriptor for '{name}' is corrupt: {e}",
                source=source,
                cause=e,
            ) from e

    def update(self, name: str, descriptor: DatasetDescriptor) -> None:
        """Replace the descriptor object for name.

        The put is conditional on the ETag seen just before it
        (If-Match), so a delete from another process that lands in
        between makes the update fail instead of reviving the dataset.

        Raises:
            NoSuchDatasetError: If there is no descriptor for name.
            StorageAccessError: If access is denied.
            StorageError: For other S3 errors.
        """
        source = self._descriptor_uri(name)
        body = descriptor_to_json(descriptor).encode("utf-8")
        for _ in range(_UPDATE_ATTEMPTS):
            etag = self._etag(name)
            if etag is None:
                raise NoSuchDatasetError(name)
            try:
                self._client.put_object(
                    Bucket=self._bucket,
                    Key=self._descriptor_key(name),
                    Body=body,
                    ContentType="application/json",
                    IfMatch=etag,
                )
                return
            except ClientError as e:
                if _error_code(e) not in _CONFLICT_CODES + _NOT_FOUND_CODES:
                    raise self._translate_client_error(e, source) from e
            except BotoCoreError as e:
                raise self._translate_client_error(e, source) from e

        raise StorageError(
            f"Descriptor kept changing during update: {source}",
            source=source,
        )

    def delete(self, name: str) -> None:
        """Delete the descriptor object, then every object under the location.

        Raises:
            NoSuchDatasetError: If the dataset does not exist.
            DatasetLocationError: If data exists without a readable
                descriptor.
            StorageAccessError: If access is denied.
            StorageError: For other S3 errors.
        """
        try:
            descriptor = self.load(name)
        except MetadataCorruptError as e:
            raise DatasetLocationError(name, cause=e) from e
        except NoSuchDatasetError:
            orphan = self.default_location(name)
            if self._list_keys(f"{self._prefix}{name}/", limit=1):
                raise DatasetLocationError(name, location=orphan) from None
            raise

        source = self._descriptor_uri(name)
        try:
            self._client.delete_object(
                Bucket=self._bucket, Key=self._descriptor_key(name)
            )
        except (BotoCoreError, ClientError) as e:
            raise self._translate_client_error(e, source) from e

        if descriptor.location is not None:
            _, data_prefix = parse_s3_uri_prefix(descriptor.location)
            self._delete_prefix(data_prefix)

    def exists(self, name: str) -> bool:
        """Check whether a descriptor object exists for name.

        Raises:
            StorageAccessError: If access is denied.
            StorageError: For other S3 errors.
        """
        return self._etag(name) is not None

    def list(self) -> builtins.list[str]:
        """List names with a descriptor object, sorted."""
        metadata_prefix = f"{self._prefix}{METADATA_PREFIX}"
        names = []
        for key in self._list_keys(metadata_prefix):
            relative = key[len(metadata_prefix) :]
            if "/" in relative or not relative.endswith(_SUFFIX):
                continue
            names.append(relative[: -len(_SUFFIX)])
        return sorted(names)

    def _etag(self, name: str) -> str | None:
        """Return the descriptor object's ETag, or None if it is absent."""
        try:
            response = self._client.head_object(
                Bucket=self._bucket, Key=self._descriptor_key(name)
            )
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return None
            raise self._translate_client_error(e, self._descriptor_uri(name)) from e
        except BotoCoreError as e:
            raise self._translate_client_error(e, self._descriptor_uri(name)) from e
        return response["ETag"]

    def _check_location_free(self, name: str, location: str) -> None:
        """Refuse locations that share a key prefix with another dataset.

        Each other dataset claims its recorded location and its default
        location.

        Raises:
            UnsupportedDescriptorError: If location equals, contains or sits
                inside a claimed prefix.
        """
        _, prefix = parse_s3_uri_prefix(location)
        for other in self.list():
            if other == name:
                continue
            claimed = [f"{self._prefix}{other}/"]
            try:
                other_location = self.load(other).location
            except (NoSuchDatasetError, MetadataCorruptError):
                other_location = None
            if other_location is not None:
                claimed.append(parse_s3_uri_prefix(other_location)[1])
            for other_prefix in claimed:
                if prefix.startswith(other_prefix) or other_prefix.startswith(prefix):
                    raise UnsupportedDescriptorError(
                        f"location '{location}' overlaps the data of dataset '{other}'"
                    )

    def _list_keys(self, prefix: str, limit: int | None = None) -> builtins.list[str]:
        """List object keys under prefix, stopping after limit keys."""
        keys: builtins.list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    keys.append(obj["Key"])
                    if limit is not None and len(keys) >= limit:
                        return keys
        except (BotoCoreError, ClientError) as e:
            raise self._translate_client_error(
                e, f"s3://{self._bucket}/{prefix}"
            ) from e
        return keys

    def _delete_prefix(self, prefix: str) -> None:
        """Delete every object whose key starts with prefix."""
        keys = self._list_keys(prefix)
        for start in range(0, len(keys), _DELETE_BATCH):
            batch = keys[start : start + _DELETE_BATCH]
            try:
                self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                raise self._translate_client_error(
                    e, f"s3://{self._bucket}/{prefix}"
                ) from e

    def _translate_client_error(
        self, error: BotoCoreError | ClientError, source: str
    ) -> StorageError:
        """Translate a botocore error to a domain exception.

        Args:
            error: The ClientError returned by S3, or the BotoCoreError
                raised for connection, timeout and credential faults.
            source: The source URI for context.

        Returns:
            Appropriate StorageError subclass.
        """
        if isinstance(error, NoCredentialsError):
            return StorageAccessError(
                f"No AWS credentials found for: {source}",
                source=source,
                cause=error,
            )
        if isinstance(error, BotoCoreError):
            return StorageError(
                f"S3 unreachable ({type(error).__name__}): {error}",
                source=source,
                cause=error,
            )

        code = _error_code(error)

        # Access denied errors
        if code in ("403", "AccessDenied"):
            return StorageAccessError(
                f"Access denied: {source}",
                source=source,
                cause=error,
            )

        # Generic S3 error
        return StorageError(
            f"S3 error ({code}): {error}",
            source=source,
            cause=error,
        )


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))
