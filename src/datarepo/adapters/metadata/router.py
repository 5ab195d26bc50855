"""URI scheme-based selection of metadata stores."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from datarepo.core.exceptions import ConfigurationError


if TYPE_CHECKING:
    from datarepo.core.ports import MetadataStorePort


def parse_uri_scheme(uri: str) -> str | None:
    """Extract the URI scheme from a repository URI.

    Args:
        uri: Repository URI or file path.

    Returns:
        The scheme (e.g., 's3', 'file', 'memory') or None for local paths.
    """
    if "://" in uri:
        scheme = uri.split("://", 1)[0]
        # Avoid confusing Windows drive letters (C:) with schemes
        if len(scheme) > 1:
            return scheme.lower()
    elif uri.startswith("memory:"):
        return "memory"
    return None


def strip_file_scheme(uri: str) -> str:
    """Strip file:// prefix from URI, returning plain path.

    Args:
        uri: URI that may have file:// prefix.

    Returns:
        The path without file:// prefix.
    """
    if uri.startswith("file://"):
        return uri[7:]  # len("file://") == 7
    return uri


def create_store(uri: str, s3_client: Any | None = None) -> MetadataStorePort:
    """Create the metadata store for a repository URI.

    Args:
        uri: "memory:", a local path or file:// URI, or s3://bucket/prefix.
        s3_client: Optional boto3 S3 client. If not provided, creates default.

    Returns:
        A store implementing MetadataStorePort.

    Raises:
        ConfigurationError: If uri is empty or no store handles its scheme.
    """
    from datarepo.adapters.metadata import (
        FilesystemMetadataStore,
        InMemoryMetadataStore,
        S3MetadataStore,
    )

    if not uri:
        raise ConfigurationError("Repository URI cannot be empty")

    scheme = parse_uri_scheme(uri)
    if scheme == "memory":
        return InMemoryMetadataStore()
    if scheme in ("file", None):
        return FilesystemMetadataStore(strip_file_scheme(uri))
    if scheme == "s3":
        return S3MetadataStore(uri, client=s3_client)
    raise ConfigurationError(
        f"No repository backend registered for scheme '{scheme}'"
    )
