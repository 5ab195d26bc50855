"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
shared fixtures for the test suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import boto3
import pytest
from moto import mock_aws

from datarepo.adapters.metadata import (
    FilesystemMetadataStore,
    InMemoryMetadataStore,
    S3MetadataStore,
)
from datarepo.core.models import (
    DatasetDescriptor,
    FieldPartitioner,
    FieldType,
    Format,
    PartitionKind,
    PartitionStrategy,
    Schema,
    SchemaField,
)
from datarepo.core.services import Repository


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

BACKENDS = ["memory", "filesystem", "s3"]


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, ports, and services")
    config.addinivalue_line("markers", "storage: Metadata store adapters (s3, filesystem, memory)")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")
    config.addinivalue_line(
        "markers", "tra: Test Responsibility Anchor (TRA) - namespace.Anchor format"
    )
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow, 4=manual)",
    )


@pytest.fixture
def s3_client() -> Iterator[object]:
    """Create a mocked S3 client with a test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="test-bucket")
        yield client


@pytest.fixture
def make_descriptor() -> Callable[..., DatasetDescriptor]:
    """Factory for small, valid descriptors.

    The default schema has an id, a payload and a timestamp field, so
    every partition kind can be exercised against it.
    """

    def factory(
        *,
        format: Format = Format.PARQUET,
        extra_fields: tuple[SchemaField, ...] = (),
        partitioned: bool = False,
        location: str | None = None,
        properties: dict[str, str] | None = None,
    ) -> DatasetDescriptor:
        schema = Schema(
            fields=(
                SchemaField("id", FieldType.LONG, nullable=False),
                SchemaField("payload", FieldType.STRING),
                SchemaField("created_at", FieldType.TIMESTAMP),
                *extra_fields,
            ),
            name="event",
        )
        strategy = None
        if partitioned:
            strategy = PartitionStrategy(
                fields=(
                    FieldPartitioner("created_at", PartitionKind.YEAR),
                    FieldPartitioner("id", PartitionKind.HASH, buckets=16),
                )
            )
        return DatasetDescriptor(
            schema=schema,
            format=format,
            partition_strategy=strategy,
            location=location,
            properties=properties or {},
        )

    return factory


@pytest.fixture(params=BACKENDS)
def repository(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[Repository]:
    """A fresh, empty Repository for each backend."""
    if request.param == "memory":
        yield Repository(InMemoryMetadataStore())
    elif request.param == "filesystem":
        yield Repository(FilesystemMetadataStore(tmp_path / "repo"))
    else:
        with mock_aws():
            client = boto3.client("s3", region_name="us-east-1")
            client.create_bucket(Bucket="test-bucket")
            yield Repository(S3MetadataStore("s3://test-bucket/repo", client=client))


@pytest.fixture
def debug_logging() -> Iterator[None]:
    """Emit every log level for the duration of a test."""
    from datarepo.logging_config import configure_logging

    configure_logging("DEBUG")
    yield
    configure_logging()
