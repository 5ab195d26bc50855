"""Unit tests for InMemoryMetadataStore and in-process concurrency."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

import pytest

from datarepo import (
    DatasetExistsError,
    InMemoryMetadataStore,
    MetadataStorePort,
    NoSuchDatasetError,
    Repository,
)
from datarepo.core.models import Format


if TYPE_CHECKING:
    from collections.abc import Callable

    from datarepo import DatasetDescriptor


@pytest.mark.storage
@pytest.mark.tier(0)
class TestInMemoryMetadataStore:
    """Tests for the store itself."""

    def test_implements_store_port(self) -> None:
        """The store satisfies MetadataStorePort."""
        assert isinstance(InMemoryMetadataStore(), MetadataStorePort)

    def test_uri_and_default_location(self) -> None:
        """Locations are labels in the memory: namespace."""
        store = InMemoryMetadataStore()

        assert store.uri == "memory:"
        assert store.default_location("events") == "memory:events"

    def test_accepts_every_format_and_location(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """Nothing is ever stored, so nothing is unsupported."""
        repo = Repository(InMemoryMetadataStore())

        handle = repo.create(
            "events", make_descriptor(format=Format.ORC, location="s3://any/where")
        )

        assert handle.format is Format.ORC
        assert handle.location == "s3://any/where"

    def test_missing_name_lists_available(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """The not-found error carries the names that do exist."""
        store = InMemoryMetadataStore()
        store.create("orders", make_descriptor())

        with pytest.raises(NoSuchDatasetError) as exc_info:
            store.load("events")

        assert exc_info.value.available == ["orders"]

    def test_stores_are_independent(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """Each instance is its own repository."""
        first = Repository.from_uri("memory:")
        second = Repository.from_uri("memory:")

        first.create("events", make_descriptor())

        assert second.exists("events") is False


@pytest.mark.core
@pytest.mark.tra("Contract.Concurrency")
@pytest.mark.tier(2)
class TestConcurrentRepository:
    """Tests for one Repository shared between threads."""

    def test_concurrent_creates_have_one_winner(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """Exactly one of many same-name creates succeeds."""
        repo = Repository(InMemoryMetadataStore())
        barrier = threading.Barrier(16)

        def attempt(index: int) -> str:
            barrier.wait()
            try:
                repo.create("events", make_descriptor(properties={"writer": str(index)}))
            except DatasetExistsError:
                return "exists"
            return str(index)

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(attempt, range(16)))

        winners = [r for r in results if r != "exists"]
        assert len(winners) == 1
        assert repo.load("events").descriptor.properties == {"writer": winners[0]}

    def test_create_delete_race_ends_consistent(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """exists() agrees with load() after racing creates and deletes."""
        repo = Repository(InMemoryMetadataStore())

        def churn(index: int) -> None:
            for _ in range(50):
                try:
                    if index % 2:
                        repo.create("events", make_descriptor())
                    else:
                        repo.delete("events")
                except (DatasetExistsError, NoSuchDatasetError):
                    pass

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(churn, range(8)))

        if repo.exists("events"):
            assert repo.load("events").name == "events"
            assert repo.list() == ["events"]
        else:
            with pytest.raises(NoSuchDatasetError):
                repo.load("events")
            assert repo.list() == []

    def test_distinct_names_all_succeed(
        self, make_descriptor: Callable[..., DatasetDescriptor]
    ) -> None:
        """Creates of different names do not interfere."""
        repo = Repository(InMemoryMetadataStore())
        names = [f"dataset_{i}" for i in range(32)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda n: repo.create(n, make_descriptor()), names))

        assert repo.list() == sorted(names)
