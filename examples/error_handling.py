"""Error handling patterns with recovery hints.

This example demonstrates how to handle common errors and use
the recovery_hint property to provide actionable guidance.
"""

from datarepo import (
    Dataset,
    DatasetDescriptor,
    DatasetExistsError,
    DatasetLocationError,
    NoSuchDatasetError,
    Repository,
    # Exceptions
    RepositoryError,
    StorageAccessError,
    UnsupportedUpdateError,
)


repo = Repository.from_uri("memory:")


# Pattern 1: Create or reuse
def load_or_create(repo: Repository, name: str, descriptor: DatasetDescriptor) -> Dataset:
    """Return the existing dataset, creating it on first use."""
    try:
        return repo.create(name, descriptor)
    except DatasetExistsError:
        return repo.load(name)


# Pattern 2: Handle unknown dataset names
def load_with_suggestions(repo: Repository, name: str) -> Dataset:
    """Load a dataset with helpful error messages."""
    try:
        return repo.load(name)
    except NoSuchDatasetError as e:
        # recovery_hint lists available datasets when the store knows them
        print(f"Dataset '{name}' not found.")
        print(f"Hint: {e.recovery_hint}")
        raise


# Pattern 3: Apply an update only when it is compatible
def try_update(repo: Repository, name: str, descriptor: DatasetDescriptor) -> bool:
    """Update the descriptor, reporting rejected changes instead of failing."""
    try:
        repo.update(name, descriptor)
    except UnsupportedUpdateError as e:
        print(f"Update rejected: {e.reason}")
        print(f"Hint: {e.recovery_hint}")
        return False
    return True


# Pattern 4: Catch-all for any library error
def delete_safe(repo: Repository, name: str) -> bool:
    """Delete a dataset with comprehensive error handling."""
    try:
        return repo.delete(name)
    except DatasetLocationError as e:
        # Must come before NoSuchDatasetError, which it subclasses
        print(f"Cannot locate data for {e.name}: {e.recovery_hint}")
        return False
    except NoSuchDatasetError:
        return False
    except StorageAccessError as e:
        print(f"Access denied to: {e.source}")
        print(f"Hint: {e.recovery_hint}")
        return False
    except RepositoryError as e:
        # Catches any other library error
        print(f"Error: {e}")
        if e.recovery_hint:
            print(f"Hint: {e.recovery_hint}")
        return False
