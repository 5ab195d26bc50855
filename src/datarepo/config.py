"""Configuration utilities for datarepo.

This module provides project-root discovery and owns all environment
variable parsing. Other modules consume a typed settings object instead
of raw env reads.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from datarepo.core.exceptions import ConfigurationError
from datarepo.logging_config import DEFAULT_LOG_LEVEL, parse_log_level


DEFAULT_REPOSITORY_DIR = "datasets"


def find_project_root(start: Path | None = None) -> Path:
    """Find the project root directory by walking up from start directory.

    Searches for marker files in the following priority order:
    1. .datarepo - Explicit project marker
    2. pyproject.toml - Python project root
    3. .git - Version control root

    Args:
        start: Directory to start searching from. If None, uses current directory.

    Returns:
        Path to project root directory. Returns start directory if no markers found.

    Example:
        >>> from datarepo.config import find_project_root
        >>> root = find_project_root()
        >>> repository_root = root / "datasets"
    """
    if start is None:
        start = Path.cwd()

    markers = [".datarepo", "pyproject.toml", ".git"]
    current = start.resolve()

    for parent in [current, *current.parents]:
        for marker in markers:
            if (parent / marker).exists():
                return parent

    return start.resolve()


@dataclass(frozen=True)
class RepositorySettings:
    """Validated runtime settings.

    Attributes:
        uri: Repository URI ("memory:", a path, file://..., or s3://...).
        s3_region: Optional AWS region for the S3 client.
        s3_profile: Optional AWS profile for boto3 session initialization.
        log_level: Minimum log level name.
    """

    uri: str
    s3_region: str | None = None
    s3_profile: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, start: Path | None = None) -> RepositorySettings:
        """Build settings from process environment variables.

        DATAREPO_URI defaults to the "datasets" directory under the
        discovered project root.

        Args:
            start: Directory to start project root discovery from.

        Returns:
            A validated settings object.

        Raises:
            ConfigurationError: If environment values are invalid.
        """
        uri = os.getenv("DATAREPO_URI")
        if uri is None:
            uri = str(find_project_root(start) / DEFAULT_REPOSITORY_DIR)
        elif not uri.strip():
            raise ConfigurationError(
                "DATAREPO_URI is set but empty. Unset it or point it at a repository."
            )

        log_level = os.getenv("DATAREPO_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        parse_log_level(log_level)

        return cls(
            uri=uri.strip(),
            s3_region=os.getenv("DATAREPO_S3_REGION") or None,
            s3_profile=os.getenv("DATAREPO_S3_PROFILE") or None,
            log_level=log_level,
        )

    def with_uri(self, uri: str) -> RepositorySettings:
        """Return new settings pointing at a different repository."""
        return RepositorySettings(
            uri=uri,
            s3_region=self.s3_region,
            s3_profile=self.s3_profile,
            log_level=self.log_level,
        )

    def create_s3_client(self) -> Any | None:
        """Build a boto3 S3 client from the S3 settings.

        Returns:
            A client when a region or profile is configured, else None so the
            store falls back to boto3's default client.
        """
        if self.s3_region is None and self.s3_profile is None:
            return None

        import boto3

        session = boto3.Session(
            profile_name=self.s3_profile,
            region_name=self.s3_region,
        )
        return session.client("s3")
