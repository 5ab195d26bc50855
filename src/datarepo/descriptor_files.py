"""Descriptor file loading.

Reads dataset descriptors from JSON documents on disk, as used by the
CLI create and update commands.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from datarepo.core.exceptions import DescriptorLoadError, InvalidArgumentError
from datarepo.core.serialization import descriptor_from_json


if TYPE_CHECKING:
    from pathlib import Path

    from datarepo.core.models import DatasetDescriptor


def load_descriptor_file(path: Path) -> DatasetDescriptor:
    """Load a descriptor from a JSON file.

    Args:
        path: Path to the descriptor document.

    Returns:
        The decoded descriptor.

    Raises:
        DescriptorLoadError: If the file cannot be read or decoded. The
            line number is set for JSON syntax errors.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise DescriptorLoadError(
            f"Cannot read descriptor file {path}: {e.strerror or e}",
            path=path,
            cause=e,
        ) from e

    try:
        return descriptor_from_json(text)
    except InvalidArgumentError as e:
        line = e.__cause__.lineno if isinstance(e.__cause__, json.JSONDecodeError) else None
        raise DescriptorLoadError(
            f"Invalid descriptor in {path.name}: {e}",
            path=path,
            line=line,
            cause=e,
        ) from e

