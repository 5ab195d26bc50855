"""Per-name lock table.

Serializes operations on one dataset name within a process while leaving
other names free to proceed concurrently.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class NameLocks:
    """Table of locks keyed by dataset name.

    Entries exist only while some thread holds or waits for them, so the
    table does not grow with the number of names ever seen.

    Example:
        >>> locks = NameLocks()
        >>> with locks.hold("events"):
        ...     pass
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        """Hold the lock for name for the duration of the block."""
        with self._guard:
            entry = self._entries.get(name)
            if entry is None:
                entry = self._entries[name] = _Entry()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[name]

    def __len__(self) -> int:
        """Number of names currently locked or waited on."""
        with self._guard:
            return len(self._entries)
