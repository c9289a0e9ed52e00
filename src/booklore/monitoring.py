# ABOUTME: Registry of library folders under live filesystem monitoring.
# ABOUTME: Moves pause or unregister a library so the watcher never sees its own writes.

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class MonitoringRegistrar(Protocol):
    """Controls watching of library folders. Every call must be safe to repeat."""

    def register_paths(self, library_id: int, roots: Iterable[Path]) -> None: ...

    def unregister(self, library_id: int) -> None: ...

    def pause(self, library_id: int) -> None: ...

    def resume(self, library_id: int) -> None: ...

    def is_watching(self, library_id: int) -> bool: ...


class MonitoringRegistry:
    """In-process, thread-safe MonitoringRegistrar.

    A library is watched when it has registered roots and is not paused.
    Pausing keeps the registration; unregistering drops it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._roots: dict[int, set[Path]] = {}
        self._paused: set[int] = set()

    def register_paths(self, library_id: int, roots: Iterable[Path]) -> None:
        with self._lock:
            self._roots.setdefault(library_id, set()).update(Path(root) for root in roots)
        logger.debug("Registered monitoring for library %d", library_id)

    def unregister(self, library_id: int) -> None:
        with self._lock:
            self._roots.pop(library_id, None)
            self._paused.discard(library_id)
        logger.debug("Unregistered monitoring for library %d", library_id)

    def pause(self, library_id: int) -> None:
        with self._lock:
            self._paused.add(library_id)
        logger.debug("Paused monitoring for library %d", library_id)

    def resume(self, library_id: int) -> None:
        with self._lock:
            self._paused.discard(library_id)
        logger.debug("Resumed monitoring for library %d", library_id)

    def is_watching(self, library_id: int) -> bool:
        with self._lock:
            return bool(self._roots.get(library_id)) and library_id not in self._paused

    def registered_paths(self, library_id: int) -> set[Path]:
        with self._lock:
            return set(self._roots.get(library_id, ()))

    @contextmanager
    def paused(self, library_id: int) -> Iterator[None]:
        """Pause a library for the duration of a block, resuming even on error."""
        self.pause(library_id)
        try:
            yield
        finally:
            self.resume(library_id)
