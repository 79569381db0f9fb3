"""ID generators for NexusHub."""

import threading

from ulid import monotonic

from nexushub.interfaces.id_generator import IdGenerator

# pylint: disable=too-few-public-methods


class ULIDGenerator(IdGenerator):
    """Thread-safe monotonic ULID generator.

    ULIDs are unique, lexicographically sortable identifiers made of a
    timestamp and a random component. Uses the `ulid-py` library.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate a new ULID (serialized across threads)."""
        with self._lock:
            return str(monotonic.new())


class SimpleIdGenerator(IdGenerator):
    """Sequential, zero-padded 26-digit ids (valid ULID characters).

    Note:
        Not suitable for production use; primarily for testing and demos.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = start
        self._lock = threading.Lock()

    def new_id(self) -> str:
        """Generate the next identifier."""
        with self._lock:
            self._counter += 1
            return f"{self._counter:026d}"
