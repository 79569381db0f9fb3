"""Interface for ID generators."""

import abc

# pylint: disable=too-few-public-methods


class IdGenerator(abc.ABC):
    """Contract for a document ID generator.

    Generated ids must be 26-character ULID strings so that accessors accept
    them.
    """

    @abc.abstractmethod
    def new_id(self) -> str:
        """Generate a new unique identifier."""
