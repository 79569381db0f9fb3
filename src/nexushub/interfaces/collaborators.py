"""Ports for the black-box content services used when creating posts."""

import abc
from dataclasses import dataclass, field

# pylint: disable=too-few-public-methods


@dataclass(frozen=True)
class ModerationVerdict:
    is_flagged: bool
    reason: str | None = None


@dataclass(frozen=True)
class Categorization:
    category: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)


class ContentModerator(abc.ABC):
    """Decides whether user content may be published."""

    @abc.abstractmethod
    def moderate(self, content: str) -> ModerationVerdict:
        """Return a verdict for `content`."""


class ContentCategorizer(abc.ABC):
    """Suggests a category and tags for user content."""

    @abc.abstractmethod
    def categorize(self, content: str) -> Categorization:
        """Return a best-effort categorization of `content`."""
