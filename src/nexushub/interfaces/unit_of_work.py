"""Unit of Work interface for NexusHub.

Defines the AbstractUnitOfWork contract: a context-managed unit of work
exposing one accessor per collection and abstract commit/rollback methods.

Multi-document writes are not atomic across collections. Adapters make each
accessor mutation durable as it is issued; `commit` finalizes whatever is
still open and `rollback` releases resources.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass

from nexushub.domain.documents import (
    Comment,
    Community,
    Event,
    Notification,
    Post,
    Report,
    User,
)

from .collection import Collection


@dataclass(frozen=True, slots=True)
class CollectionBundle:
    """The collections available in a unit of work."""

    users: Collection[User]
    communities: Collection[Community]
    posts: Collection[Post]
    comments: Collection[Comment]
    events: Collection[Event]
    reports: Collection[Report]
    notifications: Collection[Notification]


class AbstractUnitOfWork(abc.ABC):
    """Contract for a unit of work."""

    collections: CollectionBundle

    @property
    def users(self) -> Collection[User]:
        return self.collections.users

    @property
    def communities(self) -> Collection[Community]:
        return self.collections.communities

    @property
    def posts(self) -> Collection[Post]:
        return self.collections.posts

    @property
    def comments(self) -> Collection[Comment]:
        return self.collections.comments

    @property
    def events(self) -> Collection[Event]:
        return self.collections.events

    @property
    def reports(self) -> Collection[Report]:
        return self.collections.reports

    @property
    def notifications(self) -> Collection[Notification]:
        return self.collections.notifications

    def __enter__(self) -> AbstractUnitOfWork:
        """Enter the unit of work context and return the unit.

        Implementations may acquire resources here.
        """
        return self

    def __exit__(self, *args):
        """Exit the unit of work context.

        Default behavior is to roll back on exit.
        """
        self.rollback()

    @abc.abstractmethod
    def commit(self):
        """Finalize the unit of work."""

    @abc.abstractmethod
    def rollback(self):
        """Release resources and discard anything not yet durable."""
