"""Bootstrap the message bus with handlers, units of work and collaborators."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

from nexushub import config
from nexushub.adapters.content import BlocklistModerator, KeywordCategorizer
from nexushub.adapters.db.engine import make_engine
from nexushub.adapters.db.metadata import metadata
from nexushub.adapters.documents.in_memory import InMemoryDocumentStore
from nexushub.adapters.id_generators import ULIDGenerator
from nexushub.adapters.unit_of_work import InMemoryUnitOfWork, SqlAlchemyUnitOfWork
from nexushub.service_layer.handlers import COMMAND_HANDLERS
from nexushub.service_layer.messagebus import MessageBus

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from nexushub.interfaces.collaborators import ContentCategorizer, ContentModerator
    from nexushub.interfaces.id_generator import IdGenerator
    from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
    from nexushub.service_layer.commands import Command

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """Application wiring shared by every request.

    Units of work are not shared: `uow()` and `message_bus()` build fresh
    ones from the shared engine or store.
    """

    uow_factory: Callable[[], AbstractUnitOfWork]
    id_generator: IdGenerator
    moderator: ContentModerator
    categorizer: ContentCategorizer
    command_handlers: Mapping[type[Command], Callable[..., Any]] = field(
        default_factory=lambda: dict(COMMAND_HANDLERS)
    )
    engine: Engine | None = None

    def uow(self) -> AbstractUnitOfWork:
        return self.uow_factory()

    def message_bus(self) -> MessageBus:
        """A message bus bound to a new unit of work."""
        return build_message_bus(
            self.uow(),
            self.command_handlers,
            id_generator=self.id_generator,
            moderator=self.moderator,
            categorizer=self.categorizer,
        )


def build_message_bus(
    uow: AbstractUnitOfWork,
    command_handlers: Mapping[type[Command], Callable[..., Any]],
    **extra_dependencies: object,
) -> MessageBus:
    """Build a message bus with injected dependencies."""
    dependencies = {"uow": uow, **extra_dependencies}
    injected_command_handlers = {
        command_type: inject_dependencies(handler, dependencies)
        for command_type, handler in command_handlers.items()
    }

    return MessageBus(
        uow,
        command_handlers=injected_command_handlers,
    )


def inject_dependencies(
    handler: Callable, dependencies: Mapping[str, object]
) -> Callable:
    """Inject dependencies into a handler function based on its parameters."""
    params = inspect.signature(handler).parameters
    deps = {
        name: dependency for name, dependency in dependencies.items() if name in params
    }
    return partial(handler, **deps)


def _default_collaborators() -> tuple[ContentModerator, ContentCategorizer]:
    return BlocklistModerator(config.get_moderation_blocklist()), KeywordCategorizer()


def bootstrap_memory(
    store: InMemoryDocumentStore | None = None,
    id_generator: IdGenerator | None = None,
    moderator: ContentModerator | None = None,
    categorizer: ContentCategorizer | None = None,
) -> AppContainer:
    """Wire the application over an in-memory document store."""
    store = store or InMemoryDocumentStore()
    default_moderator, default_categorizer = _default_collaborators()
    logger.debug("Bootstrapping with the in-memory document store")
    return AppContainer(
        uow_factory=lambda: InMemoryUnitOfWork(store),
        id_generator=id_generator or ULIDGenerator(),
        moderator=moderator or default_moderator,
        categorizer=categorizer or default_categorizer,
    )


def bootstrap_sql(
    url: str,
    *,
    create_schema: bool = False,
    id_generator: IdGenerator | None = None,
    moderator: ContentModerator | None = None,
    categorizer: ContentCategorizer | None = None,
) -> AppContainer:
    """Wire the application over a SQL database.

    Args:
        url: SQLAlchemy database URL.
        create_schema: Create the tables directly instead of relying on
            ``nexushub db upgrade`` (handy for in-memory SQLite).
    """
    engine = make_engine(url)
    if create_schema:
        metadata.create_all(engine)
    default_moderator, default_categorizer = _default_collaborators()
    logger.debug("Bootstrapping with database %s", engine.url.render_as_string())
    return AppContainer(
        uow_factory=lambda: SqlAlchemyUnitOfWork(engine),
        id_generator=id_generator or ULIDGenerator(),
        moderator=moderator or default_moderator,
        categorizer=categorizer or default_categorizer,
        engine=engine,
    )


def bootstrap() -> AppContainer:
    """Bootstrap against the database named by ``NEXUSHUB_DB_URL``."""
    return bootstrap_sql(config.get_db_url())
