"""Message bus routing commands to their handlers."""

import logging
from collections.abc import Callable
from typing import Any

from nexushub.domain.errors import DomainError
from nexushub.interfaces.collection import InvalidIdentifierError
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork

from .commands import Command
from .coordinator import WorkResult

logger = logging.getLogger(__name__)

# pylint: disable=too-few-public-methods

#: Errors that reject a request rather than signal a fault.
REJECTIONS = (DomainError, InvalidIdentifierError)


class NoHandlerForCommand(LookupError):
    """Exception raised when no handler is found for a command."""

    def __init__(self, cmd: Command) -> None:
        super().__init__(f"No handler found for command {type(cmd).__name__}")


class MessageBus:
    """Dispatches each command to its handler and returns the handler's result.

    Write handlers return a `WorkResult`; its outcome is logged here.
    Rejections (`REJECTIONS`) are logged at INFO, anything else with its
    traceback at ERROR. Both are re-raised for the entrypoint to map.

    Args:
        uow: The unit of work injected into the handlers; also exposed here
            for convenience.
        command_handlers: A mapping of command types to handlers accepting a
            single command argument (dependencies already injected).
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        command_handlers: dict[type[Command], Callable[..., Any]],
    ) -> None:
        self.uow = uow
        self._command_handlers = command_handlers

    def handle(self, cmd: Command) -> Any:
        """Run the handler registered for ``type(cmd)``.

        Raises:
            NoHandlerForCommand: If no handler is registered for the command type.
            Exception: Whatever the handler raises.
        """
        handler = self._command_handlers.get(type(cmd))
        if handler is None:
            logger.error("No handler found for command %s", type(cmd).__name__)
            raise NoHandlerForCommand(cmd)

        handler_name = self._get_handler_name(handler)
        logger.debug("Handling command %s with handler %s", cmd, handler_name)
        try:
            result = handler(cmd)
        except REJECTIONS as e:
            logger.info("%s rejected %s: %s", handler_name, type(cmd).__name__, e)
            raise
        except Exception:
            logger.exception(
                "Exception handling command %s with handler %s", cmd, handler_name
            )
            raise
        if isinstance(result, WorkResult):
            logger.debug(
                "%s finished %s with %d step(s)",
                handler_name,
                result.outcome.value,
                len(result.steps),
            )
        return result

    @staticmethod
    def _get_handler_name(fn: Callable[..., Any]) -> str:
        if hasattr(fn, "__name__"):
            return fn.__name__
        if hasattr(fn, "func") and hasattr(fn.func, "__name__"):
            return fn.func.__name__
        return repr(fn)
