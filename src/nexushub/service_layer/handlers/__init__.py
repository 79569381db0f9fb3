"""Service layer handlers."""

from collections.abc import Callable

from .community_handlers import COMMAND_HANDLERS as COMMUNITY_COMMAND_HANDLERS
from .event_handlers import COMMAND_HANDLERS as EVENT_COMMAND_HANDLERS
from .notification_handlers import COMMAND_HANDLERS as NOTIFICATION_COMMAND_HANDLERS
from .post_handlers import COMMAND_HANDLERS as POST_COMMAND_HANDLERS
from .report_handlers import COMMAND_HANDLERS as REPORT_COMMAND_HANDLERS
from .user_handlers import COMMAND_HANDLERS as USER_COMMAND_HANDLERS

__all__ = ["COMMAND_HANDLERS"]

COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    **USER_COMMAND_HANDLERS,
    **COMMUNITY_COMMAND_HANDLERS,
    **EVENT_COMMAND_HANDLERS,
    **POST_COMMAND_HANDLERS,
    **REPORT_COMMAND_HANDLERS,
    **NOTIFICATION_COMMAND_HANDLERS,
}
