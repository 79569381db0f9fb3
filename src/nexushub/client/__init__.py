"""Python client for the NexusHub API, with optimistic UI helpers."""

from .api import ApiError, NexusHubClient
from .interactions import PostInteractions, PostState
from .optimistic import ActionResult, ActionStatus, OptimisticUpdateController
from .session import SessionChanged, SessionContext, SessionUser

__all__ = [
    "ActionResult",
    "ActionStatus",
    "ApiError",
    "NexusHubClient",
    "OptimisticUpdateController",
    "PostInteractions",
    "PostState",
    "SessionChanged",
    "SessionContext",
    "SessionUser",
]
