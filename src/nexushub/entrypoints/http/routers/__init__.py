"""API routers, one per resource."""

from . import communities, events, health, notifications, posts, reports, search, users

ROUTERS = (
    health.router,
    users.router,
    communities.router,
    events.router,
    posts.router,
    reports.router,
    notifications.router,
    search.router,
)

__all__ = ["ROUTERS"]
