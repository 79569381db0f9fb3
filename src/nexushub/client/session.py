"""The logged-in user of a client, persisted across processes.

The session lives in a JSON file under the platform state directory. Every
process holding a `SessionContext` sees the same file; `sync` picks up
changes written by another process and notifies listeners.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from pathlib import Path

from platformdirs import user_state_dir

logger = logging.getLogger(__name__)

SESSION_FILE = "session.json"


@dataclass(frozen=True)
class SessionUser:
    id: str
    name: str
    email: str | None = None
    avatar_url: str | None = None


@dataclass(frozen=True)
class SessionChanged:
    """Sent to listeners whenever the logged-in user changes.

    ``external`` is True when the change was written by another process.
    """

    previous: SessionUser | None
    current: SessionUser | None
    external: bool = False


Listener = Callable[[SessionChanged], None]


def default_session_path() -> Path:
    return Path(user_state_dir("nexushub", appauthor=False)) / SESSION_FILE


class SessionContext:
    """Explicit load/set/clear lifecycle for the current user."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_session_path()
        self._user: SessionUser | None = None
        self._listeners: list[Listener] = []

    @property
    def user(self) -> SessionUser | None:
        return self._user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(self) -> SessionUser | None:
        """Read the session file, notifying listeners if the user differs."""
        self._update(self._read(), external=False)
        return self._user

    def set(self, user: SessionUser) -> None:
        self._write(user)
        self._update(user, external=False)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        self._update(None, external=False)

    def sync(self) -> bool:
        """Adopt a session written by another process.

        Returns:
            True if the user changed.
        """
        return self._update(self._read(), external=True)

    def _update(self, user: SessionUser | None, external: bool) -> bool:
        if user == self._user:
            return False
        event = SessionChanged(previous=self._user, current=user, external=external)
        self._user = user
        logger.debug("Session changed: %s", event)
        for listener in list(self._listeners):
            listener(event)
        return True

    def _read(self) -> SessionUser | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return SessionUser(**json.loads(raw))
        except (ValueError, TypeError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None

    def _write(self, user: SessionUser) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(user)), encoding="utf-8")
        tmp.replace(self.path)
