"""Notifications between resources and the router that delivers them."""

from __future__ import annotations

import logging
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Timing(StrEnum):
    IMMEDIATE = "immediate"
    DELAYED = "delayed"


class Notification(BaseModel):
    """Invoke ``action`` on ``target`` because ``source`` changed."""

    model_config = ConfigDict(frozen=True)

    action: str
    target: str
    timing: Timing = Timing.DELAYED
    source: str | None = None

    @property
    def key(self) -> tuple[str | None, str, str]:
        return (self.source, self.target, self.action)

    def bind(self, source: str) -> Notification:
        """Return a copy sent from the given resource."""
        return self.model_copy(update={"source": source})

    def __str__(self) -> str:
        return f"{self.source} -> {self.target}:{self.action} ({self.timing})"


def notify(action: str, target: str, timing: Timing | str = Timing.DELAYED) -> Notification:
    """Build a notification for a step or resource declaration."""
    return Notification(action=action, target=target, timing=Timing(timing))


class NotificationRouter:
    """Queue notifications during a run and hand them out by timing.

    Immediate notifications are taken by the scheduler right after the
    notifying action completes. Delayed notifications are drained at the end
    of the run, at most once per (target, action).
    """

    def __init__(self) -> None:
        self._immediate: dict[tuple[str | None, str, str], Notification] = {}
        self._delayed: dict[tuple[str | None, str, str], Notification] = {}
        self._delivered: set[tuple[str, str]] = set()

    def enqueue(self, notification: Notification) -> None:
        key = notification.key
        if notification.timing is Timing.IMMEDIATE:
            # immediate supersedes a pending delayed request for the same key
            self._delayed.pop(key, None)
            self._immediate.pop(key, None)
            self._immediate[key] = notification
        elif key in self._immediate:
            logger.debug("Dropping %s; already queued as immediate", notification)
            return
        else:
            self._delayed.pop(key, None)
            self._delayed[key] = notification
        logger.debug("Queued %s", notification)

    @property
    def pending(self) -> int:
        return len(self._immediate) + len(self._delayed)

    def take_immediate(self) -> list[Notification]:
        """Remove and return the queued immediate notifications, oldest first."""
        taken = list(self._immediate.values())
        self._immediate.clear()
        return taken

    def drain(self) -> list[Notification]:
        """Remove and return delayed notifications, one per (target, action).

        A (target, action) pair already returned by an earlier drain in this
        run is not returned again.
        """
        merged: dict[tuple[str, str], Notification] = {}
        for notification in self._delayed.values():
            pair = (notification.target, notification.action)
            if pair in self._delivered:
                logger.debug("Skipping %s; target already notified this run", notification)
                continue
            merged.pop(pair, None)
            merged[pair] = notification
        self._delayed.clear()
        self._delivered.update(merged)
        return list(merged.values())
