"""Run: the declared resources of one convergence pass."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from enum import StrEnum
from typing import Any

from .config import RunConfig
from .context import Context
from .errors import UnknownResource
from .executor import Executor, RunOutcome
from .facts import Facts
from .notifications import Notification
from .resource import Resource, resource_class
from .shell import CommandRunner

logger = logging.getLogger(__name__)


class Run(Mapping[str, Resource]):
    """Declared resources keyed by resource key, converged in declaration order.

    Compile-time resources run as soon as they are declared. Immediate
    notifications are delivered right after the notifying action finishes;
    delayed notifications once the declared actions are done.
    """

    def __init__(
        self,
        config: RunConfig | None = None,
        *,
        shell: CommandRunner | None = None,
        facts: Facts | None = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config or RunConfig()
        self.context = Context(self.config, shell=shell, facts=facts, dry_run=dry_run)
        self.executor = Executor(self.context)
        self.outcomes: list[RunOutcome] = []
        self._resources: dict[str, Resource] = {}
        self._pending: list[tuple[str, str | None]] = []
        self._implicit: set[str] = set()

    def declare(
        self,
        type_name: str,
        name: str,
        *,
        action: StrEnum | str | None = None,
        notifies: Iterable[Notification] = (),
        **properties: Any,
    ) -> Resource:
        """Instantiate a registered resource type and add it to the run."""
        res = resource_class(type_name)(name, **properties)
        for notification in notifies:
            res.notifies(notification.action, notification.target, notification.timing)
        self.add(res, action)
        return res

    def add(self, res: Resource, action: StrEnum | str | None = None) -> None:
        """Add a resource; compile-time resources run immediately.

        A resource added implicitly as another's supporting resource is
        replaced by an explicit declaration with the same key.
        """
        if res.key in self._implicit:
            logger.debug("Replacing implicit %s", res.key)
            self._implicit.discard(res.key)
            self._pending = [p for p in self._pending if p[0] != res.key]
        elif res.key in self._resources:
            raise ValueError(f"Duplicate resource: '{res.key}'")
        logger.debug("Declared %s", res.key)
        self._resources[res.key] = res

        for support, support_action in res.supporting_resources(self.context):
            if support.key not in self._resources:
                self.add(support, support_action)
                self._implicit.add(support.key)

        action_name = str(action) if action is not None else None
        if res.compile_time:
            logger.debug("Running %s at compile time", res.key)
            self._converge(res, action_name)
        else:
            self._pending.append((res.key, action_name))

    def run_action(self, key: str, action: StrEnum | str | None = None) -> RunOutcome:
        """Run one action of a declared resource and deliver its immediate notifications."""
        return self._converge(self._lookup(key), action)

    def converge(self) -> list[RunOutcome]:
        """Run every pending declared action, then the delayed notifications."""
        pending, self._pending = self._pending, []
        for key, action in pending:
            self._converge(self._resources[key], action)
        while notifications := self.context.router.drain():
            for notification in notifications:
                self._deliver(notification)
        return self.outcomes

    @property
    def updated(self) -> list[str]:
        """Keys of resources updated at least once in this run."""
        return list(dict.fromkeys(o.resource for o in self.outcomes if o.updated))

    def _converge(self, res: Resource, action: StrEnum | str | None) -> RunOutcome:
        try:
            outcome = self.executor.run(res, action)
        except Exception:
            # immediate notifications belong to the failed action only
            dropped = self.context.router.take_immediate()
            if dropped:
                logger.warning(
                    "Dropping %d immediate notification(s) from failed %s",
                    len(dropped),
                    res.key,
                )
            raise
        self.outcomes.append(outcome)
        for notification in self.context.router.take_immediate():
            self._deliver(notification)
        return outcome

    def _deliver(self, notification: Notification) -> RunOutcome:
        logger.debug("Delivering %s", notification)
        if notification.target not in self._resources:
            raise UnknownResource(
                f"no resource declared as '{notification.target}'",
                notified_by=notification.source,
            )
        return self._converge(self._resources[notification.target], notification.action)

    def _lookup(self, key: str) -> Resource:
        try:
            return self._resources[key]
        except KeyError:
            raise UnknownResource(f"no resource declared as '{key}'") from None

    def __getitem__(self, key: str) -> Resource:
        return self._resources[key]

    def __contains__(self, key: object) -> bool:
        return key in self._resources

    def __iter__(self) -> Iterator[str]:
        return iter(self._resources)

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"Run(resources={len(self._resources)}, pending={len(self._pending)}, dry_run={self.context.dry_run})"
