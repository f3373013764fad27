"""Action executor: run guarded steps in order and report the outcome."""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from .actions import Step
from .context import Context
from .errors import CommandError, ConvergeError
from .guards import GuardEvaluator
from .notifications import Notification
from .resource import ResourceState

if TYPE_CHECKING:
    from .resource import Resource

logger = logging.getLogger(__name__)


class RunOutcome(BaseModel):
    """Result of one action invocation on one resource."""

    resource: str
    action: str
    updated: bool = False
    executed: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    notifications: list[Notification] = Field(default_factory=list)


class Executor:
    """Run a resource's action one step at a time."""

    def __init__(self, ctx: Context) -> None:
        self.ctx = ctx
        self.guards = GuardEvaluator(ctx)

    def run(self, resource: Resource, action_name: StrEnum | str | None = None) -> RunOutcome:
        try:
            resource.freeze()
            action = resource.build_action(action_name, self.ctx)
        except ConvergeError as exc:
            exc.locate(resource.key, str(action_name) if action_name else None)
            raise

        resource.state = ResourceState.EXECUTING
        outcome = RunOutcome(resource=resource.key, action=action.name)
        logger.debug("Running %s action '%s' (%d step(s))", resource.key, action.name, len(action))

        step: Step | None = None
        try:
            for step in action:
                if self.guards.should_skip(step):
                    logger.debug("Skipping '%s'; already satisfied", step)
                    outcome.skipped.append(step.description)
                    continue
                self._execute(step)
                outcome.updated = True
                outcome.executed.append(step.description)
                for notification in step.notifications:
                    self._enqueue(notification.bind(resource.key), outcome)
        except Exception as exc:
            resource.state = ResourceState.FAILED
            self._finish(resource, outcome)
            failed_at = step.description if step else None
            if isinstance(exc, ConvergeError):
                exc.locate(resource.key, action.name, failed_at)
            logger.error("%s action '%s' failed at '%s'", resource.key, action.name, failed_at)
            raise

        if outcome.updated:
            for notification in resource.notifications:
                self._enqueue(notification.bind(resource.key), outcome)
        resource.state = ResourceState.COMPLETED
        self._finish(resource, outcome)
        logger.info(
            "%s action '%s' %s",
            resource.key,
            action.name,
            "updated" if outcome.updated else "up to date",
        )
        return outcome

    def _execute(self, step: Step) -> None:
        if self.ctx.dry_run:
            logger.info("[DRY RUN] Would run '%s'", step)
            return
        logger.info("Running '%s'", step)
        if isinstance(step.command, str):
            self.ctx.shell.execute(step.command)
            return
        try:
            step.command(self.ctx)
        except ConvergeError:
            raise
        except Exception as exc:
            raise CommandError(step.description, reason=f"failed: {exc}") from exc

    def _enqueue(self, notification: Notification, outcome: RunOutcome) -> None:
        self.ctx.router.enqueue(notification)
        outcome.notifications.append(notification)

    @staticmethod
    def _finish(resource: Resource, outcome: RunOutcome) -> None:
        resource.updated = outcome.updated
        resource.last_outcome = outcome
