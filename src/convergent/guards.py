"""Guards decide whether a step's effect already holds."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, TypeAlias

from .errors import GuardEvaluationError

if TYPE_CHECKING:
    from .actions import Step
    from .context import Context

logger = logging.getLogger(__name__)

Predicate: TypeAlias = "Callable[[Context], bool] | str"


class Guard(ABC):
    """Read-only check of current system state."""

    @abstractmethod
    def satisfied(self, ctx: Context) -> bool:
        """Desired state already holds; the guarded step can be skipped."""


def _check(predicate: Predicate, ctx: Context) -> bool:
    if isinstance(predicate, str):
        return ctx.shell.execute(predicate, tolerate=True).ok
    return bool(predicate(ctx))


class NotIf(Guard):
    """Skip when the predicate holds.

    A string predicate is a command; exit status 0 means it holds.
    """

    def __init__(self, predicate: Predicate) -> None:
        self.predicate = predicate

    def satisfied(self, ctx: Context) -> bool:
        return _check(self.predicate, ctx)

    def __repr__(self) -> str:
        return f"NotIf({self.predicate!r})"


class OnlyIf(Guard):
    """Skip unless the predicate holds."""

    def __init__(self, predicate: Predicate) -> None:
        self.predicate = predicate

    def satisfied(self, ctx: Context) -> bool:
        return not _check(self.predicate, ctx)

    def __repr__(self) -> str:
        return f"OnlyIf({self.predicate!r})"


class OutputEquals(Guard):
    """Skip when a status command prints the expected value.

    Trailing whitespace is trimmed from the output; the comparison is
    otherwise exact. A nonzero exit status is not an error here, the output
    just won't match.
    """

    def __init__(self, command: str, expected: str) -> None:
        self.command = command
        self.expected = expected

    def satisfied(self, ctx: Context) -> bool:
        result = ctx.shell.execute(self.command, tolerate=True)
        current = result.stdout.rstrip()
        logger.debug("'%s' reports '%s' (want '%s')", self.command, current, self.expected)
        return current == self.expected

    def __repr__(self) -> str:
        return f"OutputEquals({self.command!r}, {self.expected!r})"


class GuardEvaluator:
    """Consult a step's guard before it runs."""

    def __init__(self, ctx: Context) -> None:
        self.ctx = ctx

    def should_skip(self, step: Step) -> bool:
        if step.guard is None:
            return False
        try:
            return step.guard.satisfied(self.ctx)
        except Exception as exc:
            raise GuardEvaluationError(
                f"could not evaluate {step.guard!r}: {exc}",
            ) from exc
