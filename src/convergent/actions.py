"""Action model: a named, ordered collection of guarded steps."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import BaseModel, Field

from .guards import Guard
from .notifications import Notification


class Step(BaseModel):
    """One guarded unit of work.

    ``command`` is either a shell command string or a callable that receives
    the run context.
    """

    model_config = {"arbitrary_types_allowed": True}

    description: str
    command: str | Callable[..., Any]
    guard: Guard | None = None
    notifications: list[Notification] = Field(default_factory=list)

    def __str__(self) -> str:
        return self.description


class Action(BaseModel):
    """A named, ordered sequence of steps."""

    model_config = {"arbitrary_types_allowed": True}

    name: str
    description: str = ""
    steps: list[Step] = Field(default_factory=list)

    def __iter__(self) -> Iterator[Step]:  # type: ignore[override]
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)


StepBuilder: TypeAlias = "Callable[..., Iterable[Step]]"


@dataclass(frozen=True)
class ActionDef:
    """Declaration of an action on a resource class."""

    name: str
    description: str
    build: StepBuilder


def action(name: StrEnum | str, *, description: str = ""):
    """Mark a resource method as the step builder for an action.

    The method receives the run context and yields the action's steps in
    execution order.
    """

    def decorator(fn: StepBuilder) -> StepBuilder:
        fn.__action__ = ActionDef(  # type: ignore[attr-defined]
            name=str(name),
            description=description or (fn.__doc__ or "").strip(),
            build=fn,
        )
        return fn

    return decorator
