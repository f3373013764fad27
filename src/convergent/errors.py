"""Exception taxonomy for resource convergence."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .shell import CommandResult


class ConvergeError(Exception):
    """Base class for all convergence errors.

    The executor records where the error happened (resource, action, step)
    before re-raising, so callers can report the failing location.
    """

    kind = "error"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.resource: str | None = None
        self.action: str | None = None
        self.step: str | None = None

    def locate(
        self,
        resource: str,
        action: str | None = None,
        step: str | None = None,
    ) -> ConvergeError:
        """Attach the failing location, keeping any location already set."""
        self.resource = self.resource or resource
        self.action = self.action or action
        self.step = self.step or step
        return self

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.resource:
            lines.append(f"resource={self.resource}")
        if self.action:
            lines.append(f"action={self.action}")
        if self.step:
            lines.append(f"step={self.step}")
        for key, value in self.details.items():
            lines.append(f"{key}={value}")
        return "\n".join(lines)


class TypeMismatch(ConvergeError, TypeError):
    """A property value violates its declared type."""

    kind = "type mismatch"


class UnknownProperty(ConvergeError, LookupError):
    kind = "unknown property"


class UnknownAction(ConvergeError, LookupError):
    kind = "unknown action"


class UnknownResource(ConvergeError, LookupError):
    kind = "unknown resource"


class PropertyCycleError(ConvergeError):
    """A property default refers back to itself."""

    kind = "property cycle"


class PropertyFrozen(ConvergeError):
    """A property was assigned after the resource started executing."""

    kind = "property frozen"


class GuardEvaluationError(ConvergeError):
    """A guard could not determine the current state."""

    kind = "guard failed"


class CommandError(ConvergeError):
    """A command failed to run or exited with a nonzero status."""

    kind = "command failed"

    def __init__(
        self,
        command: str,
        result: CommandResult | None = None,
        *,
        reason: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"command": command}
        if result is not None:
            details["exit_status"] = result.exit_status
            if result.stdout:
                details["stdout"] = result.stdout
            if result.stderr:
                details["stderr"] = result.stderr
        if reason is None:
            if result is not None:
                reason = f"exited with status {result.exit_status}"
            else:
                reason = "could not be run"
        super().__init__(f"'{command}' {reason}", **details)
        self.command = command
        self.result = result
