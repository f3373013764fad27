"""Shared fixtures: a recording shell that never touches the host."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from convergent.context import Context
from convergent.errors import CommandError
from convergent.facts import Facts
from convergent.shell import CommandResult


class FakeShell:
    """Record commands and answer them from canned results or handlers."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._results: dict[str, CommandResult] = {}
        self._handlers: list[tuple[str, Callable[[str], CommandResult]]] = []

    def respond(self, command: str, stdout: str = "", *, exit_status: int = 0, stderr: str = "") -> None:
        self._results[command] = CommandResult(
            command=command, stdout=stdout, stderr=stderr, exit_status=exit_status
        )

    def handle(self, prefix: str, handler: Callable[[str], CommandResult]) -> None:
        self._handlers.append((prefix, handler))

    def ran(self, command: str) -> int:
        return self.calls.count(command)

    def execute(self, command: str, *, tolerate: bool = False) -> CommandResult:
        self.calls.append(command)
        if command in self._results:
            result = self._results[command]
        else:
            result = next(
                (handler(command) for prefix, handler in self._handlers if command.startswith(prefix)),
                CommandResult(command=command),
            )
        if not result.ok and not tolerate:
            raise CommandError(command, result)
        return result


class FakeFacts(Facts):
    def __init__(self) -> None:
        self.reloaded: list[str | None] = []
        super().__init__({"hostname": lambda: {"hostname": "fake"}})

    def reload(self, plugin: str | None = None) -> None:
        self.reloaded.append(plugin)
        super().reload(plugin)


@pytest.fixture
def shell() -> FakeShell:
    return FakeShell()


@pytest.fixture
def facts() -> FakeFacts:
    return FakeFacts()


@pytest.fixture
def ctx(shell: FakeShell, facts: FakeFacts) -> Context:
    return Context(shell=shell, facts=facts)
