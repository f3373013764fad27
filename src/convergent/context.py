"""Runtime execution context shared by every action in a run."""

from __future__ import annotations

from .config import RunConfig
from .facts import Facts
from .notifications import NotificationRouter
from .shell import CommandRunner, Shell


class Context:
    """Runtime state passed through guards, commands and the executor."""

    def __init__(
        self,
        config: RunConfig | None = None,
        *,
        shell: CommandRunner | None = None,
        facts: Facts | None = None,
        router: NotificationRouter | None = None,
        dry_run: bool = False,
    ) -> None:
        self.config = config or RunConfig()
        self.shell = shell or Shell(self.config)
        self.facts = facts if facts is not None else Facts()
        self.router = router or NotificationRouter()
        self.dry_run = dry_run
