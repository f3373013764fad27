"""Set the macOS host, computer and local host names with scutil."""

from __future__ import annotations

import shlex
from collections.abc import Iterable, Iterator
from enum import StrEnum

from ..actions import Step, action
from ..context import Context
from ..guards import OutputEquals
from ..notifications import notify
from ..properties import Property
from ..resource import Resource, resource
from .facts import FactsReload

SCUTIL = "/usr/sbin/scutil"
FACTS_RELOAD = "reload hostname"


def shortname(name: str) -> str:
    """Everything before the first dot."""
    return name.partition(".")[0]


@resource("macos_hostname")
class MacosHostname(Resource):
    """Set the system's hostname names and reload the hostname facts.

    The computer name and local host name default to the hostname. Runs at
    compile time by default so later declarations see the new names.
    """

    class Actions(StrEnum):
        SET = "set"
        LOCAL = "local"
        COMPUTER_NAME = "computer_name"
        HOST = "host"
        NOTHING = "nothing"

    default_action = Actions.SET

    hostname = Property(
        str,
        name_property=True,
        description="The hostname; shown at the command line and to ssh sessions.",
    )
    computername = Property(
        str,
        default_factory=lambda r: r.hostname,
        description="The user-friendly computer name.",
    )
    localhostname = Property(
        str,
        default_factory=lambda r: r.hostname,
        description="Local network name used by Bonjour; only the part before the first dot is set.",
    )
    compile_time = Property(
        bool,
        default=True,
        desired_state=False,
        description="Run the action as soon as the resource is declared.",
    )

    @property
    def facts_target(self) -> str:
        return f"{FactsReload.resource_type}[{FACTS_RELOAD}]"

    def _scutil(self, key: str, value: str) -> Step:
        return Step(
            description=f"set {key} via scutil",
            command=f"{SCUTIL} --set {key} {shlex.quote(value)}",
            guard=OutputEquals(f"{SCUTIL} --get {key}", value),
            notifications=[notify("reload", self.facts_target)],
        )

    def supporting_resources(self, ctx: Context) -> Iterable[tuple[Resource, str | None]]:
        yield FactsReload(FACTS_RELOAD, plugin="hostname"), FactsReload.Actions.NOTHING

    @action(Actions.SET, description="Sets all node's hostnames.")
    def _set(self, ctx: Context) -> Iterator[Step]:
        yield self._scutil("HostName", self.hostname)
        yield self._scutil("ComputerName", self.computername)
        yield self._scutil("LocalHostName", shortname(self.localhostname))

    @action(Actions.LOCAL, description="Only changes node's local host name.")
    def _local(self, ctx: Context) -> Iterator[Step]:
        yield self._scutil("LocalHostName", shortname(self.localhostname))

    @action(Actions.COMPUTER_NAME, description="Only changes node's computer name.")
    def _computer_name(self, ctx: Context) -> Iterator[Step]:
        yield self._scutil("ComputerName", self.computername)

    @action(Actions.HOST, description="Only sets the hostname.")
    def _host(self, ctx: Context) -> Iterator[Step]:
        yield self._scutil("HostName", self.hostname)
