"""Install and remove Habitat packages with ``hab pkg``."""

from __future__ import annotations

import shlex
from collections.abc import Iterator
from enum import StrEnum
from typing import Literal

from ..actions import Step, action
from ..context import Context
from ..guards import NotIf, OnlyIf
from ..properties import Property
from ..resource import Resource, resource


@resource("habitat_package")
class HabitatPackage(Resource):
    """A Habitat package identified as ``origin/name[/version[/release]]``."""

    class Actions(StrEnum):
        INSTALL = "install"
        REMOVE = "remove"
        NOTHING = "nothing"

    default_action = Actions.INSTALL

    package_name = Property(str, name_property=True, description="Package as origin/name.")
    version = Property(str | None, description="Version, or version/release; latest when unset.")
    bldr_url = Property(str | None, description="Builder URL to install from.")
    channel = Property(str, default="stable", description="Release channel to install from.")
    binlink = Property(
        bool | Literal["force"],
        default=False,
        description="Binlink the package binaries; 'force' overwrites existing links.",
    )
    options = Property(list[str], default=[], description="Extra arguments passed to hab.")
    keep_latest = Property(int | None, description="Releases to keep when removing.")
    no_deps = Property(bool, default=False, description="Leave dependencies in place when removing.")

    @property
    def ident(self) -> str:
        if self.version:
            return f"{self.package_name}/{self.version}"
        return self.package_name

    def _present(self) -> str:
        return shlex.join(["hab", "pkg", "path", self.ident])

    def install_command(self) -> str:
        args = ["hab", "pkg", "install", self.ident, "--channel", self.channel]
        if self.bldr_url:
            args += ["--url", self.bldr_url]
        if self.binlink:
            args.append("--binlink")
        if self.binlink == "force":
            args.append("--force")
        return shlex.join(args + self.options)

    def remove_command(self) -> str:
        args = ["hab", "pkg", "uninstall", self.ident]
        if self.keep_latest is not None:
            args += ["--keep-latest", str(self.keep_latest)]
        if self.no_deps:
            args.append("--no-deps")
        return shlex.join(args + self.options)

    @action(Actions.INSTALL, description="Installs the package unless it is already present.")
    def _install(self, ctx: Context) -> Iterator[Step]:
        yield Step(
            description=f"install {self.ident}",
            command=self.install_command(),
            guard=NotIf(self._present()),
        )

    @action(Actions.REMOVE, description="Uninstalls the package when it is present.")
    def _remove(self, ctx: Context) -> Iterator[Step]:
        yield Step(
            description=f"remove {self.ident}",
            command=self.remove_command(),
            guard=OnlyIf(self._present()),
        )
