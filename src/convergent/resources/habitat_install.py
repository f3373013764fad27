"""Install the Habitat CLI through its install script."""

from __future__ import annotations

import shlex
from collections.abc import Iterator
from enum import StrEnum
from pathlib import Path
from typing import Literal

from ..actions import Step, action
from ..context import Context
from ..guards import NotIf
from ..properties import Property
from ..resource import Resource, resource

INSTALL_URL = "https://raw.githubusercontent.com/habitat-sh/habitat/main/components/hab/install.sh"
LICENSE_MARKER = "/hab/accepted-licenses/habitat"


def installed_version(ctx: Context) -> str | None:
    """Version reported by ``hab -V``, or None when hab is not installed."""
    result = ctx.shell.execute("hab -V", tolerate=True)
    if not result.ok:
        return None
    # "hab 1.6.652/20230103165022"
    words = result.stdout.split()
    return words[-1].split("/")[0] if words else None


@resource("habitat_install")
class HabitatInstall(Resource):
    """Install Habitat, optionally pinned to a version."""

    class Actions(StrEnum):
        INSTALL = "install"
        UPGRADE = "upgrade"
        NOTHING = "nothing"

    default_action = Actions.INSTALL

    install_url = Property(str, default=INSTALL_URL, description="URL of the install script.")
    bldr_url = Property(str | None, description="Builder URL the installer downloads from.")
    create_user = Property(bool, default=True, description="Create the 'hab' system user.")
    tmp_dir = Property(str | None, description="Temporary directory used by the installer.")
    license = Property(
        Literal["accept", "accept-no-persist"] | None,
        description="Accept the Chef license for Habitat.",
    )
    hab_version = Property(str | None, description="Version to install; latest when unset.")
    channel = Property(str, default="stable", description="Release channel to install from.")

    def _version_matches(self, ctx: Context) -> bool:
        current = installed_version(ctx)
        if current is None:
            return False
        return self.hab_version is None or current == self.hab_version

    def _installer_path(self, ctx: Context) -> Path:
        return ctx.config.file_cache_path / "hab-install.sh"

    def _install_command(self, ctx: Context) -> str:
        args = ["bash", str(self._installer_path(ctx)), "-c", self.channel]
        if self.hab_version:
            args += ["-v", self.hab_version]
        env = []
        if self.bldr_url:
            env.append(f"HAB_BLDR_URL={shlex.quote(self.bldr_url)}")
        if self.tmp_dir:
            env.append(f"TMPDIR={shlex.quote(self.tmp_dir)}")
        return " ".join([*env, shlex.join(args)])

    def _install_steps(self, ctx: Context, guard: NotIf | None) -> Iterator[Step]:
        installer = self._installer_path(ctx)
        yield Step(
            description="download hab-install.sh",
            command=(
                f"mkdir -p {shlex.quote(str(installer.parent))} && "
                f"curl -fsSL -o {shlex.quote(str(installer))} {shlex.quote(self.install_url)}"
            ),
            guard=guard,
        )
        yield Step(
            description="install habitat with hab-install.sh",
            command=self._install_command(ctx),
            guard=guard,
        )
        yield from self._setup_steps()

    def _setup_steps(self) -> Iterator[Step]:
        if self.license == "accept":
            yield Step(
                description="accept the habitat license",
                command="hab license accept",
                guard=NotIf(f"test -f {LICENSE_MARKER}"),
            )
        if self.create_user:
            yield Step(
                description="create hab group",
                command="groupadd --system hab",
                guard=NotIf("getent group hab"),
            )
            yield Step(
                description="create hab user",
                command="useradd --system --no-create-home -g hab hab",
                guard=NotIf("id -u hab"),
            )

    @action(Actions.INSTALL, description="Installs Habitat when it is missing or at another version.")
    def _install(self, ctx: Context) -> Iterator[Step]:
        yield from self._install_steps(ctx, NotIf(self._version_matches))

    @action(Actions.UPGRADE, description="Re-runs the installer unless the pinned version is present.")
    def _upgrade(self, ctx: Context) -> Iterator[Step]:
        guard = NotIf(self._version_matches) if self.hab_version else None
        yield from self._install_steps(ctx, guard)
