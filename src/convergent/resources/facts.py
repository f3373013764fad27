"""Reload system facts, usually on notification."""

from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum

from ..actions import Step, action
from ..context import Context
from ..properties import Property
from ..resource import Resource, resource


@resource("facts")
class FactsReload(Resource):
    """Re-collect system facts so later resources see the new state."""

    class Actions(StrEnum):
        RELOAD = "reload"
        NOTHING = "nothing"

    default_action = Actions.RELOAD

    plugin = Property(str | None, description="Fact plugin to reload; all plugins when unset.")

    @action(Actions.RELOAD, description="Reloads system facts.")
    def _reload(self, ctx: Context) -> Iterator[Step]:
        plugin = self.plugin
        yield Step(
            description=f"reload {plugin or 'all'} facts",
            command=lambda c: c.facts.reload(plugin),
        )
