"""System fact store that resources can ask to reload."""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeAlias

logger = logging.getLogger(__name__)

FactPlugin: TypeAlias = "Callable[[], Mapping[str, Any]]"


def hostname_facts() -> dict[str, Any]:
    """Collect the host naming facts."""
    machinename = socket.gethostname()
    fqdn = socket.getfqdn()
    hostname, _, domain = fqdn.partition(".")
    return {
        "machinename": machinename,
        "hostname": hostname or machinename.partition(".")[0],
        "fqdn": fqdn,
        "domain": domain or None,
    }


_BUILTIN_PLUGINS: dict[str, FactPlugin] = {
    "hostname": hostname_facts,
}


class Facts(Mapping[str, Any]):
    """Facts collected by named plugins, loaded lazily on first access."""

    def __init__(self, plugins: Mapping[str, FactPlugin] | None = None) -> None:
        self._plugins: dict[str, FactPlugin] = dict(_BUILTIN_PLUGINS if plugins is None else plugins)
        self._data: dict[str, Any] = {}
        self._loaded = False

    @property
    def plugins(self) -> list[str]:
        return list(self._plugins)

    def reload(self, plugin: str | None = None) -> None:
        """Re-run one plugin, or all of them when no plugin is named."""
        if plugin is not None and plugin not in self._plugins:
            raise ValueError(f"Unknown fact plugin: '{plugin}'")
        names = [plugin] if plugin is not None else list(self._plugins)
        for name in names:
            logger.info("Reloading facts from plugin '%s'", name)
            self._data.update(self._plugins[name]())
        self._loaded = True

    def _facts(self) -> dict[str, Any]:
        if not self._loaded:
            self.reload()
        return self._data

    def __getitem__(self, key: str) -> Any:
        return self._facts()[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._facts())

    def __len__(self) -> int:
        return len(self._facts())

    def __repr__(self) -> str:
        return f"Facts(plugins={self.plugins}, loaded={self._loaded})"
