"""HCL loading engine: parse .hcl files into resource declarations."""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import hcl2
import jinja2

from .config import RunConfig
from .notifications import Notification, notify
from .runner import Run

logger = logging.getLogger(__name__)

_VAR_PATTERN = re.compile(r"\$\{(?:env\.(\w+)|(\w+))\}")

_BUILTIN_VARS: dict[str, Callable[[], str]] = {
    "CWD": os.getcwd,
}

# undefined template variables are errors; HCL text is never HTML-escaped
_templates = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def scan(
    path: str | Path,
    *,
    recurse: bool = True,
    run: Run | None = None,
    config: RunConfig | None = None,
    context: dict[str, Any] | None = None,
) -> Run:
    """Declare the resources of every .hcl file under path into a Run."""
    path = Path(path)
    run = run if run is not None else Run(config)
    if path.is_file():
        files = [path]
    else:
        files = sorted(path.rglob("*.hcl") if recurse else path.glob("*.hcl"))
    for file in files:
        logger.debug("Loading %s", file)
        declare(run, load(file, context=context), source=file)
    return run


def load(file: Path, *, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """Render a declaration file as a Jinja2 template, then parse it as HCL."""
    return hcl2.loads(_render(file, context or {}))


def _render(file: Path, variables: dict[str, Any]) -> str:
    try:
        return _templates.from_string(file.read_text()).render(variables)
    except jinja2.TemplateError as exc:
        raise ValueError(f"{file}: {exc}") from exc


def declare(run: Run, data: dict[str, Any], *, source: Path | None = None) -> None:
    """Declare every ``resource "<type>" "<name>" { ... }`` block, in file order.

    HCL2 structure for resource blocks:
        {"resource": [{"macos_hostname": {"mac01": {"localhostname": "x"}}}, ...]}
    """
    where = f"{source}: " if source else ""
    for block in data.get("resource", []):
        for type_name, named in block.items():
            if not isinstance(named, dict):
                raise ValueError(f"{where}resource '{type_name}' needs a type and a name label")
            for name, attrs in named.items():
                if name.startswith("__"):
                    continue
                _declare_block(run, type_name, name, dict(attrs), where)


def _declare_block(
    run: Run,
    type_name: str,
    name: str,
    attrs: dict[str, Any],
    where: str,
) -> None:
    attrs = {k: v for k, v in attrs.items() if not k.startswith("__")}
    action = attrs.pop("action", None)
    notifies = [_decode_notification(n, where) for n in attrs.pop("notifies", [])]
    properties = {key: _interpolate(value) for key, value in attrs.items()}
    logger.debug("Declaring %s[%s] from HCL", type_name, name)
    try:
        run.declare(type_name, name, action=action, notifies=notifies, **properties)
    except ValueError as exc:
        raise ValueError(f"{where}{exc}") from exc


def _decode_notification(data: Any, where: str) -> Notification:
    if not isinstance(data, dict) or not {"action", "target"} <= data.keys():
        raise ValueError(f"{where}notifies entries need 'action' and 'target': {data!r}")
    return notify(data["action"], data["target"], data.get("timing", "delayed"))


def _substitute(match: re.Match) -> str:
    env_name, builtin = match.groups()
    if env_name is not None:
        value = os.environ.get(env_name)
        if value is None:
            logger.warning("Environment variable '%s' is not set", env_name)
            return ""
        return value
    if builtin in _BUILTIN_VARS:
        return _BUILTIN_VARS[builtin]()
    logger.warning("Unknown variable '%s'", builtin)
    return match.group(0)


def _interpolate(value: Any) -> Any:
    """Expand ${env.VAR} and ${CWD} in string property values."""
    if not isinstance(value, str) or "${" not in value:
        return value
    return _VAR_PATTERN.sub(_substitute, value)
