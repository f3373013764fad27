"""Run configuration handed explicitly to the runtime."""

from __future__ import annotations

import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


def _default_cache_path() -> Path:
    return Path(tempfile.gettempdir()) / "convergent" / "cache"


class RunConfig(BaseModel):
    """Settings shared by every resource in a run."""

    model_config = ConfigDict(extra="forbid")

    command_timeout: float | None = Field(default=None, gt=0)
    file_cache_path: Path = Field(default_factory=_default_cache_path)
    environment: dict[str, str] = Field(default_factory=dict)
    shell_executable: str | None = None
