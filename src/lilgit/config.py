"""Repository configuration stored in ``.lilgit/config.json``."""

import json
import os
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from lilgit import __version__
from lilgit.errors import MalformedObjectError

DEBUG_LOG_ENV = "LILGIT_DEBUG_LOG"


class RepoConfig(BaseModel):
    """Per-repository settings."""

    version: str = __version__
    created: datetime = Field(default_factory=datetime.now)
    default_branch: str = "master"
    debug_log: bool = False

    @property
    def debug_log_enabled(self) -> bool:
        return self.debug_log or os.environ.get(DEBUG_LOG_ENV, "") not in ("", "0")


def load_config(config_file: Path) -> RepoConfig:
    """Read the config file, falling back to defaults when it is missing."""
    config_file = Path(config_file)
    if not config_file.exists():
        return RepoConfig()
    try:
        return RepoConfig.model_validate_json(config_file.read_bytes())
    except ValidationError as e:
        raise MalformedObjectError(f"config: {e}") from e


def save_config(config_file: Path, config: RepoConfig) -> None:
    Path(config_file).write_text(
        json.dumps(config.model_dump(mode="json"), indent=2), encoding="utf-8"
    )
