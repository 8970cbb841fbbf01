"""
TASKBOARD - Configuration
=========================
Defaults, overridable through environment variables (and CLI flags).

    TASKBOARD_DIR          directory for the file store   (.taskboard)
    TASKBOARD_STORAGE_KEY  single key the board lives at   (taskboard-state)
    TASKBOARD_LOG_LEVEL    logging level name              (INFO)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DATA_DIR = ".taskboard"
DEFAULT_STORAGE_KEY = "taskboard-state"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class Settings:
    data_dir: str = DEFAULT_DATA_DIR
    storage_key: str = DEFAULT_STORAGE_KEY
    log_level: str = DEFAULT_LOG_LEVEL


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    return Settings(
        data_dir=env.get("TASKBOARD_DIR") or DEFAULT_DATA_DIR,
        storage_key=env.get("TASKBOARD_STORAGE_KEY") or DEFAULT_STORAGE_KEY,
        log_level=(env.get("TASKBOARD_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
    )
