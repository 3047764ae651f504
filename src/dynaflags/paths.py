"""Per-user data directories for dynaflags based CLIs.

Every CLI gets its own directory under ~/.<cli name> holding:
- logs/: metafile archives written by ``--metafile``
- <cli name>.yaml: optional user configuration
"""

from __future__ import annotations

import os
from pathlib import Path


def data_dir(cli_name: str) -> Path:
    return Path(os.path.expanduser(f"~/.{cli_name}"))


def log_dir(cli_name: str) -> Path:
    return data_dir(cli_name) / "logs"


def default_user_config_path(cli_name: str) -> Path:
    return data_dir(cli_name) / f"{cli_name}.yaml"
