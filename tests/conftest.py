import logging

import pytest

from dynaflags.registry import FlagRegistry
from dynaflags.runtime import CLIRuntime


# ----------------------------------------------------------------------
# Logging isolation – runtime init and --loglevel touch the root logger
# ----------------------------------------------------------------------
@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.setLevel(level)
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)


@pytest.fixture
def registry():
    return FlagRegistry()


@pytest.fixture
def runtime(tmp_path):
    """Runtime rooted in a temp directory with logs kept under it."""
    return CLIRuntime(
        name="testcli",
        version="1.2.3",
        orig_cwd=tmp_path,
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Point ~ at a temp directory so user config lookups are isolated."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir
