"""Process runtime for a dynaflags CLI.

``init_runtime`` is the startup hook: it captures the working directories,
loads configuration, configures logging, creates the flag registry and
loads plugins. The returned ``CLIRuntime`` is handed to ``DynamicGroup``
and reaches every command through ``ctx.obj``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

from .errors import FlagValidationError
from .logging_config import VERBOSE, configure_logging
from .paths import log_dir as default_log_dir
from .plugins import PluginManager, plugin_name
from .registry import FlagRegistry
from .settings import CLIConfig, RuntimeSettings, env_prefix, load_config
from .standard_flags import StandardFlagsPlugin

logger = logging.getLogger(__name__)


@dataclass
class CLIRuntime:
    name: str
    version: str
    config: CLIConfig = field(default_factory=CLIConfig)
    registry: FlagRegistry = field(default_factory=FlagRegistry)
    orig_cwd: Path = field(default_factory=Path.cwd)
    base_cwd: Optional[Path] = None
    log_cwd: str = "."
    log_dir: Optional[Path] = None
    plugins: PluginManager = field(init=False)

    def __post_init__(self) -> None:
        if self.base_cwd is None:
            self.base_cwd = self.orig_cwd
        if self.log_dir is None:
            self.log_dir = default_log_dir(self.name)
        self.plugins = PluginManager(self, disabled=self.config.disabled_plugins)

    @property
    def name_version(self) -> str:
        return f"{self.name} ({self.version})"

    @property
    def env_prefix(self) -> str:
        return env_prefix(self.name)

    def change_cwd(self, new_cwd: str) -> Path:
        """Resolve ``new_cwd`` against the original working directory.

        Raises:
            FlagValidationError: If the directory does not exist
        """
        resolved = (self.orig_cwd / new_cwd).resolve()
        if resolved == self.base_cwd:
            return resolved

        self.base_cwd = resolved
        # Only log an absolute path when outside of the original directory.
        try:
            self.log_cwd = str(resolved.relative_to(self.orig_cwd.resolve()))
        except ValueError:
            self.log_cwd = str(resolved)
        logger.log(VERBOSE, "New current working directory set: %s", self.log_cwd)

        if not resolved.is_dir():
            raise FlagValidationError("New current working directory does not exist.", flag="cwd")
        return resolved


def init_runtime(
    name: str,
    version: str,
    plugins: Sequence[Any] = (),
    config_path: Optional[Path] = None,
    standard_commands: Iterable[str] = (),
    settings: Optional[RuntimeSettings] = None,
    discover: bool = False,
) -> CLIRuntime:
    """Build the runtime and load every plugin.

    Args:
        name: CLI binary name, also used for the env prefix and data dir
        version: CLI version
        plugins: Plugin instances or dotted module paths, loaded in order
        config_path: Explicit YAML config file
        standard_commands: Commands receiving the standard flags
        settings: Environment settings, read with the CLI prefix if omitted
        discover: Also load plugins published as entry points
    """
    if settings is None:
        settings = RuntimeSettings(_env_prefix=f"{env_prefix(name)}_")
    config = load_config(name, config_path, settings)
    configure_logging(config.log_level, config.log_format)

    runtime = CLIRuntime(
        name=name,
        version=version,
        config=config,
        orig_cwd=Path(os.getcwd()),
        log_dir=settings.log_dir,
    )
    logger.debug("Runtime init hook running for %s", runtime.name_version)

    commands = list(standard_commands)
    if commands:
        runtime.plugins.add(StandardFlagsPlugin.name, StandardFlagsPlugin(commands))

    for module_path in config.plugins:
        runtime.plugins.add_module(module_path)

    for plugin in plugins:
        if isinstance(plugin, str):
            runtime.plugins.add_module(plugin)
        else:
            runtime.plugins.add(plugin_name(plugin), plugin)

    if discover:
        runtime.plugins.discover()

    return runtime


__all__ = ["CLIRuntime", "init_runtime"]
