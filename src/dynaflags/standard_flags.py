"""Standard flags shared across commands.

Added flags:
``--cwd``       Use an alternative working directory.   default ``.``     env {PREFIX}_CWD
``--loglevel``  Sets log level.                         default ``info``  env {PREFIX}_LOG_LEVEL
``--metafile``  Archives CLI runtime metafiles.         default ``False``
``--no-color``  Output and log with no color.           default ``False`` env {PREFIX}_NO_COLOR
``--noop``      Prints essential info and exits.        default ``False``
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, Mapping

from .logging_config import LOG_LEVELS, set_log_level
from .plugins import Plugin, PluginEvent
from .registry import FlagSpec

if TYPE_CHECKING:
    from .runtime import CLIRuntime

logger = logging.getLogger(__name__)


def standard_flags(env_prefix: str, log_dir: str = "") -> Dict[str, FlagSpec]:
    metafile_help = "Archives CLI runtime metafiles"
    if log_dir:
        metafile_help += f" in: {log_dir}"

    return {
        "cwd": FlagSpec(
            "cwd",
            metadata={
                "help": "Use an alternative working directory.",
                "default": ".",
                "envvar": f"{env_prefix}_CWD",
            },
        ),
        "loglevel": FlagSpec(
            "loglevel",
            metadata={
                "help": f"Sets log level ({', '.join(LOG_LEVELS)}).",
                "default": "info",
                "envvar": f"{env_prefix}_LOG_LEVEL",
            },
        ),
        "metafile": FlagSpec(
            "metafile",
            metadata={"help": f"{metafile_help}.", "is_flag": True, "default": False},
        ),
        "no-color": FlagSpec(
            "no-color",
            metadata={
                "help": "Output and log with no color.",
                "is_flag": True,
                "default": False,
                "envvar": f"{env_prefix}_NO_COLOR",
            },
        ),
        "noop": FlagSpec(
            "noop",
            metadata={
                "help": "Prints essential info and exits with no operation.",
                "is_flag": True,
                "default": False,
            },
        ),
    }


def verify_standard_flags(runtime: "CLIRuntime", flags: Mapping[str, Any]) -> None:
    loglevel = flags.get("loglevel")
    if isinstance(loglevel, str):
        if loglevel.lower() not in LOG_LEVELS:
            logger.warning("Unknown log level: '%s'.", loglevel)
        else:
            set_log_level(loglevel)

    cwd = flags.get("cwd")
    if isinstance(cwd, str) and cwd != ".":
        runtime.change_cwd(cwd)


class StandardFlagsPlugin(Plugin):
    """Contributes the standard flags to a set of commands."""

    name = "dynaflags.standard"

    def __init__(self, commands: Iterable[str]):
        self.commands = list(commands)

    def on_plugin_load(self, event: PluginEvent) -> None:
        runtime = event.runtime
        flags = standard_flags(runtime.env_prefix, str(runtime.log_dir))

        def verify(parsed: Mapping[str, Any]) -> None:
            verify_standard_flags(runtime, parsed)

        for command in self.commands:
            event.registry.register(command, event.name, flags, verify)
