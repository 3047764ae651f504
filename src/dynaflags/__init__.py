"""
dynaflags - plugin contributed flags for click command-line interfaces.
"""

__version__ = "0.1.0"

from .cli import create_cli, flags_command
from .dynamic import DynamicCommand, DynamicGroup, dynamic_command, get_cli_flags, pass_cli_flags
from .errors import (
    AliasConflictError,
    DuplicatePluginError,
    DynaflagsError,
    FlagConflictError,
    FlagNameConflictError,
    FlagValidationError,
    InvalidArgumentError,
    NonFatalError,
)
from .plugins import Plugin, PluginEvent, PluginManager
from .registry import Contribution, FlagRegistry, FlagSpec
from .runtime import CLIRuntime, init_runtime

__all__ = [
    "__version__",
    "AliasConflictError",
    "CLIRuntime",
    "Contribution",
    "DuplicatePluginError",
    "DynaflagsError",
    "DynamicCommand",
    "DynamicGroup",
    "FlagConflictError",
    "FlagNameConflictError",
    "FlagRegistry",
    "FlagSpec",
    "FlagValidationError",
    "InvalidArgumentError",
    "NonFatalError",
    "Plugin",
    "PluginEvent",
    "PluginManager",
    "create_cli",
    "dynamic_command",
    "flags_command",
    "get_cli_flags",
    "init_runtime",
    "pass_cli_flags",
]
