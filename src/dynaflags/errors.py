"""Error taxonomy for dynaflags with friendly, actionable CLI messages."""

from __future__ import annotations

import logging
import traceback
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

import click

logger = logging.getLogger(__name__)


class DynaflagsError(click.ClickException):
    """Base class for all CLI-visible errors with enhanced formatting."""

    #: Emoji shown at the beginning of every error line
    emoji: str = "❌"

    #: Short, actionable suggestion shown after the main message.
    hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint

    @property
    def formatted_message(self) -> str:
        """
        Returns the final string that Click writes to stderr.
        Includes:
        * emoji + main message (bold)
        * optional hint on a new line (dim colour)
        """
        lines = [f"{self.emoji}  {click.style(self.message, fg='red', bold=True)}"]
        if self.hint:
            lines.append(click.style(f"💡 {self.hint}", fg="yellow"))
        return "\n".join(lines)

    # Click calls show to emit the message.
    def show(self, file=None) -> None:
        click.echo(self.formatted_message, err=True, file=file)


# --------------------------------------------------------------------------- #
#   Flag registry errors
# --------------------------------------------------------------------------- #
class InvalidArgumentError(DynaflagsError):
    """Raised when the flag registry is called with malformed arguments."""
    emoji = "🚫"

    def __init__(self, operation: str, details: str):
        self.operation = operation
        super().__init__(
            f"FlagRegistry {operation}: {details}",
            "This is a programming error in the calling plugin.",
        )


class DuplicatePluginError(DynaflagsError):
    """Raised when a plugin registers flags twice for the same command."""
    emoji = "♻️"

    def __init__(self, command: str, plugin: str):
        self.command = command
        self.plugin = plugin
        super().__init__(
            f"Flags have already been added by plugin '{plugin}' for '{command}' command.",
            "Register each plugin only once per command.",
        )


@dataclass(frozen=True)
class FlagConflict:
    """One collision between a new flag and an already registered one."""

    kind: str  # "name" or "alias"
    command: str
    plugin: str
    flag: str
    owner_plugin: str
    owner_flag: str
    alias: Optional[str] = None

    def describe(self) -> str:
        if self.kind == "name":
            return (
                f"Flag '{self.flag}' from '{self.plugin}' already defined by "
                f"'{self.owner_plugin}' plugin for '{self.command}' command."
            )
        return (
            f"Alias '{self.alias}' of flag '{self.flag}' from '{self.plugin}' already "
            f"defined by '{self.owner_flag}' flag in '{self.owner_plugin}' for "
            f"'{self.command}' command."
        )


class FlagConflictError(DynaflagsError):
    """Raised when new flags collide with existing flags of a command.

    Every collision found during one registration is collected in
    ``conflicts``; the message lists them all.
    """
    emoji = "💥"

    def __init__(self, conflicts: Sequence[FlagConflict]):
        self.conflicts: List[FlagConflict] = list(conflicts)
        lines = "\n".join(conflict.describe() for conflict in self.conflicts)
        super().__init__(
            f"The following flag conflicts are detected:\n{lines}",
            "Rename the flag or alias in one of the listed plugins.",
        )

    @classmethod
    def from_conflicts(cls, conflicts: Sequence[FlagConflict]) -> "FlagConflictError":
        """Pick the most specific error class for ``conflicts``."""
        kinds = {conflict.kind for conflict in conflicts}
        if kinds == {"name"}:
            return FlagNameConflictError(conflicts)
        if kinds == {"alias"}:
            return AliasConflictError(conflicts)
        return FlagConflictError(conflicts)


class FlagNameConflictError(FlagConflictError):
    """Raised when only flag names collide."""


class AliasConflictError(FlagConflictError):
    """Raised when only shorthand aliases collide."""


class FlagValidationError(DynaflagsError):
    """Raised by plugin verify callbacks when final flag values are invalid."""
    emoji = "⚠️"

    def __init__(self, message: str, flag: str | None = None):
        self.flag = flag
        hint = None
        if flag:
            hint = f"Check the value passed to {click.style(f'--{flag}', fg='cyan')}."
        super().__init__(message, hint)


# --------------------------------------------------------------------------- #
#   Plugin / runtime errors
# --------------------------------------------------------------------------- #
class PluginLoadError(DynaflagsError):
    """Raised when a plugin cannot be loaded."""
    emoji = "🔌"

    def __init__(self, plugin: str, details: str):
        self.plugin = plugin
        super().__init__(f"Failed to load plugin '{plugin}' – {details}")


class ConfigError(DynaflagsError):
    """Raised when there's a configuration problem."""
    emoji = "🔧"

    def __init__(self, details: str, path: str | None = None):
        hint = None
        if path:
            hint = f"Fix or remove {click.style(path, fg='cyan')}."
        super().__init__(f"Configuration problem – {details}", hint)


class FatalError(DynaflagsError):
    """Raised after an uncaught error has been reported."""
    emoji = "💀"

    def __init__(self, error_id: str, details: str):
        self.error_id = error_id
        super().__init__(
            f"An uncaught fatal error has occurred – {details}",
            f"Search the issue forum for error UUID {error_id} before reporting it.",
        )


# --------------------------------------------------------------------------- #
#   Non fatal control flow
# --------------------------------------------------------------------------- #
_EXIT_CODES = {
    "fatal": 2,
    "error": 1,
    "warn": 0,
    "info": 0,
    "verbose": 0,
    "debug": 0,
    "trace": 0,
}

_QUALIFIERS = ("compact", "nocolor", "raw", "time")


class NonFatalError(DynaflagsError):
    """Stops control flow without triggering fatal error reporting.

    ``log_level`` is ``<level>[:<qualifier>]`` where level is one of
    fatal, error, warn, info, verbose, debug, trace and the qualifier one of
    compact, nocolor, raw, time. The exit code follows from the level:
    2 for fatal, 1 for error and 0 otherwise.
    """

    def __init__(self, message: str, log_level: str = "error"):
        super().__init__(message)
        level, _, qualifier = str(log_level).partition(":")
        self.level = level if level in _EXIT_CODES else "error"
        self.qualifier = qualifier if qualifier in _QUALIFIERS else None
        self.exit_code = _EXIT_CODES[self.level]

    @property
    def formatted_message(self) -> str:
        if self.qualifier in ("raw", "nocolor"):
            return self.message
        colour = {"fatal": "red", "error": "red", "warn": "yellow"}.get(self.level)
        return click.style(self.message, fg=colour, bold=self.level == "fatal")

    def show(self, file=None) -> None:
        click.echo(self.formatted_message, err=self.exit_code != 0, file=file)


# --------------------------------------------------------------------------- #
#   Fatal error reporting
# --------------------------------------------------------------------------- #
_SEPARATOR = "-" * 99

_REPORT_HELP = (
    "The source of the error may be associated with the stack trace listed below. This may\n"
    "also be a valid runtime error. If you can not resolve this error consider reporting it to\n"
    "the issue forum after checking if a similar report already exists. To aid your search you\n"
    "can search with the UUID associated with the error."
)


def report_fatal(error: BaseException, cli_name_version: str = "unknown") -> tuple[str, str]:
    """Log a fatal report for an uncaught error.

    Returns the error UUID and the full report text.
    """
    error_id = str(uuid.uuid4())
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    report = (
        f"An uncaught fatal error has occurred.\n{_REPORT_HELP}\n\n{_SEPARATOR}\n"
        f"CLI: {cli_name_version}\nError UUID: {error_id}\n\n{stack}{_SEPARATOR}"
    )
    logger.critical(report)
    return error_id, report


__all__ = [
    "AliasConflictError",
    "ConfigError",
    "DuplicatePluginError",
    "DynaflagsError",
    "FatalError",
    "FlagConflict",
    "FlagConflictError",
    "FlagNameConflictError",
    "FlagValidationError",
    "InvalidArgumentError",
    "NonFatalError",
    "PluginLoadError",
    "report_fatal",
]
