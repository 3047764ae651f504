"""Click command and group classes that load plugin flags dynamically.

``DynamicCommand`` asks the flag registry for its flags whenever click
collects parameters, so plugin flags take part in parsing and ``--help``
alike. After parsing it hands the final values to every plugin's verify
callback, then handles ``--noop`` and ``--metafile``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .errors import FatalError, FlagConflict, FlagConflictError, NonFatalError, report_fatal
from .metafile import MetaFileEntry, MetaFileHandler
from .options import param_name, to_click_option
from .runtime import CLIRuntime

logger = logging.getLogger(__name__)

CLI_FLAGS_KEY = "dynaflags.cli_flags"
COMMAND_DATA_KEY = "dynaflags.command_data"

NoopSummary = Callable[[click.Context, Dict[str, Any]], str]


def find_runtime(ctx: click.Context) -> Optional[CLIRuntime]:
    return ctx.find_object(CLIRuntime)


def get_cli_flags(ctx: Optional[click.Context] = None) -> Dict[str, Any]:
    """Parsed flags of the running dynamic command keyed by flag name."""
    ctx = ctx or click.get_current_context()
    return ctx.meta.get(CLI_FLAGS_KEY, {})


pass_cli_flags = click.decorators.pass_meta_key(
    CLI_FLAGS_KEY, doc_description="the parsed CLI flags"
)


class DynamicCommand(click.Command):
    """A click command whose options are contributed by plugins.

    Args:
        flag_command: Registry key to resolve flags from, defaults to the
            command name
        noop_summary: Callable returning extra text for ``--noop`` output
        runtime: Runtime to use when none is reachable through ``ctx.obj``
    """

    metafile_entries = (
        MetaFileEntry("cli_config", "cli-config.json"),
        MetaFileEntry("cli_flags", "cli-flags.json"),
        MetaFileEntry("command_data", "command-data.json"),
    )

    def __init__(
        self,
        name: Optional[str],
        *args: Any,
        flag_command: Optional[str] = None,
        noop_summary: Optional[NoopSummary] = None,
        runtime: Optional[CLIRuntime] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, *args, **kwargs)
        self.flag_command = flag_command or name
        self.noop_summary = noop_summary
        self.runtime = runtime

    def _runtime(self, ctx: click.Context) -> Optional[CLIRuntime]:
        return find_runtime(ctx) or self.runtime

    def dynamic_options(self, ctx: click.Context) -> Dict[str, click.Option]:
        """Options built from the registry keyed by flag name."""
        runtime = self._runtime(ctx)
        if runtime is None or not self.flag_command:
            return {}

        registry = runtime.registry
        static_owner = f"{self.name} (static)"

        # option string / python identifier -> (owner, flag)
        taken: Dict[str, Tuple[str, str]] = {}
        idents: Dict[str, Tuple[str, str]] = {}
        for param in self.params:
            idents[param.name] = (static_owner, param.name)
            if isinstance(param, click.Option):
                for opt in param.opts + param.secondary_opts:
                    taken[opt] = (static_owner, param.name)
        if self.add_help_option:
            for opt in ctx.help_option_names:
                taken.setdefault(opt, (static_owner, "help"))

        options: Dict[str, click.Option] = {}
        conflicts: List[FlagConflict] = []
        for name, spec in registry.resolve(self.flag_command).items():
            plugin = registry.owner(self.flag_command, name) or "?"
            found: List[FlagConflict] = []

            owner = idents.get(param_name(name)) or taken.get(f"--{name}")
            if owner is not None:
                found.append(
                    FlagConflict(
                        kind="name",
                        command=self.flag_command,
                        plugin=plugin,
                        flag=name,
                        owner_plugin=owner[0],
                        owner_flag=owner[1],
                    )
                )

            owner = taken.get(f"-{spec.alias}") if spec.alias else None
            if owner is not None:
                found.append(
                    FlagConflict(
                        kind="alias",
                        command=self.flag_command,
                        plugin=plugin,
                        flag=name,
                        owner_plugin=owner[0],
                        owner_flag=owner[1],
                        alias=spec.alias,
                    )
                )

            if found:
                conflicts.extend(found)
                continue

            options[name] = to_click_option(spec)
            idents[param_name(name)] = (plugin, name)
            taken[f"--{name}"] = (plugin, name)
            if spec.alias:
                taken[f"-{spec.alias}"] = (plugin, name)

        if conflicts:
            raise FlagConflictError.from_conflicts(conflicts)
        return options

    def get_params(self, ctx: click.Context) -> List[click.Parameter]:
        params = super().get_params(ctx)
        # Keep plugin options ahead of the help option.
        count = len(self.params)
        return params[:count] + list(self.dynamic_options(ctx).values()) + params[count:]

    def invoke(self, ctx: click.Context) -> Any:
        runtime = self._runtime(ctx)
        names = {param_name(name): name for name in self.dynamic_options(ctx)}

        cli_flags: Dict[str, Any] = {}
        for key in list(ctx.params):
            if key in names:
                cli_flags[names[key]] = ctx.params.pop(key)
            else:
                cli_flags[key] = ctx.params[key]
        ctx.meta[CLI_FLAGS_KEY] = cli_flags

        if runtime is not None and self.flag_command:
            runtime.registry.verify(self.flag_command, cli_flags)

        if cli_flags.get("noop"):
            if cli_flags.get("metafile"):
                self.write_metafiles(ctx)
            raise NonFatalError(self.noop_message(ctx), "info:raw")

        command_data = super().invoke(ctx)
        ctx.meta[COMMAND_DATA_KEY] = command_data

        if cli_flags.get("metafile"):
            self.write_metafiles(ctx)
        return command_data

    def noop_message(self, ctx: click.Context) -> str:
        runtime = self._runtime(ctx)
        name_version = runtime.name_version if runtime is not None else ctx.find_root().info_name
        lines = ["-----------------------------------", f"{name_version} running: '{self.name}'"]
        if self.noop_summary is not None:
            lines.append(self.noop_summary(ctx, get_cli_flags(ctx)))
        lines.append("-----------------------------------")
        return "\n".join(lines)

    def write_metafiles(self, ctx: click.Context):
        runtime = self._runtime(ctx)
        if runtime is None:
            logger.warning("Could not write metafile logs as no runtime is available.")
            return None

        source = {
            "cli_config": {
                "name": runtime.name,
                "version": runtime.version,
                "cwd": str(runtime.base_cwd),
                "config": runtime.config.model_dump(),
                "plugins": runtime.plugins.names(),
            },
            "cli_flags": ctx.meta.get(CLI_FLAGS_KEY),
            "command_data": ctx.meta.get(COMMAND_DATA_KEY),
        }
        return MetaFileHandler.write_metafiles(runtime.log_dir, self.metafile_entries, source)


class DynamicGroup(click.Group):
    """Group that carries the runtime and reports uncaught errors."""

    command_class = DynamicCommand
    group_class = type

    def __init__(self, *args: Any, runtime: Optional[CLIRuntime] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.runtime = runtime

    def make_context(self, info_name, args, parent=None, **extra):
        if self.runtime is not None and parent is None:
            extra.setdefault("obj", self.runtime)
        return super().make_context(info_name, args, parent=parent, **extra)

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except (click.ClickException, click.exceptions.Exit, click.Abort, EOFError):
            raise
        except Exception as e:
            runtime = find_runtime(ctx)
            name_version = runtime.name_version if runtime is not None else "unknown"
            error_id, _ = report_fatal(e, name_version)
            raise FatalError(error_id, str(e) or type(e).__name__) from e


def dynamic_command(name: Optional[str] = None, **attrs: Any):
    """Like ``click.command`` but creates a DynamicCommand."""
    attrs.setdefault("cls", DynamicCommand)
    return click.command(name, **attrs)


__all__ = [
    "CLI_FLAGS_KEY",
    "DynamicCommand",
    "DynamicGroup",
    "dynamic_command",
    "find_runtime",
    "get_cli_flags",
    "pass_cli_flags",
]
