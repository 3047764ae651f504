"""Materialize registry flags as click options."""

from __future__ import annotations

from typing import Any, Dict, List

import click

from .registry import FlagSpec

_TYPES = {
    "string": click.STRING,
    "str": click.STRING,
    "integer": click.INT,
    "int": click.INT,
    "float": click.FLOAT,
    "boolean": click.BOOL,
    "bool": click.BOOL,
    "path": click.Path(),
}

# Metadata keys passed straight through to click.Option.
_PASSTHROUGH = (
    "default",
    "help",
    "is_flag",
    "multiple",
    "required",
    "envvar",
    "show_default",
    "show_envvar",
    "count",
    "hidden",
    "metavar",
)


def param_name(flag_name: str) -> str:
    """Python identifier click uses for a flag, e.g. ``no-color`` -> ``no_color``."""
    return flag_name.replace("-", "_")


def option_kwargs(spec: FlagSpec) -> Dict[str, Any]:
    metadata = spec.metadata
    kwargs: Dict[str, Any] = {k: metadata[k] for k in _PASSTHROUGH if k in metadata}

    if "help" not in kwargs and "description" in metadata:
        kwargs["help"] = metadata["description"]

    if "choices" in metadata:
        kwargs["type"] = click.Choice(list(metadata["choices"]))
    elif "type" in metadata:
        value = metadata["type"]
        kwargs["type"] = _TYPES.get(value, value) if isinstance(value, str) else value

    return kwargs


def to_click_option(spec: FlagSpec) -> click.Option:
    decls: List[str] = [param_name(spec.name), f"--{spec.name}"]
    if spec.alias:
        decls.append(f"-{spec.alias}")
    return click.Option(decls, **option_kwargs(spec))
