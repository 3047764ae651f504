"""Flag conflict registry.

Receives the flags that independently loaded plugins contribute to shared
commands. Conflict checking happens at registration time so that no two
plugins can add the same flag name or shorthand alias to a command; the
dispatcher later resolves the merged flag set for a command and runs every
plugin's verify callback against the parsed values.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import (
    DuplicatePluginError,
    FlagConflict,
    FlagConflictError,
    InvalidArgumentError,
)

VerifyCallback = Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class FlagSpec:
    """Definition of one named flag.

    ``metadata`` is opaque to the registry; it carries the click option
    settings (type, default, help, ...) used when the flag is materialized.
    """

    name: str
    alias: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, name: str, value: Any) -> "FlagSpec":
        """Build a FlagSpec from a FlagSpec or a plain mapping."""
        if isinstance(value, FlagSpec):
            if value.name != name:
                raise InvalidArgumentError(
                    "register", f"flag key '{name}' does not match FlagSpec name '{value.name}'."
                )
            alias = value.alias
            metadata = dict(value.metadata)
        elif isinstance(value, Mapping):
            metadata = {k: v for k, v in value.items() if k != "alias"}
            alias = value.get("alias")
        else:
            raise InvalidArgumentError(
                "register", f"flag '{name}' is not a 'FlagSpec' or mapping."
            )

        if alias is not None and not isinstance(alias, str):
            raise InvalidArgumentError("register", f"alias of flag '{name}' is not a 'str'.")

        return cls(name=name, alias=alias or None, metadata=copy.deepcopy(metadata))


@dataclass
class Contribution:
    """The flags and optional verify callback one plugin adds to one command."""

    plugin: str
    flags: Dict[str, FlagSpec] = field(default_factory=dict)
    verify: Optional[VerifyCallback] = None

    def copy(self) -> "Contribution":
        return Contribution(
            plugin=self.plugin, flags=copy.deepcopy(self.flags), verify=self.verify
        )


def _is_name(value: Any) -> bool:
    return isinstance(value, str) and value != ""


class FlagRegistry:
    """Per command, per plugin store of contributed flags.

    Features:
    - Atomic registration, rejected in full on any conflict
    - Flag name and alias conflict detection across plugins
    - Merged flag lookup per command
    - Ordered post-parse verification

    Registration is expected to complete before ``resolve`` and ``verify``
    are used; only ``register`` takes the lock.
    """

    def __init__(self) -> None:
        # command name -> plugin name -> contribution
        self._database: Dict[str, Dict[str, Contribution]] = {}
        self._lock = threading.Lock()

    def register(
        self,
        command: str,
        plugin: str,
        flags: Mapping[str, Any],
        verify: Optional[VerifyCallback] = None,
    ) -> None:
        """Add the flags of ``plugin`` to ``command``.

        Args:
            command: Command name to store the flags under
            plugin: Name of the contributing plugin
            flags: Mapping of flag name to FlagSpec or plain mapping
            verify: Optional callback invoked with the parsed flags

        Raises:
            InvalidArgumentError: If any argument is malformed
            DuplicatePluginError: If ``plugin`` already registered for ``command``
            FlagConflictError: If any flag name or alias collides; the
                concrete class is FlagNameConflictError or AliasConflictError
                when all collisions are of one kind
        """
        if not _is_name(command):
            raise InvalidArgumentError("register", "'command' is not a non-empty 'str'.")
        if not _is_name(plugin):
            raise InvalidArgumentError("register", "'plugin' is not a non-empty 'str'.")
        if not isinstance(flags, Mapping):
            raise InvalidArgumentError("register", "'flags' is not a mapping.")

        new_flags: Dict[str, FlagSpec] = {}
        for name, value in flags.items():
            if not _is_name(name):
                raise InvalidArgumentError("register", "flag names must be non-empty 'str'.")
            new_flags[name] = FlagSpec.coerce(name, value)

        if verify is not None and not callable(verify):
            raise InvalidArgumentError("register", "'verify' is not callable.")

        with self._lock:
            plugins = self._database.get(command, {})
            if plugin in plugins:
                raise DuplicatePluginError(command, plugin)

            conflicts = self._find_conflicts(command, plugin, new_flags, plugins)
            if conflicts:
                raise FlagConflictError.from_conflicts(conflicts)

            plugins[plugin] = Contribution(plugin=plugin, flags=new_flags, verify=verify)
            self._database[command] = plugins

    @staticmethod
    def _find_conflicts(
        command: str,
        plugin: str,
        new_flags: Mapping[str, FlagSpec],
        plugins: Mapping[str, Contribution],
    ) -> List[FlagConflict]:
        conflicts: List[FlagConflict] = []

        # alias -> (plugin, flag) for everything already registered
        taken: Dict[str, Tuple[str, str]] = {}
        for existing in plugins.values():
            for spec in existing.flags.values():
                if spec.alias:
                    taken.setdefault(spec.alias, (existing.plugin, spec.name))

        for name, spec in new_flags.items():
            for existing in plugins.values():
                if name in existing.flags:
                    conflicts.append(
                        FlagConflict(
                            kind="name",
                            command=command,
                            plugin=plugin,
                            flag=name,
                            owner_plugin=existing.plugin,
                            owner_flag=name,
                        )
                    )

            if not spec.alias:
                continue

            owner = taken.get(spec.alias)
            if owner is not None:
                conflicts.append(
                    FlagConflict(
                        kind="alias",
                        command=command,
                        plugin=plugin,
                        flag=name,
                        owner_plugin=owner[0],
                        owner_flag=owner[1],
                        alias=spec.alias,
                    )
                )
            else:
                # Same-call collisions are reported against the first flag.
                taken[spec.alias] = (plugin, name)

        return conflicts

    def resolve(self, command: str) -> Dict[str, FlagSpec]:
        """Return the merged flags of every plugin registered for ``command``."""
        if not isinstance(command, str):
            raise InvalidArgumentError("resolve", "'command' is not a 'str'.")

        all_flags: Dict[str, FlagSpec] = {}
        for contribution in self._database.get(command, {}).values():
            all_flags.update(copy.deepcopy(contribution.flags))
        return all_flags

    def verify(self, command: str, parsed_flags: Mapping[str, Any]) -> None:
        """Invoke every verify callback for ``command`` in registration order.

        The first exception raised by a callback propagates and the
        remaining callbacks are not invoked.
        """
        if not isinstance(command, str):
            raise InvalidArgumentError("verify", "'command' is not a 'str'.")
        if not isinstance(parsed_flags, Mapping):
            raise InvalidArgumentError("verify", "'parsed_flags' is not a mapping.")

        for contribution in list(self._database.get(command, {}).values()):
            if contribution.verify is not None:
                contribution.verify(parsed_flags)

    def commands(self) -> Tuple[str, ...]:
        return tuple(self._database)

    def contributions(self, command: str) -> Tuple[Contribution, ...]:
        return tuple(c.copy() for c in self._database.get(command, {}).values())

    def owner(self, command: str, flag: str) -> Optional[str]:
        """Name of the plugin that contributed ``flag`` to ``command``."""
        for contribution in self._database.get(command, {}).values():
            if flag in contribution.flags:
                return contribution.plugin
        return None


__all__ = ["Contribution", "FlagRegistry", "FlagSpec", "VerifyCallback"]
