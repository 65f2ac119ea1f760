"""Per-command-shape lookups: which unit a command calls, which identifier it touches.

Every lookup takes a single :class:`Command` and returns ``None`` when the
command shape is not one it knows.  Rules receive these functions as
parameters, so a different command dialect only needs different lookups.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from packlint.model.resources import ContentKind, normalize_identifier

if TYPE_CHECKING:
    from packlint.model.resources import Command

PREFIX_SEPARATORS = re.compile(r"[._-]")

_PLAIN_OBJECTIVE_ACTIONS = frozenset({"add", "modify", "remove"})
_TAG_ACTIONS = frozenset({"add", "remove"})
_BOSSBAR_ACTIONS = frozenset({"add", "remove", "set"})
_TEAM_ACTIONS = frozenset({"add", "empty", "join", "modify", "remove"})
_STORAGE_ACTIONS = frozenset({"merge", "modify", "remove"})


@dataclass(frozen=True)
class IdentifierTarget:
    """An in-game identifier used by a command.

    *namespaced* identifiers (bossbars, storages) carry ``<ns>:<name>``;
    plain ones (objectives, entity tags, teams) are bare names.
    """

    value: str
    namespaced: bool


def _arg(command: Command, index: int) -> str | None:
    if index < len(command.arguments):
        return command.arguments[index]
    return None


def find_call_target(command: Command) -> str | None:
    """Return the unit identifier called by ``function`` or ``schedule function``."""
    if command.kind is not ContentKind.COMMAND:
        return None
    if command.command_key == "function":
        target = _arg(command, 0)
    elif command.command_key == "schedule" and _arg(command, 0) == "function":
        target = _arg(command, 1)
    else:
        return None
    return normalize_identifier(target) if target else None


def find_identifier(command: Command) -> IdentifierTarget | None:
    """Return the identifier a resource-modifying command creates, changes or removes."""
    if command.kind is not ContentKind.COMMAND:
        return None
    key = command.command_key
    value: str | None = None
    namespaced = False

    if key == "scoreboard" and _arg(command, 0) == "objectives":
        if _arg(command, 1) in _PLAIN_OBJECTIVE_ACTIONS:
            value = _arg(command, 2)
    elif key == "tag":
        if _arg(command, 1) in _TAG_ACTIONS:
            value = _arg(command, 2)
    elif key == "bossbar":
        if _arg(command, 0) in _BOSSBAR_ACTIONS:
            value, namespaced = _arg(command, 1), True
    elif key == "team":
        if _arg(command, 0) in _TEAM_ACTIONS:
            value = _arg(command, 1)
    elif key == "data" and _arg(command, 1) == "storage":
        if _arg(command, 0) in _STORAGE_ACTIONS:
            value, namespaced = _arg(command, 2), True

    if value is None:
        return None
    return IdentifierTarget(value=value, namespaced=namespaced)


def find_identifier_prefix(command: Command) -> IdentifierTarget | None:
    """Return the prefix of an identifier the command *creates*.

    Plain identifiers are split on ``.``, ``-`` or ``_``; namespaced ones on
    ``:``.  An identifier without a separator yields an empty prefix.
    """
    if command.kind is not ContentKind.COMMAND:
        return None
    key = command.command_key
    full: str | None = None
    namespaced = False

    if key == "scoreboard" and command.arguments[:2] == ("objectives", "add"):
        full = _arg(command, 2)
    elif key == "tag" and _arg(command, 1) == "add":
        full = _arg(command, 2)
    elif key == "bossbar" and _arg(command, 0) == "add":
        full, namespaced = _arg(command, 1), True
    elif key == "team" and _arg(command, 0) == "add":
        full = _arg(command, 1)
    elif key == "data" and command.arguments[:2] == ("modify", "storage"):
        full, namespaced = _arg(command, 2), True

    if full is None:
        return None
    if namespaced:
        parts = full.split(":", 1)
    else:
        parts = PREFIX_SEPARATORS.split(full, maxsplit=1)
    return IdentifierTarget(value=parts[0] if len(parts) == 2 else "", namespaced=namespaced)


def find_uninstall_command(command: Command) -> str | None:
    """Return the command that removes what *command* creates."""
    if command.kind is not ContentKind.COMMAND:
        return None
    key = command.command_key
    if key == "scoreboard" and command.arguments[:2] == ("objectives", "add"):
        name = _arg(command, 2)
        return f"scoreboard objectives remove {name}" if name else None
    if key == "bossbar" and _arg(command, 0) == "add":
        name = _arg(command, 1)
        return f"bossbar remove {name}" if name else None
    if key == "team" and _arg(command, 0) == "add":
        name = _arg(command, 1)
        return f"team remove {name}" if name else None
    if key == "data" and command.arguments[:2] == ("modify", "storage"):
        storage, nbt_path = _arg(command, 2), _arg(command, 3)
        if storage is None or nbt_path is None:
            return None
        root = re.split(r"[.\[{]", nbt_path, maxsplit=1)[0]
        return f"data remove storage {storage} {root}"
    return None


CallTargetLookup = Callable[["Command"], "str | None"]
IdentifierLookup = Callable[["Command"], "IdentifierTarget | None"]
