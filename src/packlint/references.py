"""Reference graph: which functions and function tags can reach each command.

Units are functions (``<ns>:<path>``) and function tags (``#<ns>:<path>``).
A function has an edge to every unit it calls; a tag has an edge to each
of its members.  Calls and memberships may form cycles, so every traversal
is an iterative worklist over a seen-set of identifiers.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from packlint.model.resources import ContentKind
from packlint.targets import find_call_target

if TYPE_CHECKING:
    from collections.abc import Iterable

    from packlint.model.resources import Command, DataPack
    from packlint.targets import CallTargetLookup

logger = logging.getLogger(__name__)

ReferenceSets = dict["Command", frozenset[str]]


def _build_reverse_adjacency(
    pack: DataPack, call_target: CallTargetLookup
) -> tuple[list[str], dict[str, set[str]]]:
    """Return all unit identifiers and a ``callee -> callers`` map.

    Edges towards unknown units are dropped: existence checks belong to the
    pack loader, not to the reference model.
    """
    units: list[str] = []
    for function in pack.functions:
        units.append(function.identifier)
    for tag in pack.function_tags:
        units.append(tag.identifier)
    known = set(units)

    callers: dict[str, set[str]] = {unit: set() for unit in units}

    def _add_edge(src: str, dst: str) -> None:
        if dst not in known:
            logger.debug("Ignoring reference from %s to unknown unit %s", src, dst)
            return
        callers[dst].add(src)

    for function in pack.functions:
        for command in function.commands_flat:
            target = call_target(command)
            if target is not None:
                _add_edge(function.identifier, target)
    for tag in pack.function_tags:
        for member in tag.members:
            _add_edge(tag.identifier, member)

    return units, callers


def _reaching(start: str, callers: dict[str, set[str]]) -> frozenset[str]:
    """Collect every unit with a path to *start*, *start* included."""
    seen: set[str] = {start}
    queue: deque[str] = deque([start])
    while queue:
        current = queue.popleft()
        for caller in callers.get(current, ()):
            if caller not in seen:
                seen.add(caller)
                queue.append(caller)
    return frozenset(seen)


def build_unit_reach(
    pack: DataPack, *, call_target: CallTargetLookup = find_call_target
) -> dict[str, frozenset[str]]:
    """Map every function and function tag to the set of units that reach it.

    Each set contains the unit itself.  A tag reached only through other
    tags (or through functions calling it) picks up all of them, so group
    reachability is the union over everything that can reach the group.
    """
    units, callers = _build_reverse_adjacency(pack, call_target)
    reach = {unit: _reaching(unit, callers) for unit in units}
    logger.debug("Built reach sets for %d units", len(reach))
    return reach


def build_reference_sets(
    pack: DataPack,
    *,
    call_target: CallTargetLookup = find_call_target,
    kinds: Iterable[ContentKind] = (ContentKind.COMMAND,),
) -> ReferenceSets:
    """Map every command of the given *kinds* to the units that can reach it.

    Nested ``execute ... run`` commands are included.  The result preserves
    namespace, function and line order, which keeps rule output stable.
    """
    wanted = frozenset(kinds)
    reach = build_unit_reach(pack, call_target=call_target)
    references: ReferenceSets = {}
    for function in pack.functions:
        reaching = reach[function.identifier]
        for command in function.commands_flat:
            if command.kind in wanted:
                references[command] = reaching
    return references
