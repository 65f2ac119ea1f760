"""Blacklist rules: forbidden resource paths, commands, and in-game identifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from packlint.model.resources import is_tag_identifier
from packlint.references import build_reference_sets
from packlint.rules.base import (
    RuleDefinition,
    ViolationBuilder,
    require_mapping,
    require_strings,
)
from packlint.rules.filters import (
    Filter,
    MatchStrategy,
    PathFilter,
    RuleList,
    blocking_filters,
    parse_filter_chain,
    parse_filter_entries,
    parse_path_filter,
    parse_rule_list,
)
from packlint.targets import find_identifier

if TYPE_CHECKING:
    from packlint.model.resources import DataPack, Function
    from packlint.rules.base import Violation
    from packlint.targets import IdentifierLookup

logger = logging.getLogger(__name__)

STRATEGY = MatchStrategy.PER_RULE


def _unit_kind(reference: str | None) -> str:
    return "tag" if reference is not None and is_tag_identifier(reference) else "function"


def _owners(pack: DataPack) -> dict[int, Function]:
    """Map ``id(command)`` to the function whose body holds it (nested included)."""
    owners: dict[int, Function] = {}
    for function in pack.functions:
        for command in function.commands_flat:
            owners[id(command)] = function
    return owners


# ---------------------------------------------------------------------------
# blacklist.resource-location
# ---------------------------------------------------------------------------

RESOURCE_LOCATION = "blacklist.resource-location"


def evaluate_resource_location(pack: DataPack, path_filter: PathFilter) -> list[Violation]:
    """Report every resource whose ``data/<ns>/...`` path the filter denies."""
    out = ViolationBuilder(RESOURCE_LOCATION)
    for ns in pack.namespaces:
        for resource in ns.all_resources:
            if not path_filter.allows(resource.file_path):
                out.resource(resource, "Resource location is blacklisted.")
    return out.violations


def _parse_resource_location(data: Any) -> PathFilter:
    return parse_path_filter(data, RESOURCE_LOCATION)


resource_location_rule: RuleDefinition[PathFilter] = RuleDefinition(
    name=RESOURCE_LOCATION,
    title="Certain resource locations are blacklisted.",
    description=(
        "Each resource file path (starting with 'data/') is matched against a list of "
        "regular expressions until one matches. Based on a +/- prefix the file is allowed "
        "or disallowed. If no expression matches, 'defaultAllow' decides; without "
        "'defaultAllow' the location is allowed. Use [^/]+ to match any path element."
    ),
    parse_config=_parse_resource_location,
    evaluate=evaluate_resource_location,
    config_example=(
        "filters:\n"
        '  - "+data/[^/]+/functions/abc/.*"\n'
        '  - "-data/[^/]+/functions/.*"\n'
        "defaultAllow: true\n"
    ),
)


# ---------------------------------------------------------------------------
# blacklist.commands
# ---------------------------------------------------------------------------

COMMANDS = "blacklist.commands"


def evaluate_commands(
    pack: DataPack,
    chain: tuple[Filter, ...],
    *,
    strategy: MatchStrategy = STRATEGY,
) -> list[Violation]:
    """Report each command blocked by a filter, once per blocking filter."""
    out = ViolationBuilder(COMMANDS)
    if not chain:
        return out.violations

    owners = _owners(pack)
    references = build_reference_sets(pack)
    logger.debug("Matching %d commands against %d filters", len(references), len(chain))
    for command, reaching in references.items():
        for outcome in blocking_filters(chain, command.raw, reaching, strategy):
            out.command(
                owners[id(command)],
                command,
                f"This command is blacklisted by filter {outcome.index} when referenced "
                f"by {_unit_kind(outcome.reference)} '{outcome.reference}'",
                filter_index=outcome.index,
                reference=outcome.reference,
            )
    return out.violations


def _parse_commands(data: Any) -> tuple[Filter, ...]:
    return parse_filter_chain(data, COMMANDS, location_key="resources", content_key="commands")


commands_rule: RuleDefinition[tuple[Filter, ...]] = RuleDefinition(
    name=COMMANDS,
    title="Certain commands are not allowed in certain functions.",
    description=(
        "Each command is tested against every filter. A filter's 'resources' list is "
        "matched in order against the functions and tags that reach the command "
        "('<namespace>:<path>', tags prefixed with '#'); the first expression matching any "
        "of them decides. When that expression is prefixed with '-', the command text is "
        "matched against the 'commands' list the same way. A '-' verdict on both lists "
        "reports the command for that filter. Each expression must match the whole text, "
        "so a top-level alternation such as '-ban|kick .*' denies only 'ban' itself or "
        "a 'kick' command; write '-(ban|kick) .*' to cover both commands."
    ),
    parse_config=_parse_commands,
    evaluate=evaluate_commands,
    config_example=(
        "filters:\n"
        "  - resources: ['-.*']\n"
        "    commands: ['-(ban|ban-ip|pardon|kick|op|deop|forceload|stop) .*']\n"
        "  - resources: ['-#minecraft:load']\n"
        "    commands: ['-(say|me|tellraw|msg|w|teammsg|tell|title) .*']\n"
    ),
)


# ---------------------------------------------------------------------------
# blacklist.identifier
# ---------------------------------------------------------------------------

IDENTIFIER = "blacklist.identifier"


@dataclass(frozen=True)
class IdentifierLists:
    """Rule lists for namespaced (bossbar, storage) and plain (objective, tag, team) ids."""

    namespaced: RuleList
    plain: RuleList

    def for_target(self, namespaced: bool) -> RuleList:
        return self.namespaced if namespaced else self.plain


def evaluate_identifier(
    pack: DataPack,
    lists: IdentifierLists,
    *,
    lookup: IdentifierLookup = find_identifier,
) -> list[Violation]:
    """Report identifiers whose first matching expression is a deny; no match allows."""
    out = ViolationBuilder(IDENTIFIER)
    for function in pack.functions:
        for command in function.commands_flat:
            target = lookup(command)
            if target is None:
                continue
            if lists.for_target(target.namespaced).denies(target.value):
                out.command(function, command, f"Identifier {target.value} is blacklisted.")
    return out.violations


def _parse_identifier(data: Any) -> IdentifierLists:
    config = require_mapping(data, IDENTIFIER)
    return IdentifierLists(
        namespaced=parse_rule_list(
            require_strings(config, "namespaced", IDENTIFIER), f"{IDENTIFIER} namespaced"
        ),
        plain=parse_rule_list(require_strings(config, "plain", IDENTIFIER), f"{IDENTIFIER} plain"),
    )


identifier_rule: RuleDefinition[IdentifierLists] = RuleDefinition(
    name=IDENTIFIER,
    title="Some in-game resource identifiers are not allowed to be used.",
    description=(
        "Identifiers used in resource modifying commands are matched against the "
        "'namespaced' list (bossbars, data storage) or the 'plain' list (scoreboard "
        "objectives, tags, teams). The first matching expression decides by its +/- "
        "prefix; an identifier nothing matches is allowed."
    ),
    parse_config=_parse_identifier,
    evaluate=evaluate_identifier,
    config_example="namespaced: []\nplain:\n  - '+abc.*'\n  - '-ab.*'\n",
)


# ---------------------------------------------------------------------------
# blacklist.identifiers
# ---------------------------------------------------------------------------

IDENTIFIERS = "blacklist.identifiers"


@dataclass(frozen=True)
class IdentifierFilter:
    resources: RuleList
    lists: IdentifierLists

    def as_filter(self, namespaced: bool) -> Filter:
        return Filter(location=self.resources, content=self.lists.for_target(namespaced))


def evaluate_identifiers(
    pack: DataPack,
    filters: tuple[IdentifierFilter, ...],
    *,
    lookup: IdentifierLookup = find_identifier,
    strategy: MatchStrategy = STRATEGY,
) -> list[Violation]:
    """Report each identifier blocked by a filter, once per blocking filter."""
    out = ViolationBuilder(IDENTIFIERS)
    if not filters:
        return out.violations

    owners = _owners(pack)
    references = build_reference_sets(pack)
    for command, reaching in references.items():
        target = lookup(command)
        if target is None:
            continue
        chain = [flt.as_filter(target.namespaced) for flt in filters]
        for outcome in blocking_filters(chain, target.value, reaching, strategy):
            out.command(
                owners[id(command)],
                command,
                f"The identifier {target.value} is blacklisted by filter {outcome.index} "
                f"when referenced by {_unit_kind(outcome.reference)} '{outcome.reference}'",
                filter_index=outcome.index,
                reference=outcome.reference,
            )
    return out.violations


def _parse_identifiers(data: Any) -> tuple[IdentifierFilter, ...]:
    entries = parse_filter_entries(data, IDENTIFIERS, keys=("resources", "namespaced", "plain"))
    return tuple(
        IdentifierFilter(
            resources=entry["resources"],
            lists=IdentifierLists(namespaced=entry["namespaced"], plain=entry["plain"]),
        )
        for entry in entries
    )


identifiers_rule: RuleDefinition[tuple[IdentifierFilter, ...]] = RuleDefinition(
    name=IDENTIFIERS,
    title="Certain identifiers are not allowed in certain functions.",
    description=(
        "Like blacklist.identifier, but every filter first matches its 'resources' list "
        "against the functions and tags that reach the command. Only when that list's "
        "first match is a '-' expression is the identifier checked against the "
        "'namespaced' or 'plain' list. Each filter with a double negative match reports "
        "the identifier once."
    ),
    parse_config=_parse_identifiers,
    evaluate=evaluate_identifiers,
    config_example=(
        "filters:\n"
        "  - resources: ['-.*']\n"
        "    namespaced: []\n"
        "    plain: ['+abc.*', '-ab.*']\n"
    ),
)
