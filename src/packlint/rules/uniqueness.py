"""Uniqueness rules: one subfolder and one identifier prefix per namespace."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from packlint.model.resources import DEFAULT_NAMESPACE
from packlint.rules.base import RuleDefinition, ViolationBuilder
from packlint.rules.inference import Candidate, infer, parse_inference_options
from packlint.targets import find_identifier_prefix

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from packlint.model.resources import Command, DataPack, Function, Resource
    from packlint.rules.base import Violation
    from packlint.targets import IdentifierLookup

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# uniqueness.resource-location
# ---------------------------------------------------------------------------

RESOURCE_LOCATION = "uniqueness.resource-location"


@dataclass(frozen=True)
class SubfolderOptions:
    options: frozenset[str] = frozenset()
    extend: bool = True


def evaluate_resource_location(pack: DataPack, config: SubfolderOptions) -> list[Violation]:
    """Every resource of a namespace must live under the same first-level subfolder.

    The ``minecraft`` namespace is skipped.
    """
    out = ViolationBuilder(RESOURCE_LOCATION)
    for ns in pack.namespaces:
        if ns.name == DEFAULT_NAMESPACE:
            continue
        candidates: list[Candidate[Resource]] = []
        for resource in ns.all_resources:
            if not resource.directory:
                out.resource(resource, "Resource is not in a subfolder.")
                continue
            candidates.append(Candidate(resource.directory.split("/", 1)[0], resource))

        result = infer(candidates, allowed=config.options, extend=config.extend)
        for mismatch in result.mismatches:
            if mismatch.established is not None:
                message = (
                    f"Resource subfolder does not match {mismatch.established.origin.identifier} "
                    f"or any of the ones in the config file."
                )
            else:
                message = "Resource subfolder does not match any of the ones in the config file."
            out.resource(mismatch.candidate.origin, message)
        if result.established is not None:
            logger.debug("Namespace %s uses subfolder %s", ns.name, result.established.value)
    locations = (r.file_path for ns in pack.namespaces for r in ns.all_resources)
    return sorted(out.violations, key=_source_order(locations))


def _parse_resource_location(data: Any) -> SubfolderOptions:
    parsed = parse_inference_options(data, RESOURCE_LOCATION, "options")
    return SubfolderOptions(options=parsed["options"], extend=parsed["extend"])


resource_location_rule: RuleDefinition[SubfolderOptions] = RuleDefinition(
    name=RESOURCE_LOCATION,
    title="All data pack files must be in a subfolder with the same name.",
    description=(
        "Putting every resource of an author specific namespace in one subfolder prevents "
        "clashes with other data packs of the same author. The first subfolder seen in a "
        "namespace becomes the expected one unless 'extend' is false; subfolders listed in "
        "'options' are always allowed. The minecraft namespace is not checked."
    ),
    parse_config=_parse_resource_location,
    evaluate=evaluate_resource_location,
    config_example="options:\n  - other_subfolder\nextend: true\n",
)


# ---------------------------------------------------------------------------
# uniqueness.identifier
# ---------------------------------------------------------------------------

IDENTIFIER = "uniqueness.identifier"


@dataclass(frozen=True)
class PrefixOptions:
    namespaces: frozenset[str] = frozenset()
    prefixes: frozenset[str] = frozenset()
    extend: bool = True


def evaluate_identifier(
    pack: DataPack,
    config: PrefixOptions,
    *,
    lookup: IdentifierLookup = find_identifier_prefix,
) -> list[Violation]:
    """Identifiers created in a namespace must share one prefix.

    Namespaced identifiers never establish anything: they must use the
    function's own namespace (with ``extend``) or one listed in
    ``namespaces``.
    """
    out = ViolationBuilder(IDENTIFIER)
    for ns in pack.namespaces:
        candidates: list[Candidate[tuple[Function, Command]]] = []
        for function in ns.functions:
            for command in function.commands_flat:
                target = lookup(command)
                if target is None:
                    continue
                if not target.value:
                    out.command(function, command, "Identifier in command does not have a prefix.")
                elif target.namespaced:
                    if target.value in config.namespaces:
                        continue
                    if config.extend and target.value == ns.name:
                        continue
                    if config.extend:
                        message = (
                            "Identifier namespace does not match function namespace "
                            "or any of the ones in the config file."
                        )
                    else:
                        message = (
                            "Identifier namespace does not match any of the ones "
                            "in the config file."
                        )
                    out.command(function, command, message)
                else:
                    candidates.append(Candidate(target.value, (function, command)))

        result = infer(candidates, allowed=config.prefixes, extend=config.extend)
        for mismatch in result.mismatches:
            function, command = mismatch.candidate.origin
            if mismatch.established is not None:
                found_function, found_command = mismatch.established.origin
                message = (
                    f"Identifier prefix does not match {mismatch.established.value} found on "
                    f"{found_function.identifier} line {found_command.line} "
                    f"or any of the ones in the config file."
                )
            else:
                message = "Identifier prefix does not match any of the ones in the config file."
            out.command(function, command, message)
    return sorted(out.violations, key=_source_order(f.identifier for f in pack.functions))


def _source_order(locations: Iterable[str]) -> Callable[[Violation], tuple[int, int]]:
    """Sort key restoring declaration order once inference mismatches are appended."""
    order = {location: idx for idx, location in enumerate(locations)}

    def _key(violation: Violation) -> tuple[int, int]:
        return (order.get(violation.location or "", -1), violation.line_number or 0)

    return _key


def _parse_identifier(data: Any) -> PrefixOptions:
    parsed = parse_inference_options(data, IDENTIFIER, "namespaces", "prefixes")
    return PrefixOptions(
        namespaces=parsed["namespaces"],
        prefixes=parsed["prefixes"],
        extend=parsed["extend"],
    )


identifier_rule: RuleDefinition[PrefixOptions] = RuleDefinition(
    name=IDENTIFIER,
    title="All in-game resources must have a prefixed identifier.",
    description=(
        "Scoreboard objectives, tags and teams must be prefixed to prevent clashes, "
        "separated by '.', '_' or '-'. Only one prefix per namespace is allowed: the first "
        "one seen is established unless 'extend' is false, and those in 'prefixes' are "
        "always allowed. Bossbars and data storages must use the namespace of the function "
        "or one listed in 'namespaces'."
    ),
    parse_config=_parse_identifier,
    evaluate=evaluate_identifier,
    config_example="namespaces:\n  - other_namespace\nprefixes:\n  - other_prefix\nextend: true\n",
)
