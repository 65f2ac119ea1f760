"""Rule domain: signed regex filters, inference, and the built-in rule catalogue."""

from __future__ import annotations

from typing import Any

from packlint.rules.base import ConfigurationError, RuleDefinition, Violation
from packlint.rules.blacklist import (
    commands_rule,
    identifier_rule,
    identifiers_rule,
    resource_location_rule,
)
from packlint.rules.compatibility import no_tag_replace_rule, version_id_rule
from packlint.rules.filters import (
    Filter,
    FilterOutcome,
    MatchStrategy,
    PathFilter,
    Polarity,
    RegexRule,
    RuleList,
    evaluate_chain,
    parse_filter_chain,
    parse_path_filter,
    parse_rule_list,
)
from packlint.rules.inference import Candidate, InferenceResult, Mismatch, infer
from packlint.rules.style import as_at_comments_rule, uninstall_function_rule
from packlint.rules.uniqueness import identifier_rule as prefix_rule
from packlint.rules.uniqueness import resource_location_rule as subfolder_rule

BUILTIN_RULES: tuple[RuleDefinition[Any], ...] = (
    resource_location_rule,
    commands_rule,
    identifier_rule,
    identifiers_rule,
    subfolder_rule,
    prefix_rule,
    uninstall_function_rule,
    as_at_comments_rule,
    no_tag_replace_rule,
    version_id_rule,
)

RULES_BY_NAME: dict[str, RuleDefinition[Any]] = {rule.name: rule for rule in BUILTIN_RULES}


def get_rule(name: str) -> RuleDefinition[Any]:
    """Return the built-in rule called *name*; raises ``KeyError`` for unknown names."""
    return RULES_BY_NAME[name]


__all__ = [
    "BUILTIN_RULES",
    "RULES_BY_NAME",
    "Candidate",
    "ConfigurationError",
    "Filter",
    "FilterOutcome",
    "InferenceResult",
    "MatchStrategy",
    "Mismatch",
    "PathFilter",
    "Polarity",
    "RegexRule",
    "RuleDefinition",
    "RuleList",
    "Violation",
    "evaluate_chain",
    "get_rule",
    "infer",
    "parse_filter_chain",
    "parse_path_filter",
    "parse_rule_list",
]
