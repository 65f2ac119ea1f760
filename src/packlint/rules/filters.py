"""Signed regex rule lists, two-stage filter chains, and the single-list path filter.

Configuration strings look like ``"+<regex>"`` (allow) or ``"-<regex>"``
(deny).  Each list is compiled once into an immutable :class:`RuleList`;
evaluation is a pure function of the text being matched.

Filter chains combine a *location* list, matched against the identifiers of
the units that reach an item, with a *content* list, matched against the
item itself.  An item is blocked by a filter only when both halves deny.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from packlint.rules.base import (
    ConfigurationError,
    require_bool,
    require_list,
    require_mapping,
    require_strings,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence


class Polarity(enum.Enum):
    ALLOW = "+"
    DENY = "-"


class MatchStrategy(enum.Enum):
    """How a location list is matched against a set of references.

    ``PER_REFERENCE``: every reference is scanned through the list on its
    own; the first rule matching a reference decides for that reference,
    and a single denied reference makes the location negative.

    ``PER_RULE``: rules are scanned in order; the first rule matching *any*
    reference decides for the whole set.

    The two disagree when one reference is allowed early and another is
    denied later.  Built-in rules use ``PER_RULE``.
    """

    PER_REFERENCE = "per-reference"
    PER_RULE = "per-rule"


# ---------------------------------------------------------------------------
# Rule lists
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RegexRule:
    """One compiled ``+``/``-`` pattern, matched against the whole string."""

    pattern: re.Pattern[str]
    polarity: Polarity

    def matches(self, text: str) -> bool:
        return self.pattern.fullmatch(text) is not None

    @property
    def allow(self) -> bool:
        return self.polarity is Polarity.ALLOW


@dataclass(frozen=True)
class RuleList:
    """An ordered list of regex rules where the first match wins."""

    rules: tuple[RegexRule, ...] = ()

    def first_match(self, text: str) -> RegexRule | None:
        for rule in self.rules:
            if rule.matches(text):
                return rule
        return None

    def verdict(self, text: str) -> Polarity | None:
        """Return the polarity of the first matching rule, or ``None`` if nothing matches."""
        rule = self.first_match(text)
        return rule.polarity if rule is not None else None

    def denies(self, text: str) -> bool:
        return self.verdict(text) is Polarity.DENY

    def __len__(self) -> int:
        return len(self.rules)


def parse_rule(value: Any, context: str) -> RegexRule:
    """Compile one signed pattern string."""
    if not isinstance(value, str):
        msg = f"{context}: rule must be a string"
        raise ConfigurationError(msg)
    if not value or value[0] not in "+-":
        msg = f"{context}: rule '{value}' must start with '+' or '-'"
        raise ConfigurationError(msg)
    try:
        pattern = re.compile(value[1:])
    except re.error as exc:
        msg = f"{context}: invalid regular expression '{value[1:]}': {exc}"
        raise ConfigurationError(msg) from exc
    return RegexRule(pattern=pattern, polarity=Polarity(value[0]))


def parse_rule_list(values: Sequence[Any], context: str) -> RuleList:
    """Compile a list of signed pattern strings, keeping their order."""
    return RuleList(
        rules=tuple(
            parse_rule(value, f"{context}[{idx}]") for idx, value in enumerate(values)
        )
    )


# ---------------------------------------------------------------------------
# Filter chains
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Filter:
    """A location rule list paired with a content rule list."""

    location: RuleList
    content: RuleList


@dataclass(frozen=True)
class FilterOutcome:
    """Result of one filter for one item."""

    index: int  # 1-based position in the chain
    blocked: bool
    reference: str | None  # reference that produced the location verdict


def _negative_location_per_reference(location: RuleList, references: list[str]) -> str | None:
    for reference in references:
        if location.denies(reference):
            return reference
    return None


def _negative_location_per_rule(location: RuleList, references: list[str]) -> str | None:
    for rule in location.rules:
        for reference in references:
            if rule.matches(reference):
                return None if rule.allow else reference
    return None


def negative_location_match(
    location: RuleList,
    references: Collection[str],
    strategy: MatchStrategy = MatchStrategy.PER_RULE,
) -> str | None:
    """Return the reference that makes the location half deny, or ``None``.

    References are scanned in sorted order so the reported reference does
    not depend on set iteration order.
    """
    ordered = sorted(references)
    if strategy is MatchStrategy.PER_REFERENCE:
        return _negative_location_per_reference(location, ordered)
    return _negative_location_per_rule(location, ordered)


def evaluate_filter(
    flt: Filter,
    index: int,
    text: str,
    references: Collection[str],
    strategy: MatchStrategy = MatchStrategy.PER_RULE,
) -> FilterOutcome:
    reference = negative_location_match(flt.location, references, strategy)
    blocked = reference is not None and flt.content.denies(text)
    return FilterOutcome(index=index, blocked=blocked, reference=reference)


def evaluate_chain(
    chain: Sequence[Filter],
    text: str,
    references: Collection[str],
    strategy: MatchStrategy = MatchStrategy.PER_RULE,
) -> list[FilterOutcome]:
    """Evaluate every filter of *chain*; there is no short-circuit on a block."""
    return [
        evaluate_filter(flt, idx, text, references, strategy)
        for idx, flt in enumerate(chain, start=1)
    ]


def blocking_filters(
    chain: Sequence[Filter],
    text: str,
    references: Collection[str],
    strategy: MatchStrategy = MatchStrategy.PER_RULE,
) -> list[FilterOutcome]:
    return [o for o in evaluate_chain(chain, text, references, strategy) if o.blocked]


def parse_filter_entries(
    data: Any, context: str, *, keys: Sequence[str]
) -> list[dict[str, RuleList]]:
    """Parse ``{"filters": [{<key>: [...], ...}, ...]}`` into compiled rule lists.

    Every key in *keys* is required in every filter and must hold a list of
    signed pattern strings.
    """
    config = require_mapping(data, context)
    entries = require_list(config, "filters", context)
    parsed: list[dict[str, RuleList]] = []
    for idx, entry in enumerate(entries):
        entry_context = f"{context} filter {idx + 1}"
        entry_map = require_mapping(entry, entry_context)
        parsed.append(
            {
                key: parse_rule_list(
                    require_strings(entry_map, key, entry_context), f"{entry_context} {key}"
                )
                for key in keys
            }
        )
    return parsed


def parse_filter_chain(
    data: Any,
    context: str,
    *,
    location_key: str = "resources",
    content_key: str = "commands",
) -> tuple[Filter, ...]:
    """Parse a filter chain configuration into compiled filters."""
    entries = parse_filter_entries(data, context, keys=(location_key, content_key))
    return tuple(
        Filter(location=entry[location_key], content=entry[content_key]) for entry in entries
    )


# ---------------------------------------------------------------------------
# Single-list path filter
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathFilter:
    """One rule list with a default verdict for paths nothing matches."""

    rules: RuleList
    default_allow: bool = True

    def allows(self, path: str) -> bool:
        verdict = self.rules.verdict(path)
        if verdict is None:
            return self.default_allow
        return verdict is Polarity.ALLOW


def parse_path_filter(data: Any, context: str) -> PathFilter:
    """Parse ``{"filters": [...], "defaultAllow": bool}``.

    Without ``defaultAllow`` the implicit default is to allow.
    """
    config = require_mapping(data, context)
    rules = parse_rule_list(require_strings(config, "filters", context), f"{context} filters")
    if "defaultAllow" in config:
        return PathFilter(rules=rules, default_allow=require_bool(config, "defaultAllow", context))
    return PathFilter(rules=rules)
