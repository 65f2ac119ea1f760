"""Shared rule types: violations, rule definitions, and configuration parsing helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from packlint.model.resources import Command, DataPack, Resource

C = TypeVar("C")

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigurationError(ValueError):
    """Raised when a rule's configuration is malformed.

    The checker reports it as an invalid-configuration outcome for that
    rule only; other rules keep running.
    """


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Violation:
    """A single rule violation."""

    rule_name: str
    severity: str  # "error" | "warn"
    namespace: str | None  # None for pack-wide findings
    location: str | None  # unit identifier or resource file path
    line_number: int | None
    message: str
    filter_index: int | None = None  # 1-based, filter chain rules only
    reference: str | None = None  # unit that triggered a location match


@dataclass(frozen=True)
class RuleDefinition(Generic[C]):
    """A named check: how to parse its configuration and how to run it.

    *parse_config* receives the raw configuration (``None`` when the rule
    is enabled without one) and raises :class:`ConfigurationError` on bad
    input.  *evaluate* must not mutate the pack.
    """

    name: str
    title: str
    description: str
    parse_config: Callable[[Any], C]
    evaluate: Callable[[DataPack, C], list[Violation]]
    config_example: str = ""
    severity: str = "error"

    def run(self, pack: DataPack, raw_config: Any) -> list[Violation]:
        """Parse *raw_config* and evaluate the rule against *pack*."""
        config = self.parse_config(raw_config)
        return self.evaluate(pack, config)


@dataclass
class ViolationBuilder:
    """Collects violations for one rule invocation, filling in the rule name."""

    rule_name: str
    severity: str = "error"
    violations: list[Violation] = field(default_factory=list)

    def command(
        self,
        owner: Resource,
        command: Command,
        message: str,
        *,
        filter_index: int | None = None,
        reference: str | None = None,
    ) -> None:
        self.violations.append(
            Violation(
                rule_name=self.rule_name,
                severity=self.severity,
                namespace=owner.namespace,
                location=owner.identifier,
                line_number=command.line,
                message=message,
                filter_index=filter_index,
                reference=reference,
            )
        )

    def resource(self, resource: Resource, message: str) -> None:
        self.violations.append(
            Violation(
                rule_name=self.rule_name,
                severity=self.severity,
                namespace=resource.namespace,
                location=resource.file_path,
                line_number=None,
                message=message,
            )
        )

    def pack(self, message: str) -> None:
        self.violations.append(
            Violation(
                rule_name=self.rule_name,
                severity=self.severity,
                namespace=None,
                location=None,
                line_number=None,
                message=message,
            )
        )


# ---------------------------------------------------------------------------
# Configuration helpers
# ---------------------------------------------------------------------------


def require_mapping(data: Any, context: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = f"{context} must be a mapping"
        raise ConfigurationError(msg)
    return data


def require_list(data: dict[str, Any], key: str, context: str) -> list[Any]:
    if key not in data:
        msg = f"{context}: missing required '{key}' list"
        raise ConfigurationError(msg)
    value = data[key]
    if not isinstance(value, list):
        msg = f"{context}: '{key}' must be a list"
        raise ConfigurationError(msg)
    return value


def require_strings(data: dict[str, Any], key: str, context: str) -> tuple[str, ...]:
    values = require_list(data, key, context)
    for idx, value in enumerate(values):
        if not isinstance(value, str):
            msg = f"{context}: '{key}' entry at index {idx} must be a string"
            raise ConfigurationError(msg)
    return tuple(values)


def require_bool(data: dict[str, Any], key: str, context: str) -> bool:
    if key not in data:
        msg = f"{context}: missing required '{key}' boolean"
        raise ConfigurationError(msg)
    value = data[key]
    if not isinstance(value, bool):
        msg = f"{context}: '{key}' must be a boolean"
        raise ConfigurationError(msg)
    return value


def reject_config(data: Any, context: str) -> None:
    """Parser for rules that take no configuration."""
    if data is not None and data != {}:
        msg = f"{context} does not accept configuration"
        raise ConfigurationError(msg)


def no_config(context: str) -> Callable[[Any], None]:
    """Return a parser that only accepts an empty configuration."""

    def _parse(data: Any) -> None:
        reject_config(data, context)

    return _parse
