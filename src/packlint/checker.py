"""Check orchestrator: load the pack and configuration, run rules, format results."""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from packlint.config import ConfigError, find_config, load_config
from packlint.model.loader import PackLoadError, load_pack
from packlint.rules import RULES_BY_NAME
from packlint.rules.base import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from rich.console import Console

    from packlint.model.resources import DataPack
    from packlint.rules.base import RuleDefinition, Violation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CheckError(Exception):
    """Raised when a check cannot start: bad configuration file or unreadable pack."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InvalidConfiguration:
    """A rule skipped because its configuration section is malformed."""

    rule_name: str
    message: str


@dataclass
class CheckResult:
    """Result of a check run."""

    violations: list[Violation] = field(default_factory=list)
    invalid: list[InvalidConfiguration] = field(default_factory=list)
    rules_evaluated: int = 0
    functions_scanned: int = 0
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.violations and not self.invalid


class ViolationSink:
    """Append-only, thread-safe collector keyed by rule name.

    :meth:`ordered` returns violations grouped in the requested rule order,
    so the output does not depend on which rule finished first.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._by_rule: dict[str, list[Violation]] = {}
        self._invalid: dict[str, InvalidConfiguration] = {}

    def extend(self, rule_name: str, violations: list[Violation]) -> None:
        with self._lock:
            self._by_rule.setdefault(rule_name, []).extend(violations)

    def invalid_configuration(self, rule_name: str, message: str) -> None:
        with self._lock:
            self._invalid[rule_name] = InvalidConfiguration(rule_name=rule_name, message=message)

    def ordered(self, rule_names: list[str]) -> tuple[list[Violation], list[InvalidConfiguration]]:
        with self._lock:
            violations = [v for name in rule_names for v in self._by_rule.get(name, [])]
            invalid = [self._invalid[name] for name in rule_names if name in self._invalid]
        return violations, invalid


# ---------------------------------------------------------------------------
# Running rules
# ---------------------------------------------------------------------------


def _run_one(
    rule: RuleDefinition[Any], pack: DataPack, raw_config: Any, sink: ViolationSink
) -> None:
    try:
        violations = rule.run(pack, raw_config)
    except ConfigurationError as exc:
        logger.warning("Invalid configuration for rule %s: %s", rule.name, exc)
        sink.invalid_configuration(rule.name, str(exc))
        return
    logger.info("Rule %s: %d violation(s)", rule.name, len(violations))
    sink.extend(rule.name, violations)


def run_rules(
    pack: DataPack,
    rule_configs: Mapping[str, Any],
    *,
    jobs: int = 1,
) -> CheckResult:
    """Run every rule named in *rule_configs* against *pack*.

    Rules share nothing but the sink, so with ``jobs > 1`` they run on a
    thread pool.  Unknown rule names raise ``KeyError``.
    """
    start = time.monotonic()
    names = list(rule_configs)
    rules = [RULES_BY_NAME[name] for name in names]
    sink = ViolationSink()

    if jobs > 1 and len(rules) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = [
                pool.submit(_run_one, rule, pack, rule_configs[rule.name], sink) for rule in rules
            ]
            for future in futures:
                future.result()
    else:
        for rule in rules:
            _run_one(rule, pack, rule_configs[rule.name], sink)

    violations, invalid = sink.ordered(names)
    elapsed = (time.monotonic() - start) * 1000
    return CheckResult(
        violations=violations,
        invalid=invalid,
        rules_evaluated=len(rules) - len(invalid),
        functions_scanned=sum(1 for _ in pack.functions),
        elapsed_ms=elapsed,
    )


def check(
    pack_root: Path,
    *,
    config_path: Path | None = None,
    jobs: int = 1,
) -> CheckResult:
    """Load the pack at *pack_root*, load its configuration, and run the configured rules.

    Parameters
    ----------
    pack_root:
        Data pack directory (the one holding ``pack.mcmeta`` and ``data/``).
    config_path:
        Explicit configuration file.  When *None*, ``packlint.yml`` (or
        ``packlint.yaml``) in *pack_root* is used; without one no rule runs.
    jobs:
        Number of rules evaluated concurrently.

    Raises
    ------
    CheckError
        When the configuration file is unusable or the pack cannot be loaded.
    """
    if config_path is None:
        config_path = find_config(pack_root)

    try:
        config = load_config(config_path) if config_path is not None else None
    except ConfigError as exc:
        msg = f"Invalid configuration: {exc}"
        raise CheckError(msg) from exc

    try:
        pack = load_pack(pack_root)
    except PackLoadError as exc:
        raise CheckError(str(exc)) from exc

    if config is None:
        logger.info("No configuration file found in %s, nothing to check", pack_root)
        return CheckResult(functions_scanned=sum(1 for _ in pack.functions))

    return run_rules(pack, config.rules, jobs=jobs)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _location(v: Violation) -> str:
    loc = v.location or "<pack>"
    if v.line_number is not None:
        loc += f":{v.line_number}"
    return loc


def render_rich(result: CheckResult, console: Console) -> None:
    """Render a CheckResult with Rich markup, grouped by rule."""
    from rich.markup import escape

    for item in result.invalid:
        console.print(
            f"[yellow]! {item.rule_name}[/yellow] invalid configuration: {escape(item.message)}"
        )
    if result.invalid:
        console.print()

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"
    if not result.violations:
        console.print(
            f"[green]✓[/green] No violations found "
            f"({result.rules_evaluated} rules evaluated, {elapsed_str})"
        )
        return

    current_rule: str | None = None
    for v in result.violations:
        if v.rule_name != current_rule:
            if current_rule is not None:
                console.print()
            console.print(f"[red]✗[/red] [bold]{v.rule_name}[/bold]")
            current_rule = v.rule_name
        console.print(
            f"  [cyan]{escape(_location(v))}[/cyan] → {escape(v.message)}", highlight=False
        )

    console.print()
    console.print(
        f"{len(result.violations)} violations found "
        f"({result.rules_evaluated} rules evaluated, {elapsed_str})"
    )


def format_json(result: CheckResult) -> str:
    """Format a CheckResult as structured JSON with ``violations``, ``invalid`` and ``summary``."""
    output: dict[str, object] = {
        "violations": [
            {
                "rule_name": v.rule_name,
                "severity": v.severity,
                "namespace": v.namespace,
                "location": v.location,
                "line_number": v.line_number,
                "filter_index": v.filter_index,
                "reference": v.reference,
                "message": v.message,
            }
            for v in result.violations
        ],
        "invalid": [{"rule_name": i.rule_name, "message": i.message} for i in result.invalid],
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "violations_count": len(result.violations),
            "functions_scanned": result.functions_scanned,
            "elapsed_ms": result.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: CheckResult) -> str:
    """One line per finding: ``rule_name:namespace:location:line:filter_index:message``.

    Invalid rule configurations are reported as ``rule_name:invalid-config::::message``.
    """
    lines: list[str] = []
    for item in result.invalid:
        lines.append(f"{item.rule_name}:invalid-config::::{item.message}")
    for v in result.violations:
        line_number = str(v.line_number) if v.line_number is not None else ""
        filter_index = str(v.filter_index) if v.filter_index is not None else ""
        lines.append(
            f"{v.rule_name}:{v.namespace or ''}:{v.location or ''}:{line_number}:"
            f"{filter_index}:{v.message}"
        )
    return "\n".join(lines)
