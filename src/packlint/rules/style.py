"""Style rules: an uninstall function and as/at context comments."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packlint.model.resources import ContentKind
from packlint.rules.base import RuleDefinition, ViolationBuilder, no_config
from packlint.targets import find_uninstall_command

if TYPE_CHECKING:
    from packlint.model.resources import DataPack, Function
    from packlint.rules.base import Violation

UNINSTALL_FUNCTION = "style.uninstall-function"
AS_AT_COMMENTS = "style.as-at-comments"

UNINSTALL_NAME = "uninstall"
_AS_AT_HEADER_LINES = 2


def evaluate_uninstall_function(pack: DataPack, _config: None) -> list[Violation]:
    """There is exactly one uninstall function and it removes everything the pack creates."""
    out = ViolationBuilder(UNINSTALL_FUNCTION)
    uninstalls = [f for f in pack.functions if f.name == UNINSTALL_NAME]
    if len(uninstalls) > 1:
        listing = "\n".join(f.identifier for f in uninstalls)
        out.pack(f"Data pack cannot contain more than one uninstall function:\n{listing}")
        return out.violations
    if not uninstalls:
        out.pack("Data pack does not contain uninstall function.")
        return out.violations

    uninstall = uninstalls[0]
    present = {c.raw for c in uninstall.commands if c.kind is ContentKind.COMMAND}
    missing: set[str] = set()
    for function in pack.functions:
        for command in function.commands_flat:
            expected = find_uninstall_command(command)
            if expected is None or expected in present or expected in missing:
                continue
            missing.add(expected)
            out.resource(
                uninstall,
                f"Uninstall function does not contain '{expected}' for "
                f"{function.identifier} line {command.line}.",
            )
    return out.violations


def _has_prefix(text: str, prefix: str) -> bool:
    """Case-insensitive prefix test that also requires text after the prefix."""
    return text.lower().startswith(prefix.lower()) and len(text) > len(prefix) + 1


def _as_at_flags(function: Function) -> tuple[bool, bool]:
    has_as = has_at = False
    for command in function.commands[:_AS_AT_HEADER_LINES]:
        if command.kind is not ContentKind.COMMENT:
            continue
        if _has_prefix(command.raw, "As:"):
            has_as = True
        elif _has_prefix(command.raw, "At:"):
            has_at = True
        elif _has_prefix(command.raw, "As/At:") or _has_prefix(command.raw, "At/As:"):
            has_as = has_at = True
    return has_as, has_at


def evaluate_as_at_comments(pack: DataPack, _config: None) -> list[Violation]:
    """The first two lines of every function describe its ``as`` and ``at`` context."""
    out = ViolationBuilder(AS_AT_COMMENTS)
    for function in pack.functions:
        if not all(_as_at_flags(function)):
            out.resource(function, "Function does not start with as/at comments.")
    return out.violations


uninstall_function_rule: RuleDefinition[None] = RuleDefinition(
    name=UNINSTALL_FUNCTION,
    title="There must be an uninstall function.",
    description=(
        "An uninstall function removes every in-game resource the data pack creates "
        "(scoreboard objectives, bossbars, teams, data storage) so the world is left clean "
        "before the pack is removed. Exactly one function named 'uninstall' must exist, in "
        "any directory."
    ),
    parse_config=no_config(UNINSTALL_FUNCTION),
    evaluate=evaluate_uninstall_function,
)

as_at_comments_rule: RuleDefinition[None] = RuleDefinition(
    name=AS_AT_COMMENTS,
    title="A function must start with comments describing the 'as/at' context.",
    description=(
        "Each function assumes a context: the meaning of @s, @p and ~ ~ ~. Writing it down "
        "in '# As: ...' and '# At: ...' (or '# As/At: ...') comments on the first two lines "
        "helps when the function is revisited."
    ),
    parse_config=no_config(AS_AT_COMMENTS),
    evaluate=evaluate_as_at_comments,
)
