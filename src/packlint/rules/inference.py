"""First-seen-wins inference of a per-namespace convention.

A namespace is expected to use a single subfolder (or identifier prefix).
Nothing is configured up front: the first candidate that is not on the
explicit allow-list becomes the established value, and every later
candidate must equal it.  The pass runs once, forward, so reordering the
input changes which item gets reported.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from packlint.rules.base import ConfigurationError, require_bool, require_mapping, require_strings

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")


@dataclass(frozen=True)
class Candidate(Generic[T]):
    """A value derived from one item, plus the item it came from."""

    value: str
    origin: T


@dataclass(frozen=True)
class Mismatch(Generic[T]):
    """A candidate that matched neither the allow-list nor the established value."""

    candidate: Candidate[T]
    established: Candidate[T] | None


@dataclass(frozen=True)
class InferenceResult(Generic[T]):
    established: Candidate[T] | None = None
    mismatches: tuple[Mismatch[T], ...] = ()


def infer(
    candidates: Iterable[Candidate[T]],
    *,
    allowed: frozenset[str] = frozenset(),
    extend: bool = True,
) -> InferenceResult[T]:
    """Fold *candidates* in order into an established value and its mismatches."""

    def _step(state: InferenceResult[T], candidate: Candidate[T]) -> InferenceResult[T]:
        if candidate.value in allowed:
            return state
        if state.established is None and extend:
            return InferenceResult(established=candidate, mismatches=state.mismatches)
        if state.established is not None and state.established.value == candidate.value:
            return state
        mismatch = Mismatch(candidate=candidate, established=state.established)
        return InferenceResult(
            established=state.established, mismatches=(*state.mismatches, mismatch)
        )

    return reduce(_step, candidates, InferenceResult())


def parse_inference_options(data: Any, context: str, *list_keys: str) -> dict[str, Any]:
    """Validate an inference configuration and return it as plain values.

    ``None`` is valid and means ``extend=True`` with every list empty.
    Otherwise every key in *list_keys* and ``extend`` are required.
    """
    if data is None:
        return {"extend": True, **{key: frozenset() for key in list_keys}}
    config = require_mapping(data, context)
    unknown = sorted(set(config) - {"extend", *list_keys})
    if unknown:
        msg = f"{context}: unknown option(s) {unknown}"
        raise ConfigurationError(msg)
    parsed: dict[str, Any] = {"extend": require_bool(config, "extend", context)}
    for key in list_keys:
        parsed[key] = frozenset(require_strings(config, key, context))
    return parsed
