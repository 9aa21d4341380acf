# src/deltas.py

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Dict, Iterator, Mapping, Optional, Tuple

from src.result_resolver import LOSS, TIE, WIN


@dataclass(frozen=True)
class StatDelta:
    """Signed change to one entity's counters, computed from a single match."""

    wins: int = 0
    losses: int = 0
    ties: int = 0
    casual_wins: int = 0
    casual_losses: int = 0

    # Wire names of the counters, in the store's canonical spelling.
    WIRE_NAMES = {
        "wins": "wins",
        "losses": "losses",
        "ties": "ties",
        "casual_wins": "casualWins",
        "casual_losses": "casualLosses",
    }

    @classmethod
    def zero(cls) -> "StatDelta":
        return cls()

    def __add__(self, other: "StatDelta") -> "StatDelta":
        if not isinstance(other, StatDelta):
            return NotImplemented
        return StatDelta(*(a + b for a, b in zip(self.as_tuple(), other.as_tuple())))

    def __neg__(self) -> "StatDelta":
        return StatDelta(*(-value for value in self.as_tuple()))

    def as_tuple(self) -> Tuple[int, ...]:
        return tuple(getattr(self, f.name) for f in fields(self))

    def as_wire(self) -> Dict[str, int]:
        return {self.WIRE_NAMES[f.name]: getattr(self, f.name) for f in fields(self)}

    def is_zero(self) -> bool:
        return not any(self.as_tuple())


def build_delta(result: Optional[str], is_casual: bool) -> StatDelta:
    """
    Delta for one seat outcome.

    tie -> ties only (there is no casual tie counter); win/loss -> the
    matching bucket plus its casual mirror when the game was casual.
    Anything else yields the zero delta.
    """
    if result == TIE:
        return StatDelta(ties=1)
    if result == WIN:
        return StatDelta(wins=1, casual_wins=1 if is_casual else 0)
    if result == LOSS:
        return StatDelta(losses=1, casual_losses=1 if is_casual else 0)
    return StatDelta()


def merge(a: StatDelta, b: StatDelta) -> StatDelta:
    return a + b


def invert(a: StatDelta) -> StatDelta:
    return -a


def apply_delta(counters: Mapping[str, int], delta: StatDelta) -> Dict[str, int]:
    """New counters after ``delta``; nothing goes below zero."""
    out: Dict[str, int] = {}
    for wire_name, change in delta.as_wire().items():
        out[wire_name] = max(0, int(counters.get(wire_name, 0) or 0) + change)
    return out


class DeltaAccumulator:
    """Sums deltas per key, keeping first-seen key order."""

    def __init__(self) -> None:
        self._deltas: Dict[str, StatDelta] = {}

    def add(self, key: Optional[str], delta: StatDelta) -> None:
        if not key:
            return
        existing = self._deltas.get(key)
        self._deltas[key] = delta if existing is None else existing + delta

    def get(self, key: str) -> Optional[StatDelta]:
        return self._deltas.get(key)

    def items(self) -> Iterator[Tuple[str, StatDelta]]:
        return iter(list(self._deltas.items()))

    def keys(self):
        return list(self._deltas)

    def __len__(self) -> int:
        return len(self._deltas)

    def __bool__(self) -> bool:
        return bool(self._deltas)

    def __contains__(self, key: object) -> bool:
        return key in self._deltas
