import itertools

import pytest

from src.deltas import DeltaAccumulator, StatDelta, apply_delta, build_delta, invert, merge
from src.result_resolver import LOSS, TIE, WIN

SAMPLES = [
    StatDelta(),
    StatDelta(wins=1),
    StatDelta(losses=1, casual_losses=1),
    StatDelta(ties=2),
    StatDelta(wins=-1, casual_wins=-1),
    StatDelta(1, 2, 3, 4, 5),
]


def test_merge_is_commutative_and_associative():
    for a, b in itertools.product(SAMPLES, repeat=2):
        assert merge(a, b) == merge(b, a)
    for a, b, c in itertools.product(SAMPLES, repeat=3):
        assert merge(merge(a, b), c) == merge(a, merge(b, c))


def test_invert_cancels():
    for a in SAMPLES:
        assert merge(a, invert(a)) == StatDelta.zero()
        assert merge(a, invert(a)).is_zero()


@pytest.mark.parametrize(
    "result,casual,expected",
    [
        (WIN, False, StatDelta(wins=1)),
        (WIN, True, StatDelta(wins=1, casual_wins=1)),
        (LOSS, False, StatDelta(losses=1)),
        (LOSS, True, StatDelta(losses=1, casual_losses=1)),
        (TIE, False, StatDelta(ties=1)),
        (TIE, True, StatDelta(ties=1)),
        (None, True, StatDelta()),
    ],
)
def test_build_delta(result, casual, expected):
    assert build_delta(result, casual) == expected


def test_apply_delta_clamps_at_zero():
    counters = {"wins": 0, "losses": 2, "ties": 1, "casualWins": 0, "casualLosses": 0}
    out = apply_delta(counters, StatDelta(wins=-1, losses=-1, ties=-3))
    assert out == {"wins": 0, "losses": 1, "ties": 0, "casualWins": 0, "casualLosses": 0}


def test_apply_delta_adds():
    out = apply_delta({"wins": 4}, StatDelta(wins=1, casual_wins=1))
    assert out["wins"] == 5
    assert out["casualWins"] == 1


def test_as_wire_uses_store_spelling():
    assert StatDelta(casual_wins=2).as_wire() == {
        "wins": 0,
        "losses": 0,
        "ties": 0,
        "casualWins": 2,
        "casualLosses": 0,
    }


def test_accumulator_sums_per_key_in_first_seen_order():
    acc = DeltaAccumulator()
    acc.add("id:2", StatDelta(losses=1))
    acc.add("id:1", StatDelta(wins=1))
    acc.add("id:2", StatDelta(losses=1))
    acc.add(None, StatDelta(wins=5))
    acc.add("", StatDelta(wins=5))

    assert acc.keys() == ["id:2", "id:1"]
    assert acc.get("id:2") == StatDelta(losses=2)
    assert "id:1" in acc
    assert len(acc) == 2


def test_empty_accumulator_is_falsy():
    assert not DeltaAccumulator()
