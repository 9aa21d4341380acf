# src/reconciler.py
"""
Keeps stored player and deck counters in step with the match history.

On match creation every seat's outcome becomes a delta that is added to
the stored counters; on deletion the same deltas are recomputed from the
match content, inverted and added again. Counters never go below zero.

Each affected player and deck gets exactly one full-replacement update.
The updates run concurrently and are independent: if one fails the pass
is reported as failed, even though others may already have landed. There
is no compensation and no retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from src.config import UNKNOWN_LABEL
from src.deltas import DeltaAccumulator, StatDelta, apply_delta, build_delta, invert
from src.match_normalizer import NormalizedMatch, normalize_match
from src.records import (
    deck_key,
    deck_name,
    deck_owner_id,
    make_identity_key,
    name_key,
    player_id,
    player_name,
    read_counters,
)
from src.result_resolver import resolve_seat_result, seat_is_casual

LOGGER = logging.getLogger(__name__)

APPLY = "apply"
ROLLBACK = "rollback"


@dataclass
class PlannedUpdate:
    kind: str
    key: Union[int, str]
    payload: Dict[str, Any]
    delta: StatDelta


@dataclass
class ReconcileReport:
    mode: str
    players_updated: List[Union[int, str]] = field(default_factory=list)
    decks_updated: List[Union[int, str]] = field(default_factory=list)
    seats_skipped: int = 0
    unmatched: List[str] = field(default_factory=list)

    @property
    def update_count(self) -> int:
        return len(self.players_updated) + len(self.decks_updated)


class ReconciliationError(Exception):
    """One or more per-entity updates failed; the rest may have been applied."""

    def __init__(self, failures: List[Tuple[PlannedUpdate, BaseException]], report: ReconcileReport):
        self.failures = failures
        self.report = report
        names = ", ".join(f"{u.kind} {u.key}" for u, _ in failures)
        super().__init__(f"{len(failures)} stat update(s) failed: {names}")


def collect_deltas(match: NormalizedMatch, rollback: bool = False) -> Tuple[DeltaAccumulator, DeltaAccumulator, int]:
    """Per-player and per-deck deltas for one match, plus the number of seats skipped."""
    players = DeltaAccumulator()
    decks = DeltaAccumulator()
    skipped = 0

    for seat in match.seats:
        result = resolve_seat_result(seat, match)
        if result is None:
            skipped += 1
            LOGGER.debug("Seat %s of match %s has no resolvable result", seat.position, match.key or "?")
            continue

        delta = build_delta(result, seat_is_casual(seat, match))
        if rollback:
            delta = invert(delta)

        identity = seat.player_id if seat.player_id is not None else seat.player_name
        player_identity = make_identity_key(identity)
        if player_identity:
            players.add(player_identity, delta)
        else:
            LOGGER.debug("Seat %s of match %s has no player identity", seat.position, match.key or "?")

        normalized_deck = deck_key(seat.deck_name)
        if normalized_deck:
            decks.add(f"name:{normalized_deck}", delta)

    return players, decks, skipped


def _index_players(players: List[Dict[str, Any]]) -> Tuple[Dict[int, int], Dict[str, int]]:
    by_id: Dict[int, int] = {}
    by_name: Dict[str, int] = {}
    for index, record in enumerate(players):
        ident = player_id(record)
        if ident is not None:
            by_id.setdefault(ident, index)
        key = name_key(player_name(record))
        if key:
            by_name.setdefault(key, index)
    return by_id, by_name


def _lookup(identity: str, by_id: Dict[int, int], by_name: Dict[str, int]) -> Optional[int]:
    kind, _, value = identity.partition(":")
    if kind == "id":
        try:
            return by_id.get(int(value))
        except ValueError:
            return None
    # Name fallback: two stored players sharing a display name resolve to the first one.
    return by_name.get(value)


def _merge_by_entity(
    deltas: DeltaAccumulator,
    by_id: Dict[int, int],
    by_name: Dict[str, int],
    unmatched: List[str],
) -> Dict[int, StatDelta]:
    merged: Dict[int, StatDelta] = {}
    for identity, delta in deltas.items():
        index = _lookup(identity, by_id, by_name)
        if index is None:
            unmatched.append(identity)
            LOGGER.debug("No stored entity for %s; skipping", identity)
            continue
        merged[index] = merged[index] + delta if index in merged else delta
    return merged


def player_update_payload(record: Dict[str, Any], delta: StatDelta) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    ident = player_id(record)
    if ident is not None:
        payload["playerId"] = ident
    payload["playerName"] = player_name(record) or UNKNOWN_LABEL
    payload.update(apply_delta(read_counters(record), delta))
    return payload


def deck_update_payload(record: Dict[str, Any], delta: StatDelta) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "deckName": deck_name(record) or UNKNOWN_LABEL,
        "playerID": deck_owner_id(record),
    }
    payload.update(apply_delta(read_counters(record), delta))
    return payload


def plan_updates(
    match: NormalizedMatch,
    players: List[Dict[str, Any]],
    decks: List[Dict[str, Any]],
    rollback: bool = False,
) -> Tuple[List[PlannedUpdate], ReconcileReport]:
    """Pure part of a reconciliation pass: which entities change and to what."""
    report = ReconcileReport(mode=ROLLBACK if rollback else APPLY)
    player_deltas, deck_deltas, report.seats_skipped = collect_deltas(match, rollback=rollback)

    updates: List[PlannedUpdate] = []

    players_by_id, players_by_name = _index_players(players)
    for index, delta in _merge_by_entity(player_deltas, players_by_id, players_by_name, report.unmatched).items():
        if delta.is_zero():
            continue
        record = players[index]
        ident = player_id(record)
        key = ident if ident is not None else player_name(record)
        if key is None:
            continue
        updates.append(PlannedUpdate("player", key, player_update_payload(record, delta), delta))

    decks_by_name: Dict[str, int] = {}
    for index, record in enumerate(decks):
        key = deck_key(deck_name(record))
        if key:
            decks_by_name.setdefault(key, index)
    for index, delta in _merge_by_entity(deck_deltas, {}, decks_by_name, report.unmatched).items():
        if delta.is_zero():
            continue
        record = decks[index]
        updates.append(PlannedUpdate("deck", deck_name(record), deck_update_payload(record, delta), delta))

    return updates, report


class StatsReconciler:
    """Applies or rolls back one match's statistics against the store."""

    def __init__(self, store):
        self.store = store

    async def apply(self, match: Union[NormalizedMatch, Dict[str, Any]]) -> ReconcileReport:
        return await self._reconcile(match, rollback=False)

    async def rollback(self, match: Union[NormalizedMatch, Dict[str, Any]]) -> ReconcileReport:
        return await self._reconcile(match, rollback=True)

    def _send(self, update: PlannedUpdate) -> Any:
        if update.kind == "player":
            return self.store.update_player(update.key, update.payload)
        return self.store.update_deck(update.key, update.payload)

    async def _reconcile(self, match: Union[NormalizedMatch, Dict[str, Any]], rollback: bool) -> ReconcileReport:
        normalized = match if isinstance(match, NormalizedMatch) else normalize_match(match)
        mode = ROLLBACK if rollback else APPLY

        player_deltas, deck_deltas, skipped = collect_deltas(normalized, rollback=rollback)
        if not player_deltas and not deck_deltas:
            LOGGER.info("Match %s: nothing to %s", normalized.key or "?", mode)
            return ReconcileReport(mode=mode, seats_skipped=skipped)

        players, decks = await asyncio.gather(
            asyncio.to_thread(self.store.list_players),
            asyncio.to_thread(self.store.list_decks),
        )
        updates, report = plan_updates(normalized, players or [], decks or [], rollback=rollback)

        results = await asyncio.gather(
            *(asyncio.to_thread(self._send, update) for update in updates),
            return_exceptions=True,
        )

        failures: List[Tuple[PlannedUpdate, BaseException]] = []
        for update, outcome in zip(updates, results):
            if isinstance(outcome, BaseException):
                failures.append((update, outcome))
                LOGGER.warning("Stat %s failed for %s %s: %s", mode, update.kind, update.key, outcome)
                continue
            if update.kind == "player":
                report.players_updated.append(update.key)
            else:
                report.decks_updated.append(update.key)

        if failures:
            raise ReconciliationError(failures, report)

        LOGGER.info(
            "Match %s: %s touched %d player(s), %d deck(s); %d seat(s) skipped, %d unmatched",
            normalized.key or "?",
            mode,
            len(report.players_updated),
            len(report.decks_updated),
            report.seats_skipped,
            len(report.unmatched),
        )
        return report
