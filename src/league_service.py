# src/league_service.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from src.api_client import StoreError
from src.calculator import LeagueStatsCalculator
from src.config import (
    CASUAL_FORMAT_LABEL,
    COMPETITIVE_FORMAT_LABEL,
    EMPTY_CELL,
    MAX_SEATS,
    MIN_SEATS,
    TIE_WINNER_LABEL,
    UNKNOWN_LABEL,
)
from src.favorites import FavoriteDecks, build_favorites, suggest_deck
from src.match_normalizer import normalize_match
from src.reconciler import ReconcileReport, ReconciliationError, StatsReconciler
from src.records import (
    COUNTER_FIELDS,
    coerce_int,
    display_deck_name,
    display_player_name,
    identity_key,
    match_key,
    player_id,
    player_name,
)
from src.result_resolver import LOSS, RESULTS, TIE, WIN, is_casual_format, resolve_seat_result

LOGGER = logging.getLogger(__name__)

Key = Union[int, str]


@dataclass
class OperationResult:
    """Outcome of a public operation; failures carry a reason instead of raising."""

    ok: bool
    message: str = ""
    reason: Optional[str] = None
    field: Optional[str] = None
    record: Optional[Dict[str, Any]] = None
    report: Optional[ReconcileReport] = None
    data: Any = None

    @classmethod
    def success(cls, message: str = "", **kwargs: Any) -> "OperationResult":
        return cls(ok=True, message=message, **kwargs)

    @classmethod
    def failure(cls, reason: str, message: str, **kwargs: Any) -> "OperationResult":
        return cls(ok=False, message=message, reason=reason, **kwargs)


@dataclass
class GameSlot:
    """One seat of a game being recorded: player record, deck record and outcome."""

    player: Optional[Dict[str, Any]] = None
    deck: Optional[Dict[str, Any]] = None
    result: str = ""

    @classmethod
    def coerce(cls, value: Any) -> "GameSlot":
        if isinstance(value, GameSlot):
            return value
        value = value if isinstance(value, dict) else {}
        return cls(
            player=_as_record(value.get("player"), "playerID", "playerName", numeric_text=True),
            deck=_as_record(value.get("deck"), "deckID", "deckName"),
            result=str(value.get("result") or "").strip().lower(),
        )


def _as_record(value: Any, id_field: str, name_field: str, numeric_text: bool = False) -> Optional[Dict[str, Any]]:
    if isinstance(value, dict):
        return value
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return {id_field: value}
    if isinstance(value, str) and value.strip():
        # Form and JSON clients send player ids as strings.
        numeric = coerce_int(value) if numeric_text else None
        if numeric is not None:
            return {id_field: numeric}
        return {name_field: value.strip()}
    return None


def apply_slot_result(slots: List[GameSlot], index: int, result: str) -> List[GameSlot]:
    """
    Set one slot's result the way the game form does: a tie applies to every
    seat, a win makes every other seat a loss, a loss only touches that seat.
    """
    if result == TIE:
        return [replace(slot, result=TIE) for slot in slots]
    if result == WIN:
        return [replace(slot, result=WIN if i == index else LOSS) for i, slot in enumerate(slots)]
    return [replace(slot, result=result) if i == index else slot for i, slot in enumerate(slots)]


def validate_slots(slots: List[GameSlot]) -> Optional[str]:
    if len(slots) < MIN_SEATS or len(slots) > MAX_SEATS:
        return f"A game needs between {MIN_SEATS} and {MAX_SEATS} players."
    if any(slot.player is None or slot.deck is None or not slot.result for slot in slots):
        return "Every seat needs a player, a deck and a result."
    for slot in slots:
        if slot.result not in RESULTS:
            return f"Unknown result '{slot.result}'."

    keys = [identity_key(slot.player, "player") for slot in slots]
    if any(key is None for key in keys):
        return "Every seat needs a player with an id or a name."
    if len(set(keys)) != len(keys):
        return "The same player cannot fill two seats."

    results = [slot.result for slot in slots]
    if TIE in results and any(result != TIE for result in results):
        return "A tie must include every seat."
    if TIE not in results and results.count(WIN) != 1:
        return "Exactly one seat must win."
    return None


def build_match_payload(
    slots: List[GameSlot],
    game_format: str,
    played_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Match record for the store.

    Carries the legacy flat fields (primary player plus three opponent
    columns) that older readers expect, and the explicit seat list.
    """
    format_label = CASUAL_FORMAT_LABEL if is_casual_format(game_format) else COMPETITIVE_FORMAT_LABEL
    winner_index = next((i for i, slot in enumerate(slots) if slot.result == WIN), -1)
    tie = all(slot.result == TIE for slot in slots)
    primary_index = winner_index if winner_index >= 0 else 0
    primary = slots[primary_index]
    opponents = [slot for i, slot in enumerate(slots) if i != primary_index]

    payload: Dict[str, Any] = {
        "playerID": player_id(primary.player),
        "deckName": display_deck_name(primary.deck, UNKNOWN_LABEL),
        "winnerName": TIE_WINNER_LABEL if tie else display_player_name(primary.player, UNKNOWN_LABEL),
        "format": format_label,
        "playerWin": not tie and winner_index >= 0,
        "result": "TIE" if tie else "WIN",
        "playedAt": (played_at or datetime.now(timezone.utc)).isoformat().replace("+00:00", "Z"),
    }
    for position, (name_field, deck_field) in enumerate(
        (("opponentOne", "opponentOneDeck"), ("opponentTwo", "opponentTwoDeck"), ("opponentThree", "opponentThreeDeck"))
    ):
        opponent = opponents[position] if position < len(opponents) else None
        payload[name_field] = display_player_name(opponent.player, UNKNOWN_LABEL) if opponent else UNKNOWN_LABEL
        payload[deck_field] = display_deck_name(opponent.deck, UNKNOWN_LABEL) if opponent else UNKNOWN_LABEL

    payload["seats"] = [
        {
            "seat": i + 1,
            "playerID": player_id(slot.player),
            "playerName": player_name(slot.player),
            "deckName": display_deck_name(slot.deck, UNKNOWN_LABEL),
            "result": slot.result,
            "format": format_label,
        }
        for i, slot in enumerate(slots)
    ]
    return payload


def _zero_counters() -> Dict[str, int]:
    return {name: 0 for name in COUNTER_FIELDS}


class LeagueService:
    """Operations the presentation layer calls; every one resolves to an OperationResult."""

    def __init__(self, store, calculator: Optional[LeagueStatsCalculator] = None):
        self.store = store
        self.reconciler = StatsReconciler(store)
        self.calculator = calculator or LeagueStatsCalculator()

    # --- Matches ---

    async def create_match(self, slots: List[Any], game_format: str = "cedh") -> OperationResult:
        """Validate, save the match, then apply its stats to players and decks."""
        game_slots = [GameSlot.coerce(slot) for slot in slots or []]
        error = validate_slots(game_slots)
        if error:
            return OperationResult.failure("validation", error, field="slots")

        payload = build_match_payload(game_slots, game_format)
        try:
            created = await asyncio.to_thread(self.store.create_match, payload)
        except StoreError as exc:
            LOGGER.warning("Saving match failed: %s", exc)
            return OperationResult.failure("store", "Failed to save match. Check the API.")

        record = created if isinstance(created, dict) else payload
        try:
            report = await self.reconciler.apply(payload)
        except (StoreError, ReconciliationError) as exc:
            LOGGER.warning("Match saved but stats update failed: %s", exc)
            return OperationResult.failure(
                "reconciliation",
                "Match saved, but failed to update stats.",
                record=record,
                report=getattr(exc, "report", None),
            )
        return OperationResult.success("Game saved and stats updated.", record=record, report=report)

    async def delete_match(self, match: Dict[str, Any]) -> OperationResult:
        """Delete a stored match and roll its stats back out of players and decks."""
        key = match_key(match)
        if not key:
            return OperationResult.failure("validation", "Unable to delete match: missing match id.", field="match")

        try:
            await asyncio.to_thread(self.store.delete_match, key)
            report = await self.reconciler.rollback(match)
        except (StoreError, ReconciliationError) as exc:
            LOGGER.warning("Deleting match %s failed: %s", key, exc)
            return OperationResult.failure(
                "reconciliation" if isinstance(exc, ReconciliationError) else "store",
                "Failed to delete match or roll back stats.",
                record=match,
                report=getattr(exc, "report", None),
            )
        return OperationResult.success("Match deleted and stats rolled back.", record=match, report=report)

    async def delete_match_by_key(self, key: Key) -> OperationResult:
        try:
            matches = await asyncio.to_thread(self.store.list_matches)
        except StoreError as exc:
            LOGGER.warning("Loading matches failed: %s", exc)
            return OperationResult.failure("store", "Failed to load match history. Check the API.")
        wanted = str(key).strip()
        match = next((m for m in matches if match_key(m) == wanted), None)
        if match is None:
            return OperationResult.failure("not_found", f"Match {wanted} not found.", field="match")
        return await self.delete_match(match)

    async def match_history(self) -> OperationResult:
        try:
            matches = await asyncio.to_thread(self.store.list_matches)
        except StoreError as exc:
            LOGGER.warning("Loading matches failed: %s", exc)
            return OperationResult.failure("store", "Failed to load match history. Check the API.")

        rows = []
        for record in matches:
            normalized = normalize_match(record)
            rows.append({
                "key": normalized.key,
                "played_at": normalized.played_at.isoformat() if normalized.played_at else None,
                "format": normalized.format or EMPTY_CELL,
                "winner": normalized.winner_name or EMPTY_CELL,
                "seats": [
                    {
                        "player": seat.player_name or (str(seat.player_id) if seat.player_id is not None else EMPTY_CELL),
                        "deck": seat.deck_name or EMPTY_CELL,
                        "result": resolve_seat_result(seat, normalized),
                    }
                    for seat in normalized.seats
                ],
                "_sort": normalized.played_at.timestamp() if normalized.played_at else 0.0,
            })
        rows.sort(key=lambda r: r["_sort"], reverse=True)
        for row in rows:
            del row["_sort"]
        return OperationResult.success(data=rows)

    # --- Players ---

    async def create_player(self, name: str) -> OperationResult:
        clean = (name or "").strip()
        if not clean:
            return OperationResult.failure("validation", "Player name is required.", field="name")

        payload = {"playerName": clean, **_zero_counters()}
        try:
            created = await asyncio.to_thread(self.store.create_player, payload)
        except StoreError as exc:
            LOGGER.warning("Creating player %r failed: %s", clean, exc)
            return OperationResult.failure("store", "Failed to create player. Check the API.")
        return OperationResult.success("Player created.", record=created if isinstance(created, dict) else payload)

    async def delete_player(self, key: Optional[Key]) -> OperationResult:
        if key is None or not str(key).strip():
            return OperationResult.failure("validation", "Unable to delete player: missing player id or name.")
        try:
            await asyncio.to_thread(self.store.delete_player, key)
        except StoreError as exc:
            LOGGER.warning("Deleting player %s failed: %s", key, exc)
            return OperationResult.failure("store", "Failed to delete player. Check the API.")
        return OperationResult.success("Player deleted.")

    async def player_standings(self) -> OperationResult:
        players, matches = await asyncio.gather(
            asyncio.to_thread(self.store.list_players),
            asyncio.to_thread(self.store.list_matches),
            return_exceptions=True,
        )
        if isinstance(players, BaseException):
            LOGGER.warning("Loading players failed: %s", players)
            return OperationResult.failure("store", "Failed to load players. Check the API.")
        if isinstance(matches, BaseException):
            # Favorites are advisory; the table still renders without them.
            LOGGER.warning("Loading matches for favorites failed: %s", matches)
            matches = []
        favorites = build_favorites(matches)
        return OperationResult.success(data=self.calculator.standings(players, kind="player", favorites=favorites))

    # --- Decks ---

    async def create_deck(self, name: str, owner_id: Optional[int] = None) -> OperationResult:
        clean = (name or "").strip()
        if not clean:
            return OperationResult.failure("validation", "Deck name is required.", field="name")

        payload: Dict[str, Any] = {"deckName": clean}
        if owner_id is not None:
            payload["playerID"] = owner_id
        payload.update(_zero_counters())
        try:
            created = await asyncio.to_thread(self.store.create_deck, payload)
        except StoreError as exc:
            LOGGER.warning("Creating deck %r failed: %s", clean, exc)
            return OperationResult.failure("store", "Failed to create deck. Check the API.")
        return OperationResult.success("Deck created.", record=created if isinstance(created, dict) else payload)

    async def delete_deck(self, key: Optional[Key]) -> OperationResult:
        if key is None or not str(key).strip():
            return OperationResult.failure("validation", "Unable to delete deck: missing deck id or name.")
        try:
            await asyncio.to_thread(self.store.delete_deck, key)
        except StoreError as exc:
            LOGGER.warning("Deleting deck %s failed: %s", key, exc)
            return OperationResult.failure("store", "Failed to delete deck. Check the API.")
        return OperationResult.success("Deck deleted.")

    async def deck_standings(self) -> OperationResult:
        try:
            decks = await asyncio.to_thread(self.store.list_decks)
        except StoreError as exc:
            LOGGER.warning("Loading decks failed: %s", exc)
            return OperationResult.failure("store", "Failed to load decks. Check the API.")
        return OperationResult.success(data=self.calculator.standings(decks, kind="deck"))

    # --- Favorites ---

    async def favorites(self) -> OperationResult:
        try:
            matches = await asyncio.to_thread(self.store.list_matches)
        except StoreError as exc:
            LOGGER.warning("Loading matches failed: %s", exc)
            return OperationResult.failure("store", "Failed to load match history. Check the API.")
        return OperationResult.success(data=build_favorites(matches))

    async def suggest_deck(self, player: Dict[str, Any]) -> OperationResult:
        try:
            matches, decks = await asyncio.gather(
                asyncio.to_thread(self.store.list_matches),
                asyncio.to_thread(self.store.list_decks),
            )
        except StoreError as exc:
            LOGGER.warning("Loading data for deck suggestion failed: %s", exc)
            return OperationResult.failure("store", "Failed to load decks. Check the API.")
        favorites: FavoriteDecks = build_favorites(matches)
        return OperationResult.success(record=suggest_deck(player, favorites, decks))
