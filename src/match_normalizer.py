# src/match_normalizer.py
"""
Turns any stored match record into one canonical shape.

Matches arrive either with an explicit ``seats`` list or in the legacy flat
shape (primary ``playerID`` / ``deckName`` / ``winnerName`` plus
``opponentOne..Three`` with their decks). ``normalize_match`` runs once at
ingestion; result resolution and delta building only see ``Seat`` objects.

The legacy primary seat is stricter than the old readers on purpose: with
neither ``result`` nor ``playerWin`` set its outcome stays unresolved (the
seat is skipped rather than counted as a loss), and ``winnerName`` only
names the primary player when that seat won, so a losing name-only primary
seat adds nothing to favorite-deck counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.records import (
    FORMAT_KEYS,
    PLAYER_ID_KEYS,
    SEAT_DECK_NAME_KEYS,
    SEAT_PLAYER_NAME_KEYS,
    SEAT_RESULT_KEYS,
    SEAT_TIE_KEYS,
    SEAT_WIN_KEYS,
    coerce_bool,
    coerce_int,
    coerce_text,
    deck_name,
    match_key,
    pick_field,
    player_id,
    player_name,
)
from src.result_resolver import LOSS, TIE, WIN, normalize_result, resolve_opponent_result

LEGACY_OPPONENT_FIELDS = (
    ("opponentOne", "opponentOneDeck"),
    ("opponentTwo", "opponentTwoDeck"),
    ("opponentThree", "opponentThreeDeck"),
)


@dataclass
class Seat:
    position: int
    player_id: Optional[int] = None
    player_name: Optional[str] = None
    deck_name: Optional[str] = None
    result_text: Optional[str] = None
    tie_flag: Optional[bool] = None
    win_flag: Optional[bool] = None
    format: Optional[str] = None


@dataclass
class NormalizedMatch:
    key: str
    seats: List[Seat] = field(default_factory=list)
    format: Optional[str] = None
    played_at: Optional[datetime] = None
    result: Optional[str] = None
    winner_name: Optional[str] = None
    primary_player_id: Optional[int] = None
    player_win: Optional[bool] = None
    raw: Dict[str, Any] = field(default_factory=dict)


def _clean(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    stripped = text.strip()
    return stripped or None


def parse_played_at(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed


def _name_text(value: Any) -> Optional[str]:
    # Numbers under a name key are ids, not names.
    if isinstance(value, str) and value.strip():
        return value
    return None


def _seat_from_record(raw: Dict[str, Any], position: int) -> Seat:
    player = raw.get("player")
    deck = raw.get("deck")

    if isinstance(player, dict):
        seat_player_id = player_id(player)
        seat_player_name = player_name(player)
    else:
        seat_player_id = pick_field(raw, PLAYER_ID_KEYS, coerce_int)
        name_keys = SEAT_PLAYER_NAME_KEYS
        if seat_player_id is None and coerce_int(player) is not None:
            # A bare "player" holding a number (or numeric string) is an id.
            seat_player_id = coerce_int(player)
            name_keys = tuple(key for key in SEAT_PLAYER_NAME_KEYS if key != "player")
        seat_player_name = _clean(pick_field(raw, name_keys, _name_text))

    if isinstance(deck, dict):
        seat_deck_name = deck_name(deck)
    else:
        seat_deck_name = _clean(pick_field(raw, SEAT_DECK_NAME_KEYS, _name_text))

    return Seat(
        position=position,
        player_id=seat_player_id,
        player_name=seat_player_name,
        deck_name=seat_deck_name,
        result_text=pick_field(raw, SEAT_RESULT_KEYS, _name_text),
        tie_flag=pick_field(raw, SEAT_TIE_KEYS, coerce_bool),
        win_flag=pick_field(raw, SEAT_WIN_KEYS, coerce_bool),
        format=pick_field(raw, FORMAT_KEYS, _name_text),
    )


def _legacy_seats(record: Dict[str, Any], match: NormalizedMatch) -> List[Seat]:
    seats: List[Seat] = []
    primary_deck = pick_field(record, ("deckName",), _name_text)

    if match.primary_player_id is not None or primary_deck or match.winner_name:
        primary_result = normalize_result(match.result)
        if primary_result != TIE and match.player_win is not None:
            primary_result = WIN if match.player_win else LOSS
        seats.append(
            Seat(
                position=1,
                player_id=match.primary_player_id,
                # The winner column only names the primary player when they won.
                player_name=_clean(match.winner_name) if primary_result == WIN else None,
                deck_name=_clean(primary_deck),
                result_text=primary_result,
                format=match.format,
            )
        )

    for name_field, deck_field in LEGACY_OPPONENT_FIELDS:
        opponent = _clean(pick_field(record, (name_field,), coerce_text))
        if not opponent:
            continue
        seats.append(
            Seat(
                position=len(seats) + 1,
                player_name=opponent,
                deck_name=_clean(pick_field(record, (deck_field,), _name_text)),
                result_text=resolve_opponent_result(opponent, match.result, match.winner_name),
                format=match.format,
            )
        )
    return seats


def normalize_match(record: Dict[str, Any]) -> NormalizedMatch:
    """Build the canonical match, synthesizing seats from legacy fields when needed."""
    record = record if isinstance(record, dict) else {}
    match = NormalizedMatch(
        key=match_key(record),
        format=pick_field(record, FORMAT_KEYS, _name_text),
        played_at=parse_played_at(record.get("playedAt")),
        result=pick_field(record, ("result", "Result"), _name_text),
        winner_name=pick_field(record, ("winnerName", "WinnerName"), _name_text),
        primary_player_id=pick_field(record, ("playerID", "playerId"), coerce_int),
        player_win=pick_field(record, ("playerWin",), lambda v: v if isinstance(v, bool) else None),
        raw=record,
    )

    explicit = record.get("seats")
    if isinstance(explicit, list):
        match.seats = [
            _seat_from_record(raw, index)
            for index, raw in enumerate(explicit, 1)
            if isinstance(raw, dict)
        ]
    else:
        match.seats = _legacy_seats(record, match)
    return match


def normalize_matches(records: Optional[List[Dict[str, Any]]]) -> List[NormalizedMatch]:
    return [normalize_match(record) for record in (records or []) if isinstance(record, dict)]
