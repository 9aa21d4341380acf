# src/records.py
"""
Field access for loosely-typed player, deck and match records.

The store enforces no schema, so the same fact shows up under several
spellings (``playerID`` / ``playerId`` / ``id``, ``wins`` / ``Wins`` /
``winCount`` ...). Every read goes through ``pick_field`` with an ordered
key list; the lists below are the only place those spellings live.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Dict, Optional, Sequence, Union

Identity = Union[int, str]

PLAYER_ID_KEYS = ("playerID", "playerId", "player_id", "id")
PLAYER_NAME_KEYS = ("playerName", "PlayerName", "name", "username", "displayName")

DECK_ID_KEYS = ("deckID", "deckId", "deck_id", "id")
DECK_NAME_KEYS = ("DeckName", "deckName", "name", "title", "displayName")
DECK_OWNER_KEYS = ("playerID", "PlayerID", "playerId", "ownerId")

MATCH_ID_KEYS = ("matchID", "matchId", "id")

# Seats carry both a player and a deck, so bare "name" is ambiguous there.
SEAT_PLAYER_NAME_KEYS = ("playerName", "PlayerName", "username", "player")
SEAT_DECK_NAME_KEYS = ("deckName", "DeckName", "deck", "deck_name")
SEAT_RESULT_KEYS = ("result", "Result", "outcome", "outcomeType", "resultType", "status")
SEAT_TIE_KEYS = ("tie", "isTie")
SEAT_WIN_KEYS = ("playerWin", "isWinner", "winner", "won", "win")
FORMAT_KEYS = ("format", "Format")

COUNTER_KEYS: Dict[str, Sequence[str]] = {
    "wins": ("wins", "Wins", "winCount", "totalWins", "win_total"),
    "losses": ("losses", "Losses", "lossCount", "totalLosses", "loss_total"),
    "ties": ("ties", "Ties", "tieCount", "totalTies"),
    "casualWins": ("casualWins", "CasualWins"),
    "casualLosses": ("casualLosses", "CasualLosses"),
}
COUNTER_FIELDS = tuple(COUNTER_KEYS)

WIN_PERCENTAGE_KEYS = ("winPercentage", "winPct", "win_percent")

_IDENTITY_KEYS = {
    "player": (PLAYER_ID_KEYS, PLAYER_NAME_KEYS),
    "deck": (DECK_ID_KEYS, DECK_NAME_KEYS),
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


def coerce_int(value: Any) -> Optional[int]:
    """Numbers pass through; numeric-looking strings are parsed after trimming."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            parsed = float(text)
        except ValueError:
            return None
        return int(parsed) if math.isfinite(parsed) else None
    return None


def coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    return None


def coerce_text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value
    return None


def coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        if value == 1:
            return True
        if value == 0:
            return False
    return None


def pick_field(
    record: Optional[Dict[str, Any]],
    keys: Sequence[str],
    coerce: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """
    Return the first usable value found under ``keys``, in order.

    With ``coerce`` set, a key only counts when the coercion yields a
    non-None value; otherwise the first non-None value wins.
    """
    if not isinstance(record, dict):
        return None
    for key in keys:
        if key not in record:
            continue
        value = record[key]
        if coerce is not None:
            value = coerce(value)
        if value is not None:
            return value
    return None


def name_key(name: Optional[str]) -> str:
    """Trimmed, whitespace-collapsed, case-folded form used for comparisons."""
    if not name:
        return ""
    return _WHITESPACE.sub(" ", str(name).strip()).casefold()


def deck_key(name: Optional[str]) -> str:
    return name_key(name)


def loose_deck_key(name: Optional[str]) -> str:
    return _NON_ALNUM.sub("", str(name or "").strip().lower())


def player_id(record: Optional[Dict[str, Any]]) -> Optional[int]:
    return pick_field(record, PLAYER_ID_KEYS, coerce_int)


def player_name(record: Optional[Dict[str, Any]]) -> Optional[str]:
    name = pick_field(record, PLAYER_NAME_KEYS, coerce_text)
    return name.strip() if name else None


def deck_id(record: Optional[Dict[str, Any]]) -> Optional[int]:
    return pick_field(record, DECK_ID_KEYS, coerce_int)


def deck_name(record: Optional[Dict[str, Any]]) -> Optional[str]:
    name = pick_field(record, DECK_NAME_KEYS, coerce_text)
    return name.strip() if name else None


def deck_owner_id(record: Optional[Dict[str, Any]]) -> int:
    return pick_field(record, DECK_OWNER_KEYS, coerce_int) or 0


def match_key(record: Optional[Dict[str, Any]]) -> str:
    value = pick_field(record, MATCH_ID_KEYS)
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (int, float)):
        return str(value) if math.isfinite(value) else ""
    if isinstance(value, str):
        return value.strip()
    return ""


def resolve_identity(record: Optional[Dict[str, Any]], kind: str = "player") -> Optional[Identity]:
    """
    Canonical identity of a player or deck record.

    A numeric id (or numeric string) is preferred; the trimmed display name
    is the fallback. ``None`` means the record cannot be associated with a
    stored entity.
    """
    if kind not in _IDENTITY_KEYS:
        raise ValueError(f"Unknown record kind '{kind}'")
    id_keys, name_keys = _IDENTITY_KEYS[kind]
    numeric = pick_field(record, id_keys, coerce_int)
    if numeric is not None:
        return numeric
    name = pick_field(record, name_keys, coerce_text)
    if name and name.strip():
        return name.strip()
    return None


def make_identity_key(identity: Optional[Identity]) -> Optional[str]:
    if identity is None:
        return None
    if isinstance(identity, int):
        return f"id:{identity}"
    normalized = name_key(identity)
    return f"name:{normalized}" if normalized else None


def identity_key(record: Optional[Dict[str, Any]], kind: str = "player") -> Optional[str]:
    return make_identity_key(resolve_identity(record, kind))


def delete_key(record: Optional[Dict[str, Any]], kind: str = "player") -> Optional[Identity]:
    return resolve_identity(record, kind)


def read_counters(record: Optional[Dict[str, Any]]) -> Dict[str, int]:
    return {
        field: pick_field(record, keys, coerce_int) or 0
        for field, keys in COUNTER_KEYS.items()
    }


def display_player_name(record: Optional[Dict[str, Any]], fallback: str = "Unknown Player") -> str:
    name = player_name(record)
    if name:
        return name
    ident = player_id(record)
    return str(ident) if ident is not None else fallback


def display_deck_name(record: Optional[Dict[str, Any]], fallback: str = "Unknown Deck") -> str:
    name = deck_name(record)
    if name:
        return name
    ident = deck_id(record)
    return str(ident) if ident is not None else fallback
