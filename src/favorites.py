# src/favorites.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from src.match_normalizer import NormalizedMatch, normalize_match
from src.records import (
    deck_key,
    deck_name,
    loose_deck_key,
    name_key,
    player_id,
    player_name,
)

LOGGER = logging.getLogger(__name__)


@dataclass
class FavoriteDecks:
    """Most-played deck per player; advisory only."""

    by_id: Dict[int, str] = field(default_factory=dict)
    by_name: Dict[str, str] = field(default_factory=dict)

    def for_player(self, record: Optional[Dict[str, Any]]) -> Optional[str]:
        ident = player_id(record)
        if ident is not None and ident in self.by_id:
            return self.by_id[ident]
        name = player_name(record)
        if name:
            return self.by_name.get(name_key(name))
        return None


class _DeckTally:
    """Deck counts for one player, in first-seen order."""

    def __init__(self) -> None:
        self.counts: Dict[str, int] = {}
        self.labels: Dict[str, str] = {}

    def bump(self, label: str) -> None:
        key = deck_key(label)
        if key not in self.counts:
            self.counts[key] = 0
            self.labels[key] = label
        self.counts[key] += 1

    def favorite(self) -> Optional[str]:
        best_key = None
        best_count = -1
        for key, count in self.counts.items():
            # Strictly greater: the earliest deck to reach the max keeps it.
            if count > best_count:
                best_key = key
                best_count = count
        return self.labels[best_key] if best_key is not None else None


def build_favorites(matches: Iterable[Any]) -> FavoriteDecks:
    """
    Count deck usage per player across all seats of all matches.

    Accepts raw match records or already-normalized matches. Seats with a
    numeric player id are counted by id, the rest by case-folded name.
    Seats without a usable deck name are ignored.
    """
    by_id: Dict[int, _DeckTally] = {}
    by_name: Dict[str, _DeckTally] = {}

    for match in matches:
        normalized = match if isinstance(match, NormalizedMatch) else normalize_match(match)
        for seat in normalized.seats:
            label = (seat.deck_name or "").strip()
            if not label:
                continue
            if seat.player_id is not None:
                by_id.setdefault(seat.player_id, _DeckTally()).bump(label)
                continue
            key = name_key(seat.player_name)
            if key:
                by_name.setdefault(key, _DeckTally()).bump(label)

    favorites = FavoriteDecks()
    for ident, tally in by_id.items():
        best = tally.favorite()
        if best:
            favorites.by_id[ident] = best
    for key, tally in by_name.items():
        best = tally.favorite()
        if best:
            favorites.by_name[key] = best

    LOGGER.debug("Favorite decks: %d by id, %d by name", len(favorites.by_id), len(favorites.by_name))
    return favorites


def suggest_deck(
    player: Optional[Dict[str, Any]],
    favorites: FavoriteDecks,
    decks: List[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    """Deck record matching the player's favorite deck, if the deck list has it."""
    favorite = favorites.for_player(player)
    if not favorite:
        return None
    wanted = loose_deck_key(favorite)
    if not wanted:
        return None
    for deck in decks or []:
        if loose_deck_key(deck_name(deck)) == wanted:
            return deck
    return None
