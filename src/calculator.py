# src/calculator.py

from typing import Dict, List, Any, Optional
import logging

from src.config import EMPTY_CELL
from src.favorites import FavoriteDecks
from src.records import (
    WIN_PERCENTAGE_KEYS,
    coerce_float,
    delete_key,
    display_deck_name,
    display_player_name,
    pick_field,
    read_counters,
)

LOGGER = logging.getLogger(__name__)


class LeagueStatsCalculator:
    """Derived, read-only views over stored player and deck counters."""

    @staticmethod
    def _safe_div(numerator: float, denominator: float) -> float:
        """Safely divide and return 0.0 on zero denominator."""
        return numerator / denominator if denominator > 0 else 0.0

    def win_percentage(self, record: Dict[str, Any]) -> float:
        """
        Win percentage in the 0-100 range.

        A numeric percentage stored on the record wins; otherwise it is
        wins / (wins + losses). Ties do not count as games here.
        """
        direct = pick_field(record, WIN_PERCENTAGE_KEYS, coerce_float)
        if direct is not None:
            return direct

        counters = read_counters(record)
        games = counters['wins'] + counters['losses']
        return self._safe_div(counters['wins'], games) * 100

    @staticmethod
    def format_percentage(value: float) -> str:
        return f"{value:.1f}%"

    def standings(
        self,
        records: List[Dict[str, Any]],
        kind: str = 'player',
        favorites: Optional[FavoriteDecks] = None,
    ) -> List[Dict[str, Any]]:
        """
        Rows for a players or decks table, best win percentage first.

        Args:
            records: Raw store records
            kind: 'player' or 'deck'
            favorites: Favorite-deck lookup, only used for players

        Returns:
            List of display rows
        """
        rows = []
        for record in records or []:
            if not isinstance(record, dict):
                continue
            pct = self.win_percentage(record)
            counters = read_counters(record)
            if kind == 'deck':
                name = display_deck_name(record)
            else:
                name = display_player_name(record)
            row = {
                'key': delete_key(record, kind),
                'name': name,
                'wins': counters['wins'],
                'losses': counters['losses'],
                'ties': counters['ties'],
                'casual_wins': counters['casualWins'],
                'casual_losses': counters['casualLosses'],
                'win_percentage': pct,
                'win_percentage_label': self.format_percentage(pct),
            }
            if kind == 'player':
                favorite = favorites.for_player(record) if favorites else None
                row['favorite_deck'] = favorite or EMPTY_CELL
            rows.append(row)

        # Stable sort keeps store order among equal percentages.
        rows.sort(key=lambda r: r['win_percentage'], reverse=True)
        LOGGER.debug("Built %d %s standings rows", len(rows), kind)
        return rows
