# src/result_resolver.py

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from src.config import CASUAL_MARKER
from src.records import name_key

if TYPE_CHECKING:
    from src.match_normalizer import NormalizedMatch, Seat

WIN = "win"
LOSS = "loss"
TIE = "tie"
RESULTS = (WIN, LOSS, TIE)


def normalize_result(value: Optional[str]) -> Optional[str]:
    """Map free text to win/loss/tie by substring; tie is checked first, then win, then loss."""
    if not value or not isinstance(value, str):
        return None
    lowered = value.lower()
    if TIE in lowered:
        return TIE
    if WIN in lowered:
        return WIN
    if LOSS in lowered:
        return LOSS
    return None


def is_casual_format(value: Optional[str]) -> bool:
    if not value or not isinstance(value, str):
        return False
    return CASUAL_MARKER in value.lower()


def _same_name(left: Optional[str], right: Optional[str]) -> bool:
    left_key = name_key(left)
    return bool(left_key) and left_key == name_key(right)


def resolve_opponent_result(opponent_name: str, match_result: Optional[str], winner_name: Optional[str]) -> Optional[str]:
    """Outcome of a legacy opponent column, derived from match-level fields only."""
    normalized = normalize_result(match_result)
    if normalized == TIE:
        return TIE
    if winner_name and _same_name(opponent_name, winner_name):
        return WIN
    if normalized in (WIN, LOSS):
        return LOSS
    return None


def resolve_seat_result(seat: "Seat", match: "NormalizedMatch") -> Optional[str]:
    """
    Resolve one seat's outcome. First rule that applies wins:

      1. the seat's own result text
      2. the seat's tie flag (only when true)
      3. the seat's win flag (false means loss)
      4. the match result, when it says tie
      5. the match ``playerWin`` flag, for the match's primary player
      6. the match winner name: same name wins, else a won match means loss

    Returns None when nothing applies; the caller skips the seat.
    """
    direct = normalize_result(seat.result_text)
    if direct:
        return direct

    if seat.tie_flag:
        return TIE

    if seat.win_flag is not None:
        return WIN if seat.win_flag else LOSS

    match_result = normalize_result(match.result)
    if match_result == TIE:
        return TIE

    if (
        seat.player_id is not None
        and match.primary_player_id is not None
        and seat.player_id == match.primary_player_id
        and match.player_win is not None
    ):
        return WIN if match.player_win else LOSS

    if seat.player_name and match.winner_name:
        if _same_name(seat.player_name, match.winner_name):
            return WIN
        if match_result == WIN:
            return LOSS

    return None


def seat_is_casual(seat: "Seat", match: "NormalizedMatch") -> bool:
    """A format on the seat overrides the match format."""
    return is_casual_format(seat.format or match.format)
