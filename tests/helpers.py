# tests/helpers.py

import copy
import threading

from src.api_client import StoreError
from src.records import deck_key, deck_name, match_key, name_key, player_id, player_name


class FakeStore:
    """In-memory stand-in for the league store with the client's method surface."""

    def __init__(self, players=None, decks=None, matches=None):
        self.players = copy.deepcopy(players or [])
        self.decks = copy.deepcopy(decks or [])
        self.matches = copy.deepcopy(matches or [])
        self.calls = []
        self.fail_on = set()
        self._lock = threading.Lock()
        self._next_match_id = 100

    def _record(self, *call):
        with self._lock:
            self.calls.append(call)
        if call[:2] in self.fail_on or call[0] in self.fail_on:
            raise StoreError(call[0], 500, "injected failure")

    def updates(self, kind=None):
        return [c for c in self.calls if c[0].startswith("update") and (kind is None or c[0] == f"update_{kind}")]

    @staticmethod
    def _find_player(players, key):
        for record in players:
            if player_id(record) is not None and str(player_id(record)) == str(key):
                return record
        for record in players:
            if name_key(player_name(record)) == name_key(str(key)):
                return record
        return None

    # --- Players ---

    def list_players(self):
        self._record("list_players")
        return copy.deepcopy(self.players)

    def create_player(self, payload):
        self._record("create_player", payload.get("playerName"))
        created = dict(payload, playerID=len(self.players) + 1)
        self.players.append(created)
        return dict(created)

    def update_player(self, key, payload):
        self._record("update_player", key, payload)
        with self._lock:
            record = self._find_player(self.players, key)
            if record is not None:
                record.update(payload)
        return dict(payload)

    def delete_player(self, key):
        self._record("delete_player", key)
        self.players = [p for p in self.players if p is not self._find_player(self.players, key)]

    # --- Decks ---

    def list_decks(self):
        self._record("list_decks")
        return copy.deepcopy(self.decks)

    def create_deck(self, payload):
        self._record("create_deck", payload.get("deckName"))
        created = dict(payload, deckID=len(self.decks) + 1)
        self.decks.append(created)
        return dict(created)

    def update_deck(self, key, payload):
        self._record("update_deck", key, payload)
        with self._lock:
            for record in self.decks:
                if deck_key(deck_name(record)) == deck_key(str(key)):
                    record.update(payload)
                    break
        return dict(payload)

    def delete_deck(self, key):
        self._record("delete_deck", key)
        self.decks = [d for d in self.decks if deck_key(deck_name(d)) != deck_key(str(key))]

    # --- Matches ---

    def list_matches(self):
        self._record("list_matches")
        return copy.deepcopy(self.matches)

    def create_match(self, payload):
        self._record("create_match")
        created = dict(payload, matchID=self._next_match_id)
        self._next_match_id += 1
        self.matches.append(created)
        return dict(created)

    def delete_match(self, key):
        self._record("delete_match", key)
        self.matches = [m for m in self.matches if match_key(m) != str(key)]


def player(pid, name, **counters):
    record = {"playerID": pid, "playerName": name, "wins": 0, "losses": 0, "ties": 0, "casualWins": 0, "casualLosses": 0}
    record.update(counters)
    return record


def deck(name, owner=0, **counters):
    record = {"deckName": name, "playerID": owner, "wins": 0, "losses": 0, "ties": 0, "casualWins": 0, "casualLosses": 0}
    record.update(counters)
    return record


def sample_store():
    """Four players, four decks, no matches."""
    return FakeStore(
        players=[
            player(1, "Alice", wins=3, losses=2),
            player(2, "Bob", wins=1, losses=4),
            player(3, "Cara"),
            player(4, "Dan", ties=1),
        ],
        decks=[
            deck("Rona", owner=1, wins=2),
            deck("Kess", owner=2, losses=3),
            deck("Atraxa", owner=3),
            deck("Tymna Thrasios", owner=4),
        ],
    )
