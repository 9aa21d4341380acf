from src.favorites import FavoriteDecks, build_favorites, suggest_deck
from src.match_normalizer import normalize_match


def _seat_match(player, deck, **extra):
    seat = {"deckName": deck, "result": "win"}
    seat.update(player)
    seat.update(extra)
    return {"seats": [seat]}


def test_most_played_deck_by_name():
    matches = [
        _seat_match({"playerName": "A"}, "Mono Red"),
        _seat_match({"playerName": "A"}, "Mono Red"),
        _seat_match({"playerName": "A"}, "Izzet"),
    ]
    favorites = build_favorites(matches)
    assert favorites.by_name.get("a") == "Mono Red"


def test_first_deck_to_reach_max_keeps_it():
    matches = [
        _seat_match({"playerID": 1}, "Izzet"),
        _seat_match({"playerID": 1}, "Mono Red"),
        _seat_match({"playerID": 1}, "mono red"),
        _seat_match({"playerID": 1}, "Izzet"),
    ]
    assert build_favorites(matches).by_id[1] == "Izzet"


def test_seats_with_ids_are_not_counted_by_name():
    matches = [_seat_match({"playerID": 2, "playerName": "Bob"}, "Kess")]
    favorites = build_favorites(matches)
    assert favorites.by_id == {2: "Kess"}
    assert favorites.by_name == {}


def test_blank_decks_ignored_and_normalized_matches_accepted():
    matches = [
        normalize_match(_seat_match({"playerName": "Cara"}, "   ")),
        normalize_match(_seat_match({"playerName": "Cara"}, "Atraxa")),
    ]
    assert build_favorites(matches).by_name == {"cara": "Atraxa"}


def test_legacy_matches_count_every_seat():
    legacy = {
        "playerID": 1,
        "deckName": "Rona",
        "winnerName": "Alice",
        "result": "WIN",
        "opponentOne": "Bob",
        "opponentOneDeck": "Kess",
    }
    favorites = build_favorites([legacy])
    assert favorites.for_player({"playerID": 1}) == "Rona"
    assert favorites.for_player({"playerName": "BOB"}) == "Kess"
    assert favorites.for_player({"playerName": "Nobody"}) is None


def test_suggest_deck_matches_loosely():
    favorites = FavoriteDecks(by_id={1: "Tymna / Thrasios"})
    decks = [{"deckName": "Rona"}, {"deckName": "tymna thrasios", "deckID": 4}]
    assert suggest_deck({"playerID": 1}, favorites, decks) == {"deckName": "tymna thrasios", "deckID": 4}


def test_suggest_deck_none_without_favorite_or_match():
    favorites = FavoriteDecks(by_id={1: "Rona"}, by_name={"x": "!!!"})
    assert suggest_deck({"playerID": 2}, favorites, [{"deckName": "Rona"}]) is None
    assert suggest_deck({"playerID": 1}, favorites, [{"deckName": "Kess"}]) is None
    assert suggest_deck({"playerName": "x"}, favorites, [{"deckName": "!!"}]) is None
