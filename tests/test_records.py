import pytest

from src.records import (
    COUNTER_FIELDS,
    PLAYER_ID_KEYS,
    coerce_bool,
    coerce_int,
    deck_name,
    delete_key,
    display_player_name,
    identity_key,
    loose_deck_key,
    match_key,
    name_key,
    pick_field,
    player_id,
    read_counters,
    resolve_identity,
)


def test_string_and_numeric_ids_resolve_to_same_identity():
    assert resolve_identity({"playerID": "7"}) == 7
    assert resolve_identity({"playerId": 7}) == 7
    assert identity_key({"playerID": "7"}) == identity_key({"playerId": 7}) == "id:7"


def test_identity_falls_back_to_trimmed_name():
    assert resolve_identity({"playerName": "  Alice "}) == "Alice"
    assert identity_key({"playerName": "  ALICE  "}) == "name:alice"


def test_identity_none_when_record_has_nothing_usable():
    assert resolve_identity({"playerName": "   "}) is None
    assert resolve_identity({}) is None
    assert resolve_identity(None) is None
    assert identity_key({"unrelated": 1}) is None


def test_deck_identity_uses_deck_keys():
    assert resolve_identity({"deckID": "12", "deckName": "Rona"}, "deck") == 12
    assert resolve_identity({"DeckName": "Kess"}, "deck") == "Kess"


def test_unknown_kind_raises():
    with pytest.raises(ValueError):
        resolve_identity({"id": 1}, "match")


def test_pick_field_respects_priority_order():
    record = {"id": 99, "playerId": 5, "playerID": None}
    assert pick_field(record, PLAYER_ID_KEYS) == 5
    assert player_id(record) == 5


def test_pick_field_skips_values_coercion_rejects():
    record = {"playerID": "abc", "playerId": "12"}
    assert pick_field(record, PLAYER_ID_KEYS, coerce_int) == 12
    assert pick_field(record, PLAYER_ID_KEYS) == "abc"


def test_pick_field_non_dict_returns_none():
    assert pick_field(["playerID"], PLAYER_ID_KEYS) is None


@pytest.mark.parametrize(
    "value,expected",
    [(3, 3), ("4", 4), (" 5 ", 5), ("2.0", 2), (7.9, 7), (True, None), ("", None), ("x", None), (float("nan"), None)],
)
def test_coerce_int(value, expected):
    assert coerce_int(value) == expected


def test_coerce_bool_accepts_text_and_binary_numbers():
    assert coerce_bool("TRUE") is True
    assert coerce_bool("false") is False
    assert coerce_bool(1) is True
    assert coerce_bool(0) is False
    assert coerce_bool(2) is None
    assert coerce_bool("yes") is None


def test_read_counters_accepts_alternate_spellings_and_defaults_to_zero():
    counters = read_counters({"Wins": "3", "lossCount": 2, "CasualWins": 1})
    assert counters == {"wins": 3, "losses": 2, "ties": 0, "casualWins": 1, "casualLosses": 0}
    assert tuple(counters) == COUNTER_FIELDS


def test_name_keys():
    assert name_key("  Mono   Red ") == "mono red"
    assert name_key(None) == ""
    assert loose_deck_key("Tymna / Thrasios!") == "tymnathrasios"


def test_deck_name_prefers_capitalised_key():
    assert deck_name({"DeckName": " Rona ", "deckName": "Other"}) == "Rona"


def test_match_key_is_text():
    assert match_key({"matchID": 41}) == "41"
    assert match_key({"id": " abc "}) == "abc"
    assert match_key({}) == ""


def test_delete_key_and_display_name():
    assert delete_key({"playerID": "3", "playerName": "Cara"}) == 3
    assert delete_key({"playerName": "Cara"}) == "Cara"
    assert display_player_name({"playerID": 9}) == "9"
    assert display_player_name({}) == "Unknown Player"
