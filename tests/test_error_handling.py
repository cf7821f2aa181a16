import pytest

from schwimmen.cards import Card, create_deck, deal, parse_id
from schwimmen.errors import GameError, IllegalAction, RoomError
from schwimmen.models import GameConfig, Phase

from .helpers import create_table, start_rigged_round


def test_illegal_action_is_a_value_error_with_reason():
    table = create_table()
    start_rigged_round(table)

    with pytest.raises(ValueError, match="Not your turn") as excinfo:
        table.process_player_action("player-3", "skip")
    assert isinstance(excinfo.value, GameError)
    assert excinfo.value.reason == "Not your turn"


def test_room_error_carries_client_message():
    error = RoomError("Room is full")
    assert error.message == "Room is full"
    assert isinstance(error, GameError)
    assert not isinstance(error, IllegalAction)


def test_eliminated_player_cannot_act():
    table = create_table()
    start_rigged_round(table)
    table.state.players[1].is_eliminated = True

    with pytest.raises(IllegalAction, match="eliminated"):
        table.process_player_action("player-1", "skip")
    assert table.state.phase == Phase.PLAYING


def test_decide_for_ai_without_pending_ai_raises():
    table = create_table(humans=1, ai=1)
    with pytest.raises(IllegalAction, match="not due"):
        table.decide_for_ai("ai-0")


def test_start_round_refuses_eliminated_dealer():
    table = create_table()
    table.state.players[0].is_eliminated = True
    with pytest.raises(RuntimeError, match="Dealer seat is eliminated"):
        table.start_round()


def test_game_config_validation():
    with pytest.raises(ValueError, match="human"):
        GameConfig(human_players=0, ai_players=2)
    with pytest.raises(ValueError, match="negative"):
        GameConfig(human_players=2, ai_players=-1)
    with pytest.raises(ValueError, match="lives"):
        GameConfig(human_players=2, ai_players=0, starting_lives=0)
    with pytest.raises(ValueError, match="between"):
        GameConfig(human_players=1, ai_players=0)
    with pytest.raises(ValueError, match="config required"):
        GameConfig.from_payload(None)
    with pytest.raises(ValueError, match="integer"):
        GameConfig.from_payload({"humanPlayers": True, "aiPlayers": 1})


def test_game_config_from_payload_defaults():
    config = GameConfig.from_payload({"humanPlayers": 2})
    assert (config.human_players, config.ai_players, config.starting_lives) == (2, 0, 3)


def test_deal_raises_when_deck_exhausted():
    deck = [Card("hearts", "A"), Card("clubs", "K")]
    deal(deck, 2)
    with pytest.raises(ValueError, match="Not enough cards"):
        deal(deck, 1)


def test_parse_id_rejects_unknown_cards():
    for bad in ("", "hearts-", "hearts-6", "moons-A", "hearts-A-extra"):
        with pytest.raises(ValueError):
            parse_id(bad)
    assert parse_id("diamonds-10") in create_deck()
