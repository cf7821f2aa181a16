import random

from schwimmen.cards import create_deck
from schwimmen.models import ActionType
from schwimmen.rules import (
    deal_cards,
    determine_round_results,
    get_next_dealer_index,
    get_next_player_index,
    get_winner,
    is_valid_action,
    players_after_closer,
    should_game_end,
    update_player_lives,
)

from .helpers import make_player


def test_deal_cards_gives_disjoint_hands_and_two_dealer_sets():
    players = [make_player("p0", is_dealer=True), make_player("p1"), make_player("p2"), make_player("p3")]
    dealt = deal_cards(players, create_deck(), random.Random(3))

    assert set(dealt.player_hands) == {"p1", "p2", "p3"}
    assert dealt.dealer_sets is not None
    groups = list(dealt.player_hands.values()) + list(dealt.dealer_sets)
    assert all(len(group) == 3 for group in groups)

    ids = [card.id for group in groups for card in group] + [card.id for card in dealt.deck]
    assert len(ids) == 32
    assert len(set(ids)) == 32
    assert len(dealt.deck) == 32 - 15


def test_deal_cards_skips_eliminated_seats():
    players = [
        make_player("p0", is_dealer=True),
        make_player("p1", is_eliminated=True, lives=0),
        make_player("p2"),
    ]
    dealt = deal_cards(players, create_deck(), random.Random(1))
    assert set(dealt.player_hands) == {"p2"}
    assert len(dealt.deck) == 32 - 9


def test_deal_cards_without_live_dealer_has_no_sets():
    players = [make_player("p0", is_dealer=True, is_eliminated=True, lives=0), make_player("p1")]
    assert deal_cards(players, create_deck(), random.Random(1)).dealer_sets is None


def test_single_lowest_score_loses():
    players = [
        make_player("a", ["hearts-A", "clubs-7", "spades-7"]),  # 11
        make_player("b", ["hearts-A", "hearts-K", "hearts-9"]),  # 30
        make_player("c", ["clubs-A", "clubs-K", "clubs-9"]),  # 30
        make_player("d", ["diamonds-A", "diamonds-K", "diamonds-J"]),  # 31
    ]
    result = determine_round_results(players)
    assert result.loser_ids == ["a"]
    assert result.three_aces_player_id is None
    assert [score.score for score in result.scores] == [11, 30, 30, 31]


def test_tied_minimum_scores_all_lose():
    players = [
        make_player("a", ["hearts-A", "hearts-7", "clubs-8"]),  # 18
        make_player("b", ["spades-A", "spades-7", "diamonds-9"]),  # 18
        make_player("c", ["clubs-A", "clubs-K", "diamonds-7"]),  # 21
    ]
    assert determine_round_results(players).loser_ids == ["a", "b"]


def test_three_aces_makes_everyone_else_lose():
    players = [
        make_player("a", ["hearts-A", "hearts-K", "hearts-Q"]),
        make_player("b", ["clubs-A", "diamonds-A", "spades-A"]),
        make_player("c", ["clubs-7", "clubs-8", "diamonds-9"]),
        make_player("d", [], is_eliminated=True, lives=0),
    ]
    result = determine_round_results(players)
    assert result.three_aces_player_id == "b"
    assert result.loser_ids == ["a", "c"]


def test_eliminated_players_are_not_losers():
    players = [
        make_player("a", ["hearts-7", "clubs-8", "spades-9"], is_eliminated=True, lives=0),
        make_player("b", ["hearts-A", "hearts-K", "hearts-9"]),
        make_player("c", ["clubs-A", "clubs-K", "clubs-7"]),
    ]
    assert determine_round_results(players).loser_ids == ["c"]


def test_update_player_lives_walks_through_swimming_to_elimination():
    players = [
        make_player("a", lives=1),
        make_player("b", lives=0, is_swimming=True),
        make_player("c", lives=2),
    ]
    updated = update_player_lives(players, ["a", "b"])

    assert updated[0].lives == 0
    assert updated[0].is_swimming and not updated[0].is_eliminated
    assert updated[1].lives == 0
    assert updated[1].is_eliminated and not updated[1].is_swimming
    assert updated[2] is players[2]
    # Inputs are left alone.
    assert players[0].lives == 1
    assert not players[1].is_eliminated


def test_update_player_lives_ignores_eliminated_losers():
    gone = make_player("a", lives=0, is_eliminated=True)
    assert update_player_lives([gone], ["a"])[0] is gone


def test_next_dealer_is_first_live_loser_or_first_live_seat():
    players = [
        make_player("a", is_eliminated=True, lives=0),
        make_player("b"),
        make_player("c"),
    ]
    assert get_next_dealer_index(players, ["c"]) == 2
    assert get_next_dealer_index(players, ["a"]) == 1
    assert get_next_dealer_index(players, []) == 1
    everyone_out = [make_player("a", is_eliminated=True, lives=0)]
    assert get_next_dealer_index(everyone_out, ["a"]) == -1


def test_game_end_and_winner():
    players = [make_player("a"), make_player("b", is_eliminated=True, lives=0)]
    assert should_game_end(players)
    assert get_winner(players).id == "a"

    players.append(make_player("c"))
    assert not should_game_end(players)
    assert get_winner(players) is None

    nobody = [make_player("a", is_eliminated=True, lives=0)]
    assert should_game_end(nobody)
    assert get_winner(nobody) is None


def test_next_player_index_wraps():
    assert get_next_player_index(0, 4) == 1
    assert get_next_player_index(3, 4) == 0


def test_players_after_closer_wraps_and_skips_eliminated():
    players = [make_player("p0"), make_player("p1"), make_player("p2"), make_player("p3")]
    assert [player.id for player in players_after_closer(players, "p2")] == ["p3", "p0", "p1"]

    players[0].is_eliminated = True
    assert [player.id for player in players_after_closer(players, "p2")] == ["p3", "p1"]
    assert players_after_closer(players, "missing") == []
    assert players_after_closer(players, None) == []


def test_close_round_only_valid_after_first_lap():
    assert is_valid_action(ActionType.SKIP, False)
    assert is_valid_action(ActionType.EXCHANGE_ONE, False)
    assert is_valid_action(ActionType.EXCHANGE_ALL, False)
    assert not is_valid_action(ActionType.CLOSE_ROUND, False)
    assert is_valid_action(ActionType.CLOSE_ROUND, True)
