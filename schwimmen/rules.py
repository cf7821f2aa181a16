from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from .cards import Card, deal, shuffle
from .models import ActionType, Player, RoundResult
from .scoring import calculate_score, has_three_aces

# Round and lifecycle rules. Every function here is pure: it reads player
# snapshots and returns derived values, never mutating what it was given.


@dataclass
class DealResult:
    deck: List[Card]
    player_hands: Dict[str, List[Card]]
    dealer_sets: Optional[Tuple[List[Card], List[Card]]]


def deal_cards(
    players: Sequence[Player],
    deck: Sequence[Card],
    rng: Optional[random.Random] = None,
) -> DealResult:
    remaining = shuffle(deck, rng)
    player_hands: Dict[str, List[Card]] = {}
    for player in players:
        if player.is_dealer or player.is_eliminated:
            continue
        player_hands[player.id] = deal(remaining, 3)

    dealer_sets = None
    dealer = next((player for player in players if player.is_dealer), None)
    if dealer is not None and not dealer.is_eliminated:
        dealer_sets = (deal(remaining, 3), deal(remaining, 3))

    return DealResult(deck=remaining, player_hands=player_hands, dealer_sets=dealer_sets)


def determine_round_results(players: Sequence[Player]) -> RoundResult:
    scored = [player for player in players if len(player.hand) == 3]
    scores = [calculate_score(player.hand, player.id) for player in scored]
    active_ids = [player.id for player in players if not player.is_eliminated]

    three_aces = next(
        (player for player in scored if not player.is_eliminated and has_three_aces(player.hand)),
        None,
    )
    if three_aces is not None:
        losers = [player_id for player_id in active_ids if player_id != three_aces.id]
        return RoundResult(scores=scores, loser_ids=losers, three_aces_player_id=three_aces.id)

    active_scores = [score for score in scores if score.player_id in active_ids]
    if not active_scores:
        return RoundResult(scores=scores, loser_ids=[])
    lowest = min(score.score for score in active_scores)
    losers = [score.player_id for score in active_scores if score.score == lowest]
    return RoundResult(scores=scores, loser_ids=losers)


def update_player_lives(players: Sequence[Player], loser_ids: Sequence[str]) -> List[Player]:
    losers = set(loser_ids)
    updated: List[Player] = []
    for player in players:
        if player.id not in losers or player.is_eliminated:
            updated.append(player)
            continue
        lives = player.lives - 1
        if lives < 0:
            # Already swimming: the second loss at zero lives is final.
            updated.append(replace(player, lives=0, is_swimming=False, is_eliminated=True))
        else:
            updated.append(replace(player, lives=lives, is_swimming=lives == 0))
    return updated


def get_next_dealer_index(players: Sequence[Player], loser_ids: Sequence[str]) -> int:
    losers = set(loser_ids)
    for idx, player in enumerate(players):
        if player.id in losers and not player.is_eliminated:
            return idx
    for idx, player in enumerate(players):
        if not player.is_eliminated:
            return idx
    return -1


def should_game_end(players: Sequence[Player]) -> bool:
    return len([player for player in players if not player.is_eliminated]) <= 1


def get_winner(players: Sequence[Player]) -> Optional[Player]:
    active = [player for player in players if not player.is_eliminated]
    return active[0] if len(active) == 1 else None


def get_next_player_index(current_index: int, total_players: int) -> int:
    return (current_index + 1) % total_players


def players_after_closer(players: Sequence[Player], closer_id: Optional[str]) -> List[Player]:
    """Seats that still owe a turn once ``closer_id`` closed, in turn order."""
    closer_index = next((idx for idx, player in enumerate(players) if player.id == closer_id), -1)
    if closer_index < 0:
        return []
    result: List[Player] = []
    idx = get_next_player_index(closer_index, len(players))
    while idx != closer_index:
        player = players[idx]
        if not player.is_eliminated:
            result.append(player)
        idx = get_next_player_index(idx, len(players))
    return result


def is_valid_action(action: ActionType, has_first_round_completed: bool) -> bool:
    if action in (ActionType.SKIP, ActionType.EXCHANGE_ONE, ActionType.EXCHANGE_ALL):
        return True
    if action == ActionType.CLOSE_ROUND:
        return has_first_round_completed
    return False
