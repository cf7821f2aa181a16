"""Schwimmen/31 rules, scoring and AI shared by the lobby server and tools."""

from .ai import AIDecision, DealerDecision, get_ai_action, get_ai_dealer_decision, get_player_hint
from .cards import CARD_VALUES, RANKS, SUITS, Card, create_deck, shuffle
from .errors import GameError, IllegalAction, RoomError
from .models import ActionType, GameConfig, GameState, LastAction, Phase, Player, RoundResult, ScoreResult
from .rules import (
    deal_cards,
    determine_round_results,
    get_next_dealer_index,
    get_next_player_index,
    should_game_end,
    update_player_lives,
)
from .scoring import calculate_score, has_three_aces
from .table import GameTable

__all__ = [
    "AIDecision",
    "DealerDecision",
    "get_ai_action",
    "get_ai_dealer_decision",
    "get_player_hint",
    "CARD_VALUES",
    "RANKS",
    "SUITS",
    "Card",
    "create_deck",
    "shuffle",
    "GameError",
    "IllegalAction",
    "RoomError",
    "ActionType",
    "GameConfig",
    "GameState",
    "LastAction",
    "Phase",
    "Player",
    "RoundResult",
    "ScoreResult",
    "deal_cards",
    "determine_round_results",
    "get_next_dealer_index",
    "get_next_player_index",
    "should_game_end",
    "update_player_lives",
    "calculate_score",
    "has_three_aces",
    "GameTable",
]
