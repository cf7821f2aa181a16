from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from .cards import Card

MIN_PLAYERS = 2
MAX_PLAYERS = 9


class Phase(str, Enum):
    SETUP = "setup"
    DEALING = "dealing"
    DEALER_DECISION = "dealer-decision"
    PLAYING = "playing"
    LAST_ROUND = "last-round"
    SCORING = "scoring"
    ROUND_END = "round-end"
    GAME_END = "game-end"


class ActionType(str, Enum):
    SKIP = "skip"
    EXCHANGE_ONE = "exchange-one"
    EXCHANGE_ALL = "exchange-all"
    CLOSE_ROUND = "close-round"


@dataclass
class GameConfig:
    human_players: int = 1
    ai_players: int = 1
    starting_lives: int = 3

    def __post_init__(self) -> None:
        if self.human_players < 1:
            raise ValueError("At least one human player required")
        if self.ai_players < 0:
            raise ValueError("AI player count cannot be negative")
        if self.starting_lives < 1:
            raise ValueError("Starting lives must be at least 1")
        total = self.human_players + self.ai_players
        if not MIN_PLAYERS <= total <= MAX_PLAYERS:
            raise ValueError(f"Games need between {MIN_PLAYERS} and {MAX_PLAYERS} players")

    @classmethod
    def from_payload(cls, payload: object) -> "GameConfig":
        if not isinstance(payload, Mapping):
            raise ValueError("config required")
        try:
            return cls(
                human_players=_as_int(payload.get("humanPlayers", 1)),
                ai_players=_as_int(payload.get("aiPlayers", 0)),
                starting_lives=_as_int(payload.get("startingLives", 3)),
            )
        except TypeError as exc:
            raise ValueError(str(exc)) from exc


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"Expected an integer, got {value!r}")
    return value


@dataclass
class Player:
    id: str
    name: str
    is_ai: bool = False
    lives: int = 3
    hand: List[Card] = field(default_factory=list)
    is_swimming: bool = False
    is_eliminated: bool = False
    is_dealer: bool = False
    has_closed_round: bool = False

    @property
    def is_active(self) -> bool:
        return not self.is_eliminated

    def reset_for_round(self) -> None:
        self.hand = []
        self.has_closed_round = False

    def to_payload(self, hide_hand: bool = False) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "isAI": self.is_ai,
            "lives": self.lives,
            "hand": [] if hide_hand else [card.to_payload() for card in self.hand],
            "isSwimming": self.is_swimming,
            "isEliminated": self.is_eliminated,
            "isDealer": self.is_dealer,
            "hasClosedRound": self.has_closed_round,
        }


@dataclass
class LastAction:
    player_id: str
    player_name: str
    action: ActionType
    timestamp: int
    taken_card_ids: List[str] = field(default_factory=list)
    put_card_ids: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, object]:
        return {
            "playerId": self.player_id,
            "playerName": self.player_name,
            "action": self.action.value,
            "takenCardIds": list(self.taken_card_ids),
            "putCardIds": list(self.put_card_ids),
            "timestamp": self.timestamp,
        }


@dataclass
class ScoreResult:
    player_id: str
    score: float
    hand: List[Card]
    scoring_cards: List[Card]
    is_three_of_kind: bool = False

    def to_payload(self) -> Dict[str, object]:
        return {
            "playerId": self.player_id,
            "score": self.score,
            "hand": [card.to_payload() for card in self.hand],
            "scoringCards": [card.to_payload() for card in self.scoring_cards],
            "isThreeOfKind": self.is_three_of_kind,
        }


@dataclass
class RoundResult:
    scores: List[ScoreResult]
    loser_ids: List[str]
    three_aces_player_id: Optional[str] = None

    def to_payload(self) -> Dict[str, object]:
        return {
            "scores": [score.to_payload() for score in self.scores],
            "loserIds": list(self.loser_ids),
            "threeAcesPlayerId": self.three_aces_player_id,
        }


@dataclass
class GameState:
    # The only mutable aggregate of a room; GameTable is its sole writer.
    players: List[Player]
    public_cards: List[Card] = field(default_factory=list)
    deck: List[Card] = field(default_factory=list)
    current_player_index: int = 0
    dealer_index: int = 0
    phase: Phase = Phase.SETUP
    round_number: int = 0
    dealer_sets: Optional[Tuple[List[Card], List[Card]]] = None
    seen_set_index: Optional[int] = None
    players_who_acted_after_close: Set[str] = field(default_factory=set)
    round_closed_by_player_id: Optional[str] = None
    last_action: Optional[LastAction] = None
    turns_taken: int = 0
    last_result: Optional[RoundResult] = None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def dealer(self) -> Player:
        return self.players[self.dealer_index]

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def index_of(self, player_id: str) -> int:
        for idx, player in enumerate(self.players):
            if player.id == player_id:
                return idx
        return -1

    def active_players(self) -> List[Player]:
        return [player for player in self.players if player.is_active]
