from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

from schwimmen.cards import Card, parse_id
from schwimmen.models import GameConfig, Phase, Player
from schwimmen.table import GameTable


class ScriptedRandom(random.Random):
    """Random whose ``random()`` replays fixed values (cycling) for AI choices."""

    def __init__(self, values: Sequence[float], seed: int = 0) -> None:
        super().__init__(seed)
        self.values = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


def cards(*ids: str) -> List[Card]:
    return [parse_id(card_id) for card_id in ids]


def make_player(
    player_id: str,
    hand: Iterable[str] = (),
    *,
    lives: int = 3,
    is_ai: bool = False,
    is_dealer: bool = False,
    is_swimming: bool = False,
    is_eliminated: bool = False,
) -> Player:
    return Player(
        id=player_id,
        name=player_id.upper(),
        is_ai=is_ai,
        lives=lives,
        hand=cards(*hand),
        is_swimming=is_swimming,
        is_eliminated=is_eliminated,
        is_dealer=is_dealer,
    )


def create_table(humans: int = 4, ai: int = 0, lives: int = 3, seed: int = 7) -> GameTable:
    """Instantiate a table in setup phase with a seeded RNG."""
    return GameTable(
        GameConfig(human_players=humans, ai_players=ai, starting_lives=lives),
        creator_name="Host",
        rng=random.Random(seed),
    )


def rig_round(
    table: GameTable,
    hands: Dict[str, Sequence[str]],
    dealer_sets: Optional[Sequence[Sequence[str]]] = None,
    seen: int = 0,
) -> None:
    """Replace the freshly dealt cards with known ones."""
    state = table.state
    for player_id, hand in hands.items():
        player = state.find_player(player_id)
        assert player is not None
        player.hand = cards(*hand)
    if dealer_sets is not None:
        state.dealer_sets = (cards(*dealer_sets[0]), cards(*dealer_sets[1]))
        state.seen_set_index = seen


# Four seats, player-0 deals. Everyone skips: player-1 (9) loses.
FOUR_SEAT_HANDS = {
    "player-1": ["hearts-7", "clubs-8", "spades-9"],
    "player-2": ["hearts-A", "hearts-K", "hearts-10"],
    "player-3": ["clubs-A", "clubs-K", "diamonds-7"],
}
FOUR_SEAT_DEALER_SETS = (
    ["diamonds-A", "diamonds-K", "diamonds-Q"],
    ["spades-7", "spades-8", "clubs-9"],
)


def start_rigged_round(table: GameTable, keep_seen_set: bool = True) -> None:
    table.start_round()
    rig_round(table, FOUR_SEAT_HANDS, FOUR_SEAT_DEALER_SETS)
    table.process_dealer_decision(table.state.dealer.id, keep_seen_set)
    assert table.state.phase == Phase.PLAYING


def skip_turns(table: GameTable, count: int) -> None:
    for _ in range(count):
        table.process_player_action(table.state.current_player.id, "skip")
