from __future__ import annotations

import logging
import random
import time
from typing import Dict, List, Optional, Set, Union

from .ai import get_ai_action, get_ai_dealer_decision, get_player_hint
from .cards import Card, card_ids, cards_to_payload, create_deck
from .errors import IllegalAction
from .models import ActionType, GameConfig, GameState, LastAction, Phase, Player, RoundResult
from .rules import (
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
from .scoring import has_three_aces

LOGGER = logging.getLogger("schwimmen_table")

# GameTable keeps one room's state in memory. No networking lives here, only
# turn order, card movement and the round lifecycle.

TURN_PHASES = (Phase.PLAYING, Phase.LAST_ROUND)
REVEAL_PHASES = (Phase.SCORING, Phase.ROUND_END)


class GameTable:
    """Schwimmen/31 state machine for a single room."""

    def __init__(
        self,
        config: GameConfig,
        creator_name: str = "Player 1",
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.rng = rng or random.Random()
        # Bumped on every applied change; lets queued AI moves detect staleness.
        self.version = 0

        players: List[Player] = []
        for idx in range(config.human_players):
            players.append(
                Player(
                    id=f"player-{idx}",
                    name=creator_name if idx == 0 else f"Player {idx + 1}",
                    lives=config.starting_lives,
                    is_dealer=idx == 0,
                )
            )
        for idx in range(config.ai_players):
            players.append(
                Player(
                    id=f"ai-{idx}",
                    name=f"AI {idx + 1}",
                    is_ai=True,
                    lives=config.starting_lives,
                )
            )
        self.state = GameState(players=players, deck=create_deck())

    # Seats -----------------------------------------------------------

    def human_player_ids(self) -> List[str]:
        return [player.id for player in self.state.players if not player.is_ai]

    def rename_player(self, player_id: str, name: str) -> None:
        player = self.state.find_player(player_id)
        if player is None:
            raise KeyError(player_id)
        player.name = name

    @property
    def has_first_round_completed(self) -> bool:
        return self.state.turns_taken >= len(self.state.active_players())

    # Round lifecycle -------------------------------------------------

    def start_round(self, continuing: bool = False) -> None:
        """Deal a new round: the first one from setup, later ones from round-end."""
        state = self.state
        allowed = Phase.ROUND_END if continuing else Phase.SETUP
        if state.phase != allowed:
            raise IllegalAction(f"Cannot deal during {state.phase.value}")

        state.phase = Phase.DEALING
        state.round_number += 1
        for player in state.players:
            player.reset_for_round()

        dealt = deal_cards(state.players, create_deck(), self.rng)
        if dealt.dealer_sets is None:
            raise RuntimeError("Dealer seat is eliminated")

        state.deck = dealt.deck
        state.dealer_sets = dealt.dealer_sets
        state.public_cards = []
        state.players_who_acted_after_close = set()
        state.round_closed_by_player_id = None
        state.last_action = None
        state.last_result = None
        state.turns_taken = 0
        for player in state.players:
            hand = dealt.player_hands.get(player.id)
            if hand is not None:
                player.hand = hand

        state.seen_set_index = self.rng.randint(0, 1)
        state.phase = Phase.DEALER_DECISION
        state.current_player_index = state.dealer_index
        self.version += 1
        LOGGER.info(
            "Round %s dealt; dealer=%s seen_set=%s",
            state.round_number,
            state.dealer.id,
            state.seen_set_index,
        )

    def process_dealer_decision(self, player_id: str, keep_seen_set: bool) -> None:
        state = self.state
        if state.phase != Phase.DEALER_DECISION or state.dealer_sets is None or state.seen_set_index is None:
            raise IllegalAction("No dealer decision pending")
        dealer = state.dealer
        if dealer.id != player_id:
            raise IllegalAction("Only the dealer chooses a set")

        seen = state.dealer_sets[state.seen_set_index]
        unseen = state.dealer_sets[1 - state.seen_set_index]
        dealer.hand = list(seen if keep_seen_set else unseen)
        state.public_cards = list(unseen if keep_seen_set else seen)
        state.dealer_sets = None
        state.seen_set_index = None
        state.phase = Phase.PLAYING
        state.current_player_index = state.dealer_index
        self.version += 1
        LOGGER.debug("Dealer %s kept %s set", dealer.id, "seen" if keep_seen_set else "unseen")

        # Three aces on the deal end the round before anyone moves.
        if any(has_three_aces(player.hand) for player in state.active_players()):
            self.finish_round()
            return
        self.advance_turn()

    def process_player_action(
        self,
        player_id: str,
        action: Union[ActionType, str],
        card_to_exchange: Optional[Card] = None,
        public_card_to_take: Optional[Card] = None,
    ) -> None:
        state = self.state
        try:
            action = ActionType(action)
        except ValueError:
            raise IllegalAction(f"Unknown action {action!r}") from None

        if state.phase not in TURN_PHASES:
            raise IllegalAction(f"No turns during {state.phase.value}")
        player_index = state.index_of(player_id)
        if player_index < 0:
            raise IllegalAction("Unknown player")
        if player_index != state.current_player_index:
            raise IllegalAction("Not your turn")
        player = state.players[player_index]
        if player.is_eliminated:
            raise IllegalAction("Player is eliminated")

        taken: List[str] = []
        put: List[str] = []
        if action == ActionType.EXCHANGE_ONE:
            if card_to_exchange is None or public_card_to_take is None:
                raise IllegalAction("exchange-one needs a hand card and a public card")
            hand_idx = _index_by_id(player.hand, card_to_exchange.id)
            public_idx = _index_by_id(state.public_cards, public_card_to_take.id)
            if hand_idx < 0:
                raise IllegalAction(f"{card_to_exchange.id} is not in hand")
            if public_idx < 0:
                raise IllegalAction(f"{public_card_to_take.id} is not on the table")
            given = player.hand[hand_idx]
            received = state.public_cards[public_idx]
            player.hand[hand_idx] = received
            state.public_cards[public_idx] = given
            taken, put = [received.id], [given.id]
        elif action == ActionType.EXCHANGE_ALL:
            taken = card_ids(state.public_cards)
            put = card_ids(player.hand)
            player.hand, state.public_cards = list(state.public_cards), list(player.hand)
        elif action == ActionType.CLOSE_ROUND:
            if state.phase != Phase.PLAYING:
                raise IllegalAction("Round already closed")
            if not is_valid_action(action, self.has_first_round_completed):
                raise IllegalAction("Cannot close before the first full round")
            state.phase = Phase.LAST_ROUND
            state.round_closed_by_player_id = player_id
            player.has_closed_round = True

        self.version += 1
        LOGGER.debug("Applied action player=%s action=%s taken=%s put=%s", player_id, action.value, taken, put)

        if has_three_aces(player.hand):
            self.finish_round()
            return

        state.last_action = LastAction(
            player_id=player_id,
            player_name=player.name,
            action=action,
            timestamp=int(time.time() * 1000),
            taken_card_ids=taken,
            put_card_ids=put,
        )
        state.turns_taken += 1

        if state.phase == Phase.LAST_ROUND:
            state.players_who_acted_after_close.add(player_id)
            remaining = [
                other
                for other in players_after_closer(state.players, state.round_closed_by_player_id)
                if other.id not in state.players_who_acted_after_close
            ]
            if not remaining:
                self.finish_round()
                return

        self.advance_turn()

    def advance_turn(self) -> bool:
        """Move to the next non-eliminated seat; ends the game if none is left."""
        state = self.state
        total = len(state.players)
        idx = state.current_player_index
        for _ in range(total):
            idx = get_next_player_index(idx, total)
            if not state.players[idx].is_eliminated:
                state.current_player_index = idx
                return True
        LOGGER.warning("No eligible player left to act; ending game")
        state.phase = Phase.GAME_END
        return False

    def finish_round(self) -> None:
        state = self.state
        state.phase = Phase.SCORING
        result = determine_round_results(state.players)
        state.players = update_player_lives(state.players, result.loser_ids)

        dealer_index = get_next_dealer_index(state.players, result.loser_ids)
        if dealer_index >= 0:
            state.dealer_index = dealer_index
        for idx, player in enumerate(state.players):
            player.is_dealer = idx == dealer_index
        state.last_result = result

        if should_game_end(state.players):
            state.phase = Phase.GAME_END
            winner = get_winner(state.players)
            LOGGER.info("Game over after round %s; winner=%s", state.round_number, winner.id if winner else None)
        else:
            state.phase = Phase.ROUND_END
            LOGGER.info(
                "Round %s scored; losers=%s three_aces=%s",
                state.round_number,
                result.loser_ids,
                result.three_aces_player_id,
            )
        self.version += 1

    # AI seats --------------------------------------------------------

    def pending_ai_player(self) -> Optional[Player]:
        state = self.state
        if state.phase == Phase.DEALER_DECISION and state.dealer_sets is not None:
            dealer = state.dealer
            return dealer if dealer.is_ai else None
        if state.phase in TURN_PHASES:
            player = state.current_player
            if player.is_ai and not player.is_eliminated:
                return player
        return None

    def decide_for_ai(self, player_id: str) -> None:
        state = self.state
        player = self.pending_ai_player()
        if player is None or player.id != player_id:
            raise IllegalAction("AI player is not due to act")

        if state.phase == Phase.DEALER_DECISION:
            assert state.dealer_sets is not None and state.seen_set_index is not None
            decision = get_ai_dealer_decision(state.dealer_sets[state.seen_set_index], self.rng)
            LOGGER.debug("AI dealer %s keep_seen_set=%s", player_id, decision.keep_seen_set)
            self.process_dealer_decision(player_id, decision.keep_seen_set)
            return

        choice = get_ai_action(
            player.hand,
            state.public_cards,
            self.has_first_round_completed,
            state.phase == Phase.LAST_ROUND,
            self.rng,
        )
        LOGGER.debug("AI %s chose %s", player_id, choice.action.value)
        self.process_player_action(player_id, choice.action, choice.card_to_exchange, choice.public_card_to_take)

    # Snapshot helpers ------------------------------------------------

    def snapshot_payload(self, viewer_id: Optional[str]) -> Dict[str, object]:
        """Game state as ``viewer_id`` may see it."""
        state = self.state
        reveal = state.phase in REVEAL_PHASES
        hidden = {
            player.id
            for player in state.players
            if not (reveal or player.is_ai or player.id == viewer_id)
        }
        players = [player.to_payload(hide_hand=player.id in hidden) for player in state.players]

        dealer_sets: Optional[List[List[Dict[str, str]]]] = None
        if state.dealer_sets is not None:
            dealer_sets = [[], []]
            if viewer_id == state.dealer.id and state.seen_set_index is not None:
                dealer_sets[state.seen_set_index] = cards_to_payload(state.dealer_sets[state.seen_set_index])

        payload: Dict[str, object] = {
            "players": players,
            "publicCards": cards_to_payload(state.public_cards),
            "deckSize": len(state.deck),
            "currentPlayerIndex": state.current_player_index,
            "dealerIndex": state.dealer_index,
            "phase": state.phase.value,
            "roundNumber": state.round_number,
            "dealerSets": dealer_sets,
            "seenSetIndex": state.seen_set_index,
            "playersWhoActedAfterClose": sorted(state.players_who_acted_after_close),
            "roundClosedByPlayerId": state.round_closed_by_player_id,
            "lastAction": state.last_action.to_payload() if state.last_action else None,
            "lastResult": _result_payload(state.last_result, hidden) if state.last_result else None,
            "hasFirstRoundCompleted": self.has_first_round_completed,
        }

        viewer = state.find_player(viewer_id) if viewer_id else None
        if (
            viewer is not None
            and not viewer.is_ai
            and state.phase in TURN_PHASES
            and state.current_player.id == viewer.id
            and len(viewer.hand) == 3
            and len(state.public_cards) == 3
        ):
            payload["hint"] = get_player_hint(viewer.hand, state.public_cards, self.has_first_round_completed)
        return payload


def _result_payload(result: RoundResult, hidden: Set[str]) -> Dict[str, object]:
    payload = result.to_payload()
    for score in payload["scores"]:  # type: ignore[union-attr]
        if score["playerId"] in hidden:
            score["hand"] = []
            score["scoringCards"] = []
    return payload


def _index_by_id(cards: List[Card], card_id: str) -> int:
    for idx, card in enumerate(cards):
        if card.id == card_id:
            return idx
    return -1
