from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .cards import Card
from .models import ActionType
from .scoring import EXCELLENT_SCORE, GOOD_SCORE, calculate_score, evaluate_hand_strength, has_three_aces

_RNG = random.Random()

BEST_CHOICE_PROBABILITY = 0.85
CLOSE_SCORE = 27
RISKY_CLOSE_SCORE = 24
STRONG_HAND_SCORE = 28


@dataclass
class AIDecision:
    action: ActionType
    card_to_exchange: Optional[Card] = None
    public_card_to_take: Optional[Card] = None


@dataclass
class DealerDecision:
    keep_seen_set: bool
    confidence: float


@dataclass
class _Evaluation:
    action: ActionType
    expected_score: float
    confidence: float

    @property
    def weight(self) -> float:
        return self.expected_score * self.confidence


def evaluate_exchange_one(
    hand: Sequence[Card],
    public_cards: Sequence[Card],
) -> Tuple[Optional[Card], Optional[Card], float]:
    """Try every hand/public swap; return the best improving one and its score."""
    best_score = calculate_score(hand).score
    best_card: Optional[Card] = None
    best_public: Optional[Card] = None
    for idx, card in enumerate(hand):
        for public_card in public_cards:
            candidate = list(hand)
            candidate[idx] = public_card
            score = calculate_score(candidate).score
            if score > best_score:
                best_score = score
                best_card = card
                best_public = public_card
    return best_card, best_public, best_score


def evaluate_exchange_all(public_cards: Sequence[Card]) -> float:
    return calculate_score(public_cards).score


def get_ai_action(
    hand: Sequence[Card],
    public_cards: Sequence[Card],
    has_first_round_completed: bool,
    is_last_round: bool,
    rng: Optional[random.Random] = None,
) -> AIDecision:
    """Pick a move by expected score weighted with a hand-tuned confidence."""
    rng = rng or _RNG
    if has_three_aces(hand):
        return AIDecision(ActionType.SKIP)

    current_score = calculate_score(hand).score
    best_card, best_public, exchange_one_score = evaluate_exchange_one(hand, public_cards)

    evaluations: List[_Evaluation] = [
        _Evaluation(ActionType.SKIP, current_score, 0.9 if current_score >= STRONG_HAND_SCORE else 0.3),
        _Evaluation(ActionType.EXCHANGE_ONE, exchange_one_score, 0.7 if best_card else 0.0),
        _Evaluation(ActionType.EXCHANGE_ALL, evaluate_exchange_all(public_cards), 0.6),
    ]

    if has_first_round_completed and not is_last_round:
        should_close = current_score >= CLOSE_SCORE or (
            current_score >= RISKY_CLOSE_SCORE and rng.random() > 0.5
        )
        if should_close:
            evaluations.append(
                _Evaluation(
                    ActionType.CLOSE_ROUND,
                    current_score,
                    0.95 if current_score >= EXCELLENT_SCORE else 0.7,
                )
            )

    ranked = sorted(evaluations, key=lambda item: item.weight, reverse=True)
    # Occasionally play the runner-up so the table cannot read the bots.
    chosen = ranked[0] if rng.random() < BEST_CHOICE_PROBABILITY else ranked[min(1, len(ranked) - 1)]

    if chosen.action == ActionType.EXCHANGE_ONE:
        if best_card is None or best_public is None:
            return AIDecision(ActionType.SKIP)
        return AIDecision(ActionType.EXCHANGE_ONE, card_to_exchange=best_card, public_card_to_take=best_public)
    return AIDecision(chosen.action)


def get_ai_dealer_decision(seen_set: Sequence[Card], rng: Optional[random.Random] = None) -> DealerDecision:
    rng = rng or _RNG
    if has_three_aces(seen_set):
        return DealerDecision(keep_seen_set=True, confidence=1.0)

    _, strength, _ = evaluate_hand_strength(seen_set)
    if strength == "excellent":
        return DealerDecision(keep_seen_set=True, confidence=0.95)
    if strength == "good":
        return DealerDecision(keep_seen_set=True, confidence=0.75)
    if strength == "fair":
        return DealerDecision(keep_seen_set=rng.random() > 0.4, confidence=0.5)
    return DealerDecision(keep_seen_set=False, confidence=0.7)


def get_player_hint(
    hand: Sequence[Card],
    public_cards: Sequence[Card],
    has_first_round_completed: bool,
) -> str:
    """One-line advice for a human player looking at ``hand``."""
    if has_three_aces(hand):
        return "You have three Aces! Skip to win the round!"

    current_score = calculate_score(hand).score
    if current_score >= 31:
        return "Perfect hand! Skip to win."
    if current_score >= EXCELLENT_SCORE:
        return "Excellent hand! Consider skipping or closing the round."

    best_card, best_public, exchange_one_score = evaluate_exchange_one(hand, public_cards)
    if best_card and best_public and exchange_one_score > current_score + 5:
        return (
            f"Consider exchanging {best_card.rank} of {best_card.suit} "
            f"for {best_public.rank} of {best_public.suit}."
        )

    exchange_all_score = evaluate_exchange_all(public_cards)
    if exchange_all_score > current_score + 5:
        return f"Public cards score {exchange_all_score:.1f}. Consider exchanging all."

    if current_score >= GOOD_SCORE and has_first_round_completed:
        return "You have a good hand. Consider closing the round."
    return "Evaluate your options carefully."
