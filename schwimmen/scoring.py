from __future__ import annotations

from typing import List, Sequence, Tuple

from .cards import CARD_VALUES, SUITS, Card
from .models import ScoreResult

THREE_OF_A_KIND_SCORE = 30.5

EXCELLENT_SCORE = 29
GOOD_SCORE = 25
ACCEPTABLE_SCORE = 20


def calculate_score(hand: Sequence[Card], player_id: str = "") -> ScoreResult:
    """Score a three-card hand. Higher is better; 30.5 beats every suit sum."""
    if len(hand) != 3:
        raise ValueError("Hand must contain exactly 3 cards")
    cards = list(hand)

    if cards[0].rank == cards[1].rank == cards[2].rank:
        return ScoreResult(
            player_id=player_id,
            score=THREE_OF_A_KIND_SCORE,
            hand=cards,
            scoring_cards=list(cards),
            is_three_of_kind=True,
        )

    if len({card.suit for card in cards}) == 3:
        # No shared suit: only the single highest card counts.
        top = cards[0]
        for card in cards[1:]:
            if card.value > top.value:
                top = card
        return ScoreResult(
            player_id=player_id,
            score=float(top.value),
            hand=cards,
            scoring_cards=[top],
        )

    best_score = 0
    best_cards: List[Card] = []
    for suit in SUITS:
        same_suit = [card for card in cards if card.suit == suit]
        if not same_suit:
            continue
        total = sum(CARD_VALUES[card.rank] for card in same_suit)
        if total > best_score:
            best_score = total
            best_cards = same_suit

    return ScoreResult(
        player_id=player_id,
        score=float(best_score),
        hand=cards,
        scoring_cards=best_cards,
        is_three_of_kind=False,
    )


def has_three_aces(hand: Sequence[Card]) -> bool:
    return len(hand) == 3 and all(card.rank == "A" for card in hand)


def evaluate_hand_strength(hand: Sequence[Card]) -> Tuple[float, str, bool]:
    """Return ``(score, strength, should_risk)`` where strength is a coarse bucket."""
    score = calculate_score(hand).score
    if score >= EXCELLENT_SCORE:
        return score, "excellent", False
    if score >= GOOD_SCORE:
        return score, "good", False
    if score >= ACCEPTABLE_SCORE:
        return score, "fair", True
    return score, "poor", True
