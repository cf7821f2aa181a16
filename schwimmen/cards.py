from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

SUITS = ("hearts", "diamonds", "clubs", "spades")
RANKS = ("7", "8", "9", "10", "J", "Q", "K", "A")

CARD_VALUES = {
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 10,
    "J": 10,
    "Q": 10,
    "K": 10,
    "A": 11,
}

_RNG = random.Random()


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str

    def __post_init__(self) -> None:
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")

    @property
    def id(self) -> str:
        return f"{self.suit}-{self.rank}"

    @property
    def value(self) -> int:
        return CARD_VALUES[self.rank]

    def to_payload(self) -> Dict[str, str]:
        return {"suit": self.suit, "rank": self.rank, "id": self.id}

    @classmethod
    def from_payload(cls, payload: object) -> "Card":
        """Accept the wire form ``{"suit", "rank", "id"}``; ``id`` alone is enough."""
        if not isinstance(payload, Mapping):
            raise ValueError(f"Invalid card payload: {payload!r}")
        suit = payload.get("suit")
        rank = payload.get("rank")
        if suit is None or rank is None:
            card_id = payload.get("id")
            if not isinstance(card_id, str):
                raise ValueError(f"Invalid card payload: {payload!r}")
            return parse_id(card_id)
        return cls(str(suit), str(rank))


def create_deck() -> List[Card]:
    """Return the 32-card deck in a fixed suit-major order."""
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]


def shuffle(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Fisher-Yates over a copy so the caller's deck is left untouched."""
    rng = rng or _RNG
    shuffled = list(deck)
    for idx in range(len(shuffled) - 1, 0, -1):
        swap = rng.randint(0, idx)
        shuffled[idx], shuffled[swap] = shuffled[swap], shuffled[idx]
    return shuffled


def deal(deck: List[Card], count: int) -> List[Card]:
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    cards = deck[:count]
    del deck[:count]
    return cards


def parse_id(card_id: str) -> Card:
    suit, sep, rank = card_id.partition("-")
    if not sep:
        raise ValueError(f"Invalid card id: {card_id}")
    return Card(suit, rank)


def cards_to_payload(cards: Sequence[Card]) -> List[Dict[str, str]]:
    return [card.to_payload() for card in cards]


def card_ids(cards: Sequence[Card]) -> List[str]:
    return [card.id for card in cards]
