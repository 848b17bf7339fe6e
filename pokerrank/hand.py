"""
Immutable 5-card poker hand.
"""

from typing import Iterator, Tuple

import numpy as np

from .card import Card
from .errors import InvalidCard
from .evaluator import check_hand, hand_description, rank_packed
from .tables import load_tables


class Hand:
    """
    Five distinct cards.

    Size and duplicates are checked once, at construction, so every live
    ``Hand`` can be evaluated without further validation. Card order is kept
    for display and does not affect the rank.
    """

    __slots__ = ("_cards",)

    def __init__(self, *cards: Card):
        for card in cards:
            if not isinstance(card, Card):
                raise InvalidCard(f"Not a card: {card!r}")
        check_hand([card.value for card in cards])
        object.__setattr__(self, "_cards", tuple(cards))

    def __setattr__(self, name, value):
        raise AttributeError("Hand is immutable")

    @classmethod
    def from_string(cls, hand_str: str) -> "Hand":
        """Parse a hand like "Kd 5s Jc Ah Qc"."""
        return cls(*(Card.from_string(part) for part in hand_str.split()))

    @property
    def cards(self) -> Tuple[Card, ...]:
        return self._cards

    @property
    def values(self) -> Tuple[int, ...]:
        return tuple(card.value for card in self._cards)

    def evaluate(self) -> int:
        """Hand rank in [1, 7462], 1 being a royal flush."""
        return int(rank_packed(np.asarray(self.values, dtype=np.uint32), load_tables()))

    rank = evaluate

    def description(self) -> str:
        return hand_description(self.evaluate())

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Hand):
            return NotImplemented
        return self._cards == other._cards

    def __hash__(self) -> int:
        return hash(self._cards)

    def __repr__(self) -> str:
        return f"Hand({str(self)!r})"

    def __str__(self) -> str:
        return " ".join(str(card) for card in self._cards)
