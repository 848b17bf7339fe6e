"""
Errors raised for invalid cards and hands.

All of them are caller input errors detected before any table lookup.
"""


class PokerRankError(ValueError):
    """Base class for card and hand validation errors."""


class InvalidCard(PokerRankError):
    """Rank or suit outside the 52-card deck."""


class WrongHandSize(PokerRankError):
    """A hand was given with other than exactly five cards."""

    def __init__(self, size: int):
        super().__init__(f"Exactly 5 cards are required, got {size}.")
        self.size = size


class DuplicateCard(PokerRankError):
    """The same card appears more than once in a hand."""

    def __init__(self, value: int):
        super().__init__(f"Duplicate card in hand: {value:#010x}")
        self.value = value
