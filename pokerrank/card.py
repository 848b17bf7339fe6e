"""
Card representation and conversion utilities for poker hand evaluation.

Every card is packed into a single 32-bit integer:

    xxxAKQJT 98765432 CDHSrrrr xxPPPPPP

- bits 0-7:   prime number of the rank (2, 3, 5, ..., 41)
- bits 8-11:  rank ordinal (0=2, 1=3, ..., 12=A)
- bits 12-15: suit flag (exactly one of C, D, H, S)
- bits 16-28: rank bit (exactly one bit, offset by the rank ordinal)

The fields overlap on purpose: AND-ing five cards tests for a flush and
OR-ing them gives the set of ranks present, without unpacking anything.
"""

import enum
from dataclasses import dataclass, field
from typing import List, Tuple, Union

from .errors import InvalidCard
from .tables.constants import (
    PRIMES, RANK_SHIFT, RANK_MASK, SUIT_MASK, RANK_BIT_SHIFT
)

RANK_CHARS = "23456789TJQKA"
SUIT_CHARS = "cdhs"


class Rank(enum.Enum):
    TWO = 0
    THREE = 1
    FOUR = 2
    FIVE = 3
    SIX = 4
    SEVEN = 5
    EIGHT = 6
    NINE = 7
    TEN = 8
    JACK = 9
    QUEEN = 10
    KING = 11
    ACE = 12

    @property
    def symbol(self) -> str:
        return RANK_CHARS[self.value]

    def __str__(self) -> str:
        return self.symbol


class Suit(enum.Enum):
    CLUBS = 0x8000
    DIAMONDS = 0x4000
    HEARTS = 0x2000
    SPADES = 0x1000

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    def __str__(self) -> str:
        return self.symbol


_SUIT_SYMBOLS = {
    Suit.CLUBS: "c",
    Suit.DIAMONDS: "d",
    Suit.HEARTS: "h",
    Suit.SPADES: "s",
}
_SYMBOL_SUITS = {symbol: suit for suit, symbol in _SUIT_SYMBOLS.items()}


def _to_rank(rank: Union[Rank, int]) -> Rank:
    if isinstance(rank, Rank):
        return rank
    # bool is an int subclass but never a rank
    if isinstance(rank, int) and not isinstance(rank, bool):
        try:
            return Rank(rank)
        except ValueError:
            pass
    raise InvalidCard(f"Invalid rank: {rank!r}")


def _to_suit(suit: Union[Suit, int]) -> Suit:
    if isinstance(suit, Suit):
        return suit
    if isinstance(suit, int) and not isinstance(suit, bool):
        try:
            return Suit(suit)
        except ValueError:
            pass
    raise InvalidCard(f"Invalid suit: {suit!r}")


def encode(rank: Union[Rank, int], suit: Union[Suit, int]) -> int:
    """
    Pack a rank and a suit into the 32-bit card value.

    Args:
        rank: Rank member or its ordinal (0=2, ..., 12=A)
        suit: Suit member or its flag value (0x8000=clubs, ..., 0x1000=spades)

    Returns:
        Packed card value

    Raises:
        InvalidCard: if rank or suit is outside the deck
    """
    rank = _to_rank(rank)
    suit = _to_suit(suit)
    r = rank.value
    return (1 << (r + RANK_BIT_SHIFT)) | suit.value | (r << RANK_SHIFT) | PRIMES[r]


def rank_of(value: int) -> Rank:
    """Extract the rank of a packed card value."""
    return Rank((value >> RANK_SHIFT) & RANK_MASK)


def suit_of(value: int) -> Suit:
    """Extract the suit of a packed card value."""
    return Suit(value & SUIT_MASK)


@dataclass(frozen=True)
class Card:
    """An immutable card from a standard 52-card deck."""

    rank: Rank
    suit: Suit
    value: int = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        rank = _to_rank(self.rank)
        suit = _to_suit(self.suit)
        object.__setattr__(self, "rank", rank)
        object.__setattr__(self, "suit", suit)
        object.__setattr__(self, "value", encode(rank, suit))

    @classmethod
    def from_value(cls, value: int) -> "Card":
        return cls(rank_of(value), suit_of(value))

    @classmethod
    def from_string(cls, card_str: str) -> "Card":
        """
        Create a card from two-character notation, e.g. "Kc" or "As".

        Raises:
            InvalidCard: if the string is not a rank symbol followed by a suit symbol
        """
        if not isinstance(card_str, str) or len(card_str) != 2:
            raise InvalidCard(f"Invalid card string: {card_str!r}")

        rank_char, suit_char = card_str[0], card_str[1]
        rank = RANK_CHARS.find(rank_char)
        if rank < 0 or suit_char not in _SYMBOL_SUITS:
            raise InvalidCard(f"Invalid card string: {card_str!r}")
        return cls(Rank(rank), _SYMBOL_SUITS[suit_char])

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.rank.symbol + self.suit.symbol


def parse_card(card_str: str) -> int:
    """
    Parse card string to packed card value.

    Args:
        card_str: String like "As" or "2c"

    Returns:
        Packed card value
    """
    return Card.from_string(card_str).value


def format_card(value: int) -> str:
    """Format a packed card value as "As", "Td", ..."""
    return rank_of(value).symbol + suit_of(value).symbol


def cards_from_string(cards_str: str) -> List[int]:
    """Convert card string like 'As Kh Qd Jc Ts' to a list of packed values."""
    return [parse_card(card) for card in cards_str.split()]


def format_hand(values) -> str:
    """
    Format packed card values as readable string.

    Returns:
        String like "As Kh Qd Jc Ts"
    """
    return " ".join(format_card(int(value)) for value in values)


def id_to_card(card_id: int) -> Tuple[Rank, Suit]:
    """Map a deck index (0-51, rank-major) to its rank and suit."""
    if not 0 <= card_id < 52:
        raise InvalidCard(f"Invalid card id: {card_id!r}")
    return Rank(card_id // 4), list(Suit)[card_id % 4]


# All 52 packed values, rank-major: 2c 2d 2h 2s 3c ... As
DECK = tuple(encode(rank, suit) for rank in Rank for suit in Suit)
