"""
Fast 5-card poker hand evaluation using precomputed lookup tables.

Cards are packed into 32-bit integers and ranked in constant time with the
flush, unique and perfect-hash tables. Ranks run from 1 (royal flush) to
7462 (7-5-4-3-2 offsuit).
"""

from .card import Card, Rank, Suit, encode, rank_of, suit_of, parse_card, format_card, cards_from_string, DECK
from .errors import PokerRankError, InvalidCard, WrongHandSize, DuplicateCard
from .evaluator import evaluate, evaluate_batch, hand_class, hand_description
from .hand import Hand
from .tables import load_tables, save_tables

__all__ = [
    'Card',
    'Rank',
    'Suit',
    'encode',
    'rank_of',
    'suit_of',
    'parse_card',
    'format_card',
    'cards_from_string',
    'DECK',
    'PokerRankError',
    'InvalidCard',
    'WrongHandSize',
    'DuplicateCard',
    'evaluate',
    'evaluate_batch',
    'hand_class',
    'hand_description',
    'Hand',
    'load_tables',
    'save_tables',
]
