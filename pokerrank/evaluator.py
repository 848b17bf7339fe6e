"""
Core 5-card hand evaluation using precomputed lookup tables.

Ranks run from 1 (royal flush) to 7462 (7-5-4-3-2 offsuit); lower is better.
The kernel is a JAX function over packed ``uint32`` card values, so it can be
jitted once and vmapped over batches.
"""

from typing import Iterable, List

import jax
import jax.numpy as jnp
import numpy as np

from .errors import DuplicateCard, WrongHandSize
from .tables import LookupTables, load_tables
from .tables.constants import (
    RANK_SHIFT, RANK_MASK, SUIT_MASK, RANK_BIT_SHIFT, HASH_OFFSET, HASH_ADJUST_MASK,
    MAX_HIGH_CARD, MAX_TO_HAND_CLASS, HAND_CLASS_TO_STRING,
)

HAND_SIZE = 5

_HAND_CLASS_BOUNDARIES = np.array(sorted(MAX_TO_HAND_CLASS), dtype=np.int32)


def _shr(value: jnp.ndarray, shift: int) -> jnp.ndarray:
    """Logical (zero-filling) right shift of uint32 values."""
    return jax.lax.shift_right_logical(value, jnp.uint32(shift))


@jax.jit
def perfect_hash(key: jnp.ndarray, hash_adjust: jnp.ndarray) -> jnp.ndarray:
    """
    Map the prime product of a paired hand to its slot in the hash value table.

    All arithmetic is uint32 with wraparound.

    Args:
        key: Prime product(s) of the five cards
        hash_adjust: 512-entry adjust table

    Returns:
        Slot index in [0, 8192)
    """
    key = key.astype(jnp.uint32) + jnp.uint32(HASH_OFFSET)
    key ^= _shr(key, 16)
    key += key << jnp.uint32(8)
    key ^= _shr(key, 4)
    index = _shr(key, 8) & jnp.uint32(HASH_ADJUST_MASK)
    base = _shr(key + (key << jnp.uint32(2)), 19)
    return base ^ hash_adjust[index]


@jax.jit
def rank_packed(cards: jnp.ndarray, tables: LookupTables) -> jnp.ndarray:
    """
    Rank five packed card values. Assumes a valid, duplicate-free hand.

    Args:
        cards: uint32[5] packed card values
        tables: Lookup tables from ``load_tables``

    Returns:
        Hand rank in [1, 7462]
    """
    cards = cards.astype(jnp.uint32)
    c1, c2, c3, c4, c5 = cards[0], cards[1], cards[2], cards[3], cards[4]

    # 13-bit pattern of the ranks present
    index = _shr(c1 | c2 | c3 | c4 | c5, RANK_BIT_SHIFT)

    # Flushes, including straight flushes
    is_flush = (c1 & c2 & c3 & c4 & c5 & jnp.uint32(SUIT_MASK)) != 0
    flush_val = tables.flushes[index]

    # Straights and high cards
    unique_val = tables.unique[index]

    # Everything with a repeated rank, keyed by the product of the rank primes
    primes = tables.primes[_shr(cards, RANK_SHIFT) & jnp.uint32(RANK_MASK)]
    product = primes[0] * primes[1] * primes[2] * primes[3] * primes[4]
    paired_val = tables.hash_values[perfect_hash(product, tables.hash_adjust)]

    return jnp.where(is_flush, flush_val, jnp.where(unique_val != 0, unique_val, paired_val))


_rank_batch = jax.jit(jax.vmap(rank_packed, in_axes=(0, None)))


def check_hand(values: List[int]) -> None:
    """
    Validate the packed values of a hand.

    Raises:
        WrongHandSize: unless there are exactly five values
        DuplicateCard: if a value appears more than once
    """
    if len(values) != HAND_SIZE:
        raise WrongHandSize(len(values))
    seen = set()
    for value in values:
        if value in seen:
            raise DuplicateCard(value)
        seen.add(value)


def card_values(cards: Iterable) -> List[int]:
    """Packed values of packed ints or ``Card`` objects."""
    if cards is None:
        raise WrongHandSize(0)
    return [int(card) for card in cards]


def evaluate(cards: Iterable) -> int:
    """
    Evaluate a 5-card hand.

    Args:
        cards: Five packed card values or ``Card`` objects, in any order

    Returns:
        Hand rank in [1, 7462], 1 for a royal flush and 7462 for 7-5-4-3-2

    Raises:
        WrongHandSize: unless exactly five cards are given
        DuplicateCard: if a card is repeated
    """
    values = card_values(cards)
    check_hand(values)
    return int(rank_packed(np.asarray(values, dtype=np.uint32), load_tables()))


def evaluate_batch(hands) -> np.ndarray:
    """
    Evaluate many 5-card hands at once.

    Each row is one hand; this does not pick the best five of a larger set.

    Args:
        hands: Array-like of shape (N, 5) with packed card values or ``Card``
            objects. A single hand of shape (5,) is treated as one row.

    Returns:
        int32 array of N hand ranks
    """
    if not isinstance(hands, (np.ndarray, jax.Array)):
        rows = [card_values(hand) for hand in hands]
        for row in rows:
            if len(row) != HAND_SIZE:
                raise WrongHandSize(len(row))
        hands = rows

    hands = np.asarray(hands, dtype=np.uint32)
    if hands.size == 0:
        return np.zeros(0, dtype=np.int32)
    if hands.ndim == 1:
        hands = hands.reshape(1, -1)
    if hands.ndim != 2:
        raise ValueError(f"Hands must have shape (N, {HAND_SIZE}), got {hands.shape}")
    if hands.shape[1] != HAND_SIZE:
        raise WrongHandSize(hands.shape[1])

    ordered = np.sort(hands, axis=1)
    repeated = ordered[:, 1:] == ordered[:, :-1]
    if repeated.any():
        row, col = np.argwhere(repeated)[0]
        raise DuplicateCard(int(ordered[row, col]))

    ranks = _rank_batch(jnp.asarray(hands), load_tables())
    return np.asarray(ranks, dtype=np.int32)


def hand_class(rank: int) -> int:
    """
    Get hand class from a hand rank.

    Returns:
        1=straight flush, 2=four of a kind, ..., 8=pair, 9=high card
    """
    rank = int(rank)
    if not 1 <= rank <= MAX_HIGH_CARD:
        raise ValueError(f"Hand rank must be in [1, {MAX_HIGH_CARD}], got {rank}")
    return int(hand_classes(rank))


def hand_classes(ranks) -> np.ndarray:
    """Vectorised ``hand_class`` for an array of valid ranks."""
    ranks = np.asarray(ranks)
    return np.searchsorted(_HAND_CLASS_BOUNDARIES, ranks, side="left") + 1


def hand_description(rank: int) -> str:
    """
    Get human-readable description of hand.

    Returns:
        String like "Full House" or "High Card"
    """
    return HAND_CLASS_TO_STRING[hand_class(rank)]
