"""
Derives the evaluator lookup tables from the enumeration of hand categories.

Number of distinct hand values:

    Straight Flush   10
    Four of a Kind   156      [(13 choose 2) * (2 choose 1)]
    Full Houses      156      [(13 choose 2) * (2 choose 1)]
    Flush            1277     [(13 choose 5) - 10 straight flushes]
    Straight         10
    Three of a Kind  858      [(13 choose 3) * (3 choose 1)]
    Two Pair         858      [(13 choose 3) * (3 choose 2)]
    One Pair         2860     [(13 choose 4) * (4 choose 1)]
    High Card      + 1277     [(13 choose 5) - 10 straights]
    -------------------------
    TOTAL            7462

Flushes, straights and high cards are keyed by their 13-bit rank pattern.
Every other hand has a repeated rank and is keyed by the product of its rank
primes, which the perfect hash maps into an 8192-slot table.
"""

import itertools
import logging
from typing import Dict, List, Tuple

import numpy as np

from .constants import (
    PRIMES, NUM_RANKS, RANK_PATTERN_SIZE, STRAIGHT_PATTERNS,
    MAX_STRAIGHT_FLUSH, MAX_FOUR_OF_A_KIND, MAX_FULL_HOUSE, MAX_FLUSH,
    MAX_STRAIGHT, MAX_THREE_OF_A_KIND, MAX_TWO_PAIR, MAX_PAIR,
    HASH_OFFSET, HASH_ADJUST_SIZE, HASH_ADJUST_MASK, HASH_VALUES_SIZE,
    UINT32_MASK, NUM_PAIRED_PRODUCTS,
)

logger = logging.getLogger(__name__)


def perfect_hash_parts(key: int) -> Tuple[int, int]:
    """
    Run the hash mixing steps over a prime product.

    Returns:
        Tuple of (13-bit base slot, 9-bit adjust index)
    """
    key = (key + HASH_OFFSET) & UINT32_MASK
    key ^= key >> 16
    key = (key + (key << 8)) & UINT32_MASK
    key ^= key >> 4
    base = ((key + (key << 2)) & UINT32_MASK) >> 19
    return base, (key >> 8) & HASH_ADJUST_MASK


def perfect_hash_int(key: int, hash_adjust) -> int:
    """Perfect hash of a prime product over plain Python ints."""
    base, index = perfect_hash_parts(key)
    return base ^ int(hash_adjust[index])


def five_rank_patterns() -> List[int]:
    """All 13-bit patterns with five ranks set that are not straights, best first."""
    patterns = []
    for ranks in itertools.combinations(range(NUM_RANKS), 5):
        pattern = sum(1 << rank for rank in ranks)
        if pattern not in STRAIGHT_PATTERNS:
            patterns.append(pattern)
    # Comparing equal-popcount patterns numerically compares high cards in order
    patterns.sort(reverse=True)
    return patterns


def _check_last_rank(rank: int, expected: int) -> None:
    if rank != expected:
        raise RuntimeError(f"Hand category ends at rank {rank}, expected {expected}")


def build_flushes() -> np.ndarray:
    """Flush table: straight flushes 1-10, other flushes 323-1599."""
    table = np.zeros(RANK_PATTERN_SIZE, dtype=np.uint16)
    for rank, pattern in enumerate(STRAIGHT_PATTERNS, start=1):
        table[pattern] = rank
    for rank, pattern in enumerate(five_rank_patterns(), start=MAX_FULL_HOUSE + 1):
        table[pattern] = rank
    _check_last_rank(rank, MAX_FLUSH)
    return table


def build_unique() -> np.ndarray:
    """Unique table: straights 1600-1609, high cards 6186-7462, zero elsewhere."""
    table = np.zeros(RANK_PATTERN_SIZE, dtype=np.uint16)
    for rank, pattern in enumerate(STRAIGHT_PATTERNS, start=MAX_FLUSH + 1):
        table[pattern] = rank
    for rank, pattern in enumerate(five_rank_patterns(), start=MAX_PAIR + 1):
        table[pattern] = rank
    return table


def paired_products() -> Dict[int, int]:
    """
    Prime product -> hand rank for every hand with a repeated rank.

    Quads 11-166, full houses 167-322, trips 1610-2467, two pair 2468-3325,
    one pair 3326-6185.
    """
    products = {}
    backwards_ranks = list(range(NUM_RANKS - 1, -1, -1))

    # Four of a kind
    rank = MAX_STRAIGHT_FLUSH + 1
    for quad in backwards_ranks:
        for kicker in backwards_ranks:
            if kicker == quad:
                continue
            products[PRIMES[quad] ** 4 * PRIMES[kicker]] = rank
            rank += 1
    _check_last_rank(rank - 1, MAX_FOUR_OF_A_KIND)

    # Full house
    for trips in backwards_ranks:
        for pair in backwards_ranks:
            if pair == trips:
                continue
            products[PRIMES[trips] ** 3 * PRIMES[pair] ** 2] = rank
            rank += 1
    _check_last_rank(rank - 1, MAX_FULL_HOUSE)

    # Three of a kind
    rank = MAX_STRAIGHT + 1
    for trips in backwards_ranks:
        kickers = [r for r in backwards_ranks if r != trips]
        for k1, k2 in itertools.combinations(kickers, 2):
            products[PRIMES[trips] ** 3 * PRIMES[k1] * PRIMES[k2]] = rank
            rank += 1
    _check_last_rank(rank - 1, MAX_THREE_OF_A_KIND)

    # Two pair
    for high, low in itertools.combinations(backwards_ranks, 2):
        for kicker in backwards_ranks:
            if kicker in (high, low):
                continue
            products[PRIMES[high] ** 2 * PRIMES[low] ** 2 * PRIMES[kicker]] = rank
            rank += 1
    _check_last_rank(rank - 1, MAX_TWO_PAIR)

    # One pair
    for pair in backwards_ranks:
        kickers = [r for r in backwards_ranks if r != pair]
        for k1, k2, k3 in itertools.combinations(kickers, 3):
            products[PRIMES[pair] ** 2 * PRIMES[k1] * PRIMES[k2] * PRIMES[k3]] = rank
            rank += 1
    _check_last_rank(rank - 1, MAX_PAIR)

    return products


def build_hash_tables(products: Dict[int, int]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Solve the adjust table for the perfect hash and fill the value table.

    Keys sharing an adjust index form a bucket. Buckets are placed largest
    first, each with the smallest XOR displacement that sends all of its keys
    to free slots.

    Returns:
        Tuple of (hash_adjust[512], hash_values[8192])

    Raises:
        RuntimeError: if a bucket cannot be placed
    """
    buckets: List[List[Tuple[int, int]]] = [[] for _ in range(HASH_ADJUST_SIZE)]
    for product, rank in products.items():
        base, index = perfect_hash_parts(product)
        buckets[index].append((base, rank))

    hash_adjust = np.zeros(HASH_ADJUST_SIZE, dtype=np.uint16)
    hash_values = np.zeros(HASH_VALUES_SIZE, dtype=np.uint16)
    used = bytearray(HASH_VALUES_SIZE)

    order = sorted(range(HASH_ADJUST_SIZE), key=lambda i: (-len(buckets[i]), i))
    for index in order:
        bucket = buckets[index]
        if not bucket:
            break
        bases = [base for base, _ in bucket]
        if len(set(bases)) != len(bases):
            raise RuntimeError(f"Hash bucket {index} has colliding base slots")

        for adjust in range(HASH_VALUES_SIZE):
            if not any(used[base ^ adjust] for base in bases):
                break
        else:
            raise RuntimeError(f"No displacement places hash bucket {index}")

        hash_adjust[index] = adjust
        for base, rank in bucket:
            used[base ^ adjust] = 1
            hash_values[base ^ adjust] = rank

    return hash_adjust, hash_values


def build_all() -> Dict[str, np.ndarray]:
    """Build every lookup table as numpy arrays."""
    logger.info("Building 5-card lookup tables...")
    products = paired_products()
    if len(products) != NUM_PAIRED_PRODUCTS:
        raise RuntimeError(
            f"Generated {len(products)} paired products, expected {NUM_PAIRED_PRODUCTS}"
        )
    hash_adjust, hash_values = build_hash_tables(products)
    arrays = {
        "primes": np.array(PRIMES, dtype=np.uint32),
        "flushes": build_flushes(),
        "unique": build_unique(),
        "hash_adjust": hash_adjust,
        "hash_values": hash_values,
    }
    logger.info(
        "Lookup tables built: %d flush patterns, %d unique patterns, %d paired products",
        int(np.count_nonzero(arrays["flushes"])),
        int(np.count_nonzero(arrays["unique"])),
        len(products),
    )
    return arrays
