"""
Constants shared by the card encoding, the table builder and the evaluator.

Card layout (32 bits): xxxAKQJT 98765432 CDHSrrrr xxPPPPPP
"""

# One prime per rank (2=0, 3=1, ..., A=12)
PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41)

NUM_RANKS = 13

# Bit fields of a packed card
RANK_SHIFT = 8
RANK_MASK = 0xF
SUIT_MASK = 0xF000
RANK_BIT_SHIFT = 16

# 13-bit rank pattern keys for the flush and unique tables
RANK_PATTERN_SIZE = 1 << NUM_RANKS

# Hand rank boundaries, 1 is a royal flush and 7462 is 7-5-4-3-2 offsuit
MAX_STRAIGHT_FLUSH = 10
MAX_FOUR_OF_A_KIND = 166
MAX_FULL_HOUSE = 322
MAX_FLUSH = 1599
MAX_STRAIGHT = 1609
MAX_THREE_OF_A_KIND = 2467
MAX_TWO_PAIR = 3325
MAX_PAIR = 6185
MAX_HIGH_CARD = 7462

# Upper rank boundary -> hand class (1=straight flush, ..., 9=high card)
MAX_TO_HAND_CLASS = {
    MAX_STRAIGHT_FLUSH: 1,
    MAX_FOUR_OF_A_KIND: 2,
    MAX_FULL_HOUSE: 3,
    MAX_FLUSH: 4,
    MAX_STRAIGHT: 5,
    MAX_THREE_OF_A_KIND: 6,
    MAX_TWO_PAIR: 7,
    MAX_PAIR: 8,
    MAX_HIGH_CARD: 9,
}

HAND_CLASS_TO_STRING = {
    1: "Straight Flush",
    2: "Four of a Kind",
    3: "Full House",
    4: "Flush",
    5: "Straight",
    6: "Three of a Kind",
    7: "Two Pair",
    8: "Pair",
    9: "High Card",
}

# Straight rank patterns, best first. The wheel (A-2-3-4-5) is last.
STRAIGHT_PATTERNS = (
    0b1111100000000,  # A-K-Q-J-T
    0b0111110000000,
    0b0011111000000,
    0b0001111100000,
    0b0000111110000,
    0b0000011111000,
    0b0000001111100,
    0b0000000111110,
    0b0000000011111,  # 6-5-4-3-2
    0b1000000001111,  # 5-4-3-2-A
)

# Perfect hash over prime products of paired hands
HASH_OFFSET = 0xE91AAA35
HASH_ADJUST_SIZE = 512
HASH_ADJUST_MASK = HASH_ADJUST_SIZE - 1
HASH_VALUES_SIZE = 8192
UINT32_MASK = 0xFFFFFFFF

# Number of distinct prime products among paired hands
NUM_PAIRED_PRODUCTS = 4888
