"""
Command line wrapper: evaluate hands and export the lookup table asset.

    python -m pokerrank eval "Kd 5s Jc Ah Qc"
    python -m pokerrank build-tables tables.npz
"""

import argparse
import logging
import sys
from typing import List, Optional

from .errors import PokerRankError
from .evaluator import hand_description
from .hand import Hand
from .tables import save_tables


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pokerrank", description="5-card poker hand ranks")
    parser.add_argument("-v", "--verbose", action="store_true", help="log table loading")
    sub = parser.add_subparsers(dest="command", required=True)

    p_eval = sub.add_parser("eval", help="rank one or more hands")
    p_eval.add_argument("hands", nargs="+", help='five cards, e.g. "Kd 5s Jc Ah Qc"')

    p_build = sub.add_parser("build-tables", help="write the lookup table asset")
    p_build.add_argument("output", help="destination .npz file")
    return parser


def _cmd_eval(args) -> int:
    status = 0
    for hand_str in args.hands:
        try:
            hand = Hand.from_string(hand_str)
        except PokerRankError as e:
            print(f"{hand_str}: {type(e).__name__}: {e}", file=sys.stderr)
            status = 1
            continue
        rank = hand.evaluate()
        print(f"{hand} {rank} {hand_description(rank)}")
    return status


def _cmd_build_tables(args) -> int:
    digest = save_tables(args.output)
    print(f"{args.output} sha256:{digest}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    if args.command == "eval":
        return _cmd_eval(args)
    return _cmd_build_tables(args)
