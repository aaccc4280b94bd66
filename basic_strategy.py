from enum import Enum
from typing import Dict, Iterable, List, Optional, TextIO, Tuple, Union
import csv
import io
import logging

logger = logging.getLogger(__name__)

class Action(Enum):
    HIT = "H"
    STAND = "S"
    DOUBLE = "D"
    SPLIT = "P"

    @classmethod
    def from_symbol(cls, symbol: str) -> Optional["Action"]:
        """Map a chart cell to an action; only the first letter counts ("Dh" doubles)."""
        symbol = symbol.strip()
        if not symbol:
            return None
        try:
            return cls(symbol[0].upper())
        except ValueError:
            return None

DEALER_COLUMNS = [2, 3, 4, 5, 6, 7, 8, 9, 10, 1]

# Multi-deck, dealer hits soft 17, double after split allowed
DEFAULT_STRATEGY_CSV = """\
Hand,2,3,4,5,6,7,8,9,10,A
4,H,H,H,H,H,H,H,H,H,H
5,H,H,H,H,H,H,H,H,H,H
6,H,H,H,H,H,H,H,H,H,H
7,H,H,H,H,H,H,H,H,H,H
8,H,H,H,H,H,H,H,H,H,H
9,H,D,D,D,D,H,H,H,H,H
10,D,D,D,D,D,D,D,D,H,H
11,D,D,D,D,D,D,D,D,D,D
12,H,H,S,S,S,H,H,H,H,H
13,S,S,S,S,S,H,H,H,H,H
14,S,S,S,S,S,H,H,H,H,H
15,S,S,S,S,S,H,H,H,H,H
16,S,S,S,S,S,H,H,H,H,H
17,S,S,S,S,S,S,S,S,S,S
18,S,S,S,S,S,S,S,S,S,S
19,S,S,S,S,S,S,S,S,S,S
20,S,S,S,S,S,S,S,S,S,S
A2,H,H,H,D,D,H,H,H,H,H
A3,H,H,H,D,D,H,H,H,H,H
A4,H,H,D,D,D,H,H,H,H,H
A5,H,H,D,D,D,H,H,H,H,H
A6,H,D,D,D,D,H,H,H,H,H
A7,D,D,D,D,D,S,S,H,H,H
A8,S,S,S,S,D,S,S,S,S,S
A9,S,S,S,S,S,S,S,S,S,S
AA,P,P,P,P,P,P,P,P,P,P
TT,S,S,S,S,S,S,S,S,S,S
99,P,P,P,P,P,S,P,P,S,S
88,P,P,P,P,P,P,P,P,P,P
77,P,P,P,P,P,P,H,H,H,H
66,P,P,P,P,P,H,H,H,H,H
55,D,D,D,D,D,D,D,D,H,H
44,H,H,H,P,P,H,H,H,H,H
33,P,P,P,P,P,P,H,H,H,H
22,P,P,P,P,P,P,H,H,H,H
"""

def _parse_rank(label: str) -> Optional[int]:
    """Card label to chart rank: A -> 1, T/J/Q/K -> 10, digits as is."""
    label = label.strip().upper()
    if label == 'A':
        return 1
    if label in ('T', 'J', 'Q', 'K'):
        return 10
    if label.isdigit() and 2 <= int(label) <= 11:
        return 1 if int(label) == 11 else int(label)
    return None

def parse_hand_label(label: str) -> Optional[int]:
    """
    Convert a chart row label into a strategy key.

    "AA" -> 201, "TT" / "1010" / "88" -> 200 + rank, "A7" -> 107,
    "16" -> 16. "11" is hard eleven, never a pair.
    """
    label = label.strip().upper()
    if not label:
        return None
    if label == 'AA':
        return 201
    if label[0] == 'A':
        rank = _parse_rank(label[1:])
        return 100 + rank if rank and rank != 1 else None
    half = len(label) // 2
    if len(label) % 2 == 0 and label[:half] == label[half:] and label != '11':
        rank = _parse_rank(label[:half])
        return 200 + rank if rank else None
    if label.isdigit():
        return int(label)
    return None

class StrategyTable:
    """
    Decision chart keyed by (strategy key, dealer up-card rank).

    Strategy keys come from `Hand.get_strategy_key`; dealer ranks are 2..10
    with the Ace as 1.
    """

    def __init__(self, entries: Optional[Dict[Tuple[int, int], Action]] = None):
        self.entries: Dict[Tuple[int, int], Action] = dict(entries or {})

    def __len__(self):
        return len(self.entries)

    @classmethod
    def default(cls) -> "StrategyTable":
        table = cls()
        table.load(io.StringIO(DEFAULT_STRATEGY_CSV))
        return table

    @classmethod
    def from_file(cls, path: str, delimiter: str = ',') -> "StrategyTable":
        table = cls()
        with open(path, 'r', newline='') as strategy_csv:
            table.load(strategy_csv, delimiter=delimiter)
        logger.info(f"Loaded {len(table)} strategy entries from {path}")
        return table

    def load(self, source: Union[TextIO, Iterable[str]], delimiter: str = ',') -> int:
        """
        Read a chart from an open file or any iterable of lines.

        The first row holds the dealer up-card labels; each following row
        holds a hand label and one action letter per dealer column. Cells
        with unknown letters are skipped. Returns the number of cells loaded.
        """
        reader = csv.reader(source, delimiter=delimiter)
        header = next(reader, None)
        if header is None:
            return 0
        columns = [_parse_rank(label) for label in header[1:]]
        if not columns or None in columns:
            logger.warning(f"Unrecognised strategy header {header!r}; assuming columns 2-10, A")
            columns = DEALER_COLUMNS

        loaded = 0
        for row in reader:
            if not row or not row[0].strip():
                continue
            key = parse_hand_label(row[0])
            if key is None:
                logger.warning(f"Skipping strategy row with unrecognised hand {row[0]!r}")
                continue
            for dealer_rank, cell in zip(columns, row[1:]):
                action = Action.from_symbol(cell)
                if action is None:
                    continue
                self.entries[(key, dealer_rank)] = action
                loaded += 1
        return loaded

    def get_action(self, strategy_key: int, dealer_up_rank: int) -> Action:
        action = self.entries.get((strategy_key, dealer_up_rank))
        if action is None:
            # Conservative fallback: an incomplete chart must never loop on hits
            logger.debug(f"No strategy entry for hand {strategy_key} vs dealer {dealer_up_rank}; standing")
            return Action.STAND
        return action

    def row_keys(self) -> List[int]:
        return sorted({key for key, _ in self.entries})

    def print_tables(self):
        """Print the chart in the same layout it is loaded from"""
        print("\nLegend:")
        print("H   = Hit")
        print("S   = Stand")
        print("D   = Double (hit once)")
        print("P   = Split")

        sections = [
            ("Hard Totals", [k for k in self.row_keys() if k < 100], str),
            ("Soft Totals", [k for k in self.row_keys() if 100 < k < 200], lambda k: f"A,{k - 100}"),
            ("Pairs", [k for k in self.row_keys() if k > 200],
             lambda k: "A,A" if k == 201 else ("T,T" if k == 210 else f"{k - 200},{k - 200}")),
        ]
        for title, keys, label in sections:
            print(f"\n{title}:")
            print("       2  3  4  5  6  7  8  9  T  A")
            for key in sorted(keys, reverse=True):
                row = f"{label(key):>5}"
                for dealer in DEALER_COLUMNS:
                    action = self.entries.get((key, dealer))
                    row += f"  {action.value if action else '-'}"
                print(row)
