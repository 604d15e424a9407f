"""
features.py - Feature extraction for the linear value function

extract_features maps a board and the player to move onto a fixed vector
of NUM_FEATURES floats. Only "clean" windows (pieces of a single side) are
counted, and a window's empty cells are checked for gravity playability.
"""

from typing import List

import numpy as np

from c4rl.game.board import Board
from c4rl.utils import ROWS, CENTER_COL, WINDOWS, Player

NUM_FEATURES = 14

# Feature indices
BIAS = 0
CENTER_DIFF = 1
MY_THREE_PLAYABLE = 2
MY_THREE = 3
MY_TWO_PLAYABLE = 4
MY_TWO = 5
OPP_THREE_PLAYABLE = 6
OPP_THREE = 7
OPP_TWO_PLAYABLE = 8
OPP_TWO = 9
MY_IMMEDIATE_WINS = 10
OPP_IMMEDIATE_WINS = 11
MY_ONE = 12
OPP_ONE = 13

FEATURE_NAMES = (
    "bias", "center_diff",
    "my_3+1_playable", "my_3+1", "my_2+2_playable", "my_2+2",
    "opp_3+1_playable", "opp_3+1", "opp_2+2_playable", "opp_2+2",
    "my_immediate_wins", "opp_immediate_wins",
    "my_1+3", "opp_1+3",
)

EMPTY = Player.EMPTY.value

# (three playable, three, two playable, two, one) slots per side
_MY_SLOTS = (MY_THREE_PLAYABLE, MY_THREE, MY_TWO_PLAYABLE, MY_TWO, MY_ONE)
_OPP_SLOTS = (OPP_THREE_PLAYABLE, OPP_THREE, OPP_TWO_PLAYABLE, OPP_TWO, OPP_ONE)


def _count_window(features: np.ndarray, count: int, playable: bool, slots) -> None:
    three_playable, three, two_playable, two, one = slots
    if count == 3:
        features[three_playable if playable else three] += 1.0
    elif count == 2:
        features[two_playable if playable else two] += 1.0
    elif count == 1:
        features[one] += 1.0


def _scan_windows(cells: List[List[int]], me: int, opp: int, features: np.ndarray) -> None:
    for window in WINDOWS:
        mine = theirs = 0
        playable = False
        for r, c in window:
            value = cells[r][c]
            if value == me:
                mine += 1
            elif value == opp:
                theirs += 1
            elif r == ROWS - 1 or cells[r + 1][c] != EMPTY:
                playable = True

        if theirs == 0:
            _count_window(features, mine, playable, _MY_SLOTS)
        if mine == 0:
            _count_window(features, theirs, playable, _OPP_SLOTS)


def extract_features(board: Board, me: Player) -> np.ndarray:
    """
    Build the feature vector of board from the point of view of me.

    Args:
        board: Position to describe; restored before returning
        me: The player to move

    Returns:
        float64 array of length NUM_FEATURES
    """
    opponent = me.other()
    cells = board.grid.tolist()
    features = np.zeros(NUM_FEATURES, dtype=np.float64)

    features[BIAS] = 1.0
    center = [row[CENTER_COL] for row in cells]
    features[CENTER_DIFF] = center.count(me.value) - center.count(opponent.value)

    _scan_windows(cells, me.value, opponent.value, features)

    features[MY_IMMEDIATE_WINS] = board.count_immediate_wins(me)
    features[OPP_IMMEDIATE_WINS] = board.count_immediate_wins(opponent)
    return features


def describe_features(features: np.ndarray) -> str:
    """One 'name=value' pair per non-zero feature, for trace logging."""
    return ", ".join(f"{name}={value:g}" for name, value in zip(FEATURE_NAMES, features) if value)
