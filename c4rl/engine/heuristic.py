"""
heuristic.py - Static position evaluation for the minimax search

The score is an integer from one player's point of view. It combines:
1. Window patterns (3+1 and 2+2) over every run of four cells
2. Gravity: a 3+1 whose empty cell can be filled right now is worth more
3. Centre column control
4. Immediate winning columns, with a much larger term for double threats

Opponent patterns weigh more than our own so blocking beats attacking at
equal material. The magnitudes were tuned by play, not derived.
"""

from typing import List

from c4rl.game.board import Board
from c4rl.utils import ROWS, CENTER_COL, WINDOWS, Player

# Window scores: (self bonus, opponent penalty)
FOUR_SCORE = 100000
THREE_PLAYABLE_BONUS = 180
THREE_PLAYABLE_PENALTY = 220
THREE_BONUS = 120
THREE_PENALTY = 140
TWO_BONUS = 10
TWO_PENALTY = 10

CENTER_BONUS = 6

# Columns that win on the next drop
IMMEDIATE_WIN_BONUS = 400
IMMEDIATE_WIN_PENALTY = 500
DOUBLE_THREAT_BONUS = 5000
DOUBLE_THREAT_PENALTY = 6000

EMPTY = Player.EMPTY.value


def _is_playable(cells: List[List[int]], row: int, col: int) -> bool:
    return row == ROWS - 1 or cells[row + 1][col] != EMPTY


def _score_window(cells: List[List[int]], window, me: int, opp: int) -> int:
    mine = theirs = 0
    empty_cell = None
    for r, c in window:
        value = cells[r][c]
        if value == me:
            mine += 1
        elif value == opp:
            theirs += 1
        else:
            empty_cell = (r, c)

    empties = 4 - mine - theirs
    score = 0

    if mine == 4:
        score += FOUR_SCORE
    elif mine == 3 and empties == 1:
        if _is_playable(cells, *empty_cell):
            score += THREE_PLAYABLE_BONUS
        else:
            score += THREE_BONUS
    elif mine == 2 and empties == 2:
        score += TWO_BONUS

    if theirs == 4:
        score -= FOUR_SCORE
    elif theirs == 3 and empties == 1:
        if _is_playable(cells, *empty_cell):
            score -= THREE_PLAYABLE_PENALTY
        else:
            score -= THREE_PENALTY
    elif theirs == 2 and empties == 2:
        score -= TWO_PENALTY

    return score


def threat_score(my_wins: int, opp_wins: int) -> int:
    """Score for the number of columns each side could win with next move."""
    score = 0
    if my_wins >= 2:
        score += DOUBLE_THREAT_BONUS
    elif my_wins == 1:
        score += IMMEDIATE_WIN_BONUS

    if opp_wins >= 2:
        score -= DOUBLE_THREAT_PENALTY
    elif opp_wins == 1:
        score -= IMMEDIATE_WIN_PENALTY
    return score


def evaluate_position(board: Board, player: Player) -> int:
    """
    Heuristic value of a board for player. Pure and deterministic.

    Args:
        board: Position to score; it is restored before returning
        player: Side whose point of view the score takes

    Returns:
        Positive when the position favours player
    """
    opponent = player.other()
    me, opp = player.value, opponent.value
    cells = board.grid.tolist()

    score = CENTER_BONUS * sum(1 for row in cells if row[CENTER_COL] == me)

    for window in WINDOWS:
        score += _score_window(cells, window, me, opp)

    score += threat_score(board.count_immediate_wins(player),
                          board.count_immediate_wins(opponent))
    return score
