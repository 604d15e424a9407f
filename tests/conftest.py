"""Shared board positions and helpers for the c4rl test suite."""

import random

import pytest

from c4rl.game.board import Board
from c4rl.utils import Player

# 42 pieces, no four in a row anywhere
FULL_DRAWN_ROWS = [
    "XXOOXXO",
    "OOXXOOX",
    "XXOOXXO",
    "OOXXOOX",
    "XXOOXXO",
    "OOXXOOX",
]

# X to move; X wins only at column 4 (column 0 is capped by O)
X_WINS_AT_4_ROWS = [
    ".......",
    ".......",
    ".......",
    ".......",
    ".O.....",
    "OXXX...",
]

# O to move; O has no win, X threatens exactly column 4
O_MUST_BLOCK_4_ROWS = [
    ".......",
    ".......",
    ".......",
    ".......",
    ".OXO...",
    "OXXX...",
]


def random_position(rng: random.Random, plies: int) -> Board:
    """Alternate random drops starting with X; the result may contain lines."""
    board = Board()
    player = Player.ONE
    for _ in range(plies):
        valid = board.get_valid_moves()
        if not valid:
            break
        board.place(rng.choice(valid), player)
        player = player.other()
    return board


def random_open_position(rng: random.Random, plies: int) -> Board:
    """Random position in which neither side has a line yet."""
    while True:
        board = random_position(rng, plies)
        if not board.has_won(Player.ONE) and not board.has_won(Player.TWO):
            return board


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def full_board():
    return Board.from_rows(FULL_DRAWN_ROWS)


@pytest.fixture
def win_board():
    return Board.from_rows(X_WINS_AT_4_ROWS)


@pytest.fixture
def block_board():
    return Board.from_rows(O_MUST_BLOCK_4_ROWS)
