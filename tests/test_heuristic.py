"""Tests for the static evaluator used at minimax leaves."""

import random

import numpy as np

from c4rl.engine import heuristic
from c4rl.engine.heuristic import evaluate_position, threat_score
from c4rl.game.board import Board
from c4rl.utils import Player

from conftest import random_open_position


def bottom_row(pattern):
    return Board.from_rows(["......."] * 5 + [pattern])


class TestEvaluatePosition:
    def test_empty_board_is_neutral(self):
        assert evaluate_position(Board(), Player.ONE) == 0
        assert evaluate_position(Board(), Player.TWO) == 0

    def test_center_piece(self):
        b = bottom_row("...X...")
        assert evaluate_position(b, Player.ONE) == 6
        assert evaluate_position(b, Player.TWO) == 0

    def test_open_three_with_single_threat(self):
        # 3+1 playable, a 2+2 and one immediate win
        b = bottom_row("XXX....")
        assert evaluate_position(b, Player.ONE) == 180 + 10 + 400
        assert evaluate_position(b, Player.TWO) == -(220 + 10 + 500)

    def test_double_threat(self):
        b = bottom_row(".XXX...")
        assert evaluate_position(b, Player.ONE) == 180 + 180 + 10 + 6 + 5000
        assert evaluate_position(b, Player.TWO) == -(220 + 220 + 10 + 6000)

    def test_unplayable_three(self):
        # X's gap at (4, 3) floats over an empty cell; O's gap at (5, 3) does not
        b = Board.from_rows([
            ".......",
            ".......",
            ".......",
            ".......",
            "XXX....",
            "OOO....",
        ])
        assert not b.is_playable(4, 3)
        assert evaluate_position(b, Player.ONE) == 120 + 10 - 220 - 10 - 500
        assert evaluate_position(b, Player.TWO) == 180 + 10 - 140 - 10 + 400

    def test_threat_score_table(self):
        assert threat_score(0, 0) == 0
        assert threat_score(1, 0) == heuristic.IMMEDIATE_WIN_BONUS
        assert threat_score(3, 0) == heuristic.DOUBLE_THREAT_BONUS
        assert threat_score(0, 1) == -heuristic.IMMEDIATE_WIN_PENALTY
        assert threat_score(0, 2) == -heuristic.DOUBLE_THREAT_PENALTY
        assert threat_score(2, 2) == heuristic.DOUBLE_THREAT_BONUS - heuristic.DOUBLE_THREAT_PENALTY

    def test_penalties_outweigh_bonuses(self):
        assert heuristic.THREE_PLAYABLE_PENALTY > heuristic.THREE_PLAYABLE_BONUS
        assert heuristic.THREE_PENALTY > heuristic.THREE_BONUS
        assert heuristic.IMMEDIATE_WIN_PENALTY > heuristic.IMMEDIATE_WIN_BONUS
        assert heuristic.DOUBLE_THREAT_PENALTY > heuristic.DOUBLE_THREAT_BONUS

    def test_mirror_invariant(self):
        rng = random.Random(3)
        for _ in range(25):
            b = random_open_position(rng, rng.randint(4, 24))
            for player in (Player.ONE, Player.TWO):
                assert evaluate_position(b, player) == evaluate_position(b.mirror(), player)

    def test_board_unchanged(self, block_board):
        before = block_board.grid.copy()
        evaluate_position(block_board, Player.TWO)
        assert np.array_equal(block_board.grid, before)

    def test_returns_int(self, win_board):
        assert isinstance(evaluate_position(win_board, Player.ONE), int)
