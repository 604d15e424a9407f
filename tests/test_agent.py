"""Tests for the linear TD(lambda) agent."""

import math
import random

import numpy as np
import pytest

from c4rl.ai import features as F
from c4rl.ai.agent import (EPSILON_FLOOR, WEIGHT_LIMIT, LinearTDAgent,
                           default_weights)
from c4rl.ai.features import NUM_FEATURES, extract_features
from c4rl.ai.reward_calculator import RewardCalculator
from c4rl.game.board import Board
from c4rl.game.rules import ConnectFourEnv
from c4rl.utils import FALLBACK_COLUMN, GameResult, Player

from conftest import FULL_DRAWN_ROWS, X_WINS_AT_4_ROWS


def bottom_row(pattern):
    return Board.from_rows(["......."] * 5 + [pattern])


class PresetEnv(ConnectFourEnv):
    """Environment whose episodes start from a fixed position and side."""

    def __init__(self, board, first_player):
        super().__init__()
        self.preset = board
        self.first_player = first_player

    def reset(self, seed=None, options=None):
        super().reset(seed=seed, options={'first_player': self.first_player})
        self.board = self.preset.copy()
        return self._get_observation(), self._get_info()


@pytest.fixture
def agent():
    return LinearTDAgent(rng=random.Random(99))


class TestConstruction:
    def test_defaults(self, agent):
        assert agent.alpha == 0.004
        assert agent.gamma == 0.99
        assert agent.lambd == 0.85
        assert agent.epsilon == 0.25

    def test_initial_weights(self):
        w = default_weights()
        assert w.shape == (NUM_FEATURES,)
        assert w[F.CENTER_DIFF] == 0.3
        assert w[F.MY_THREE_PLAYABLE] == 2.0
        assert w[F.OPP_THREE_PLAYABLE] == -2.5
        assert w[F.MY_IMMEDIATE_WINS] == 3.0
        assert w[F.OPP_IMMEDIATE_WINS] == -3.5
        assert np.count_nonzero(w) == 5

    def test_rejects_wrong_weight_count(self):
        with pytest.raises(ValueError):
            LinearTDAgent(weights=np.zeros(NUM_FEATURES + 1))

    def test_value_is_dot_product(self, agent):
        b = bottom_row("XXX....")
        expected = float(np.dot(agent.weights, extract_features(b, Player.ONE)))
        assert agent.value(b, Player.ONE) == pytest.approx(expected)
        # one immediate win and one playable three for X
        assert agent.value(b, Player.ONE) == pytest.approx(2.0 + 3.0)


class TestMoveSelection:
    def test_takes_win_even_when_exploring(self, win_board):
        agent = LinearTDAgent(epsilon=1.0, rng=random.Random(0))
        for _ in range(10):
            assert agent.choose_move(win_board, Player.ONE) == 4

    def test_blocks_even_when_exploring(self, block_board):
        agent = LinearTDAgent(epsilon=1.0, rng=random.Random(0))
        for _ in range(10):
            assert agent.choose_move(block_board, Player.TWO) == 4

    def test_win_preferred_over_block(self):
        b = Board.from_rows([
            ".......",
            ".......",
            ".......",
            "O......",
            "O......",
            "OXXX...",
        ])
        assert LinearTDAgent().immediate_tactics(b, Player.TWO) == 0
        assert LinearTDAgent().immediate_tactics(b, Player.ONE) == 4

    def test_no_tactics_on_quiet_board(self, agent):
        assert agent.immediate_tactics(Board(), Player.ONE) is None

    def test_full_board_fallback(self, agent, full_board):
        assert agent.choose_move(full_board, Player.ONE) == FALLBACK_COLUMN

    def test_exploration_is_legal(self):
        agent = LinearTDAgent(rng=random.Random(3))
        board = Board()
        for i in range(6):
            board.place(0, Player.ONE if i % 2 == 0 else Player.TWO)
        for _ in range(20):
            col = agent.choose_move(board, Player.TWO, epsilon=1.0)
            assert col in board.get_valid_moves()

    def test_greedy_is_deterministic(self, agent):
        board = bottom_row("...X...")
        moves = {agent.choose_move(board, Player.TWO, epsilon=0.0) for _ in range(5)}
        assert len(moves) == 1

    def test_greedy_prefers_centre_on_empty_board(self, agent):
        assert agent.choose_move(Board(), Player.ONE, epsilon=0.0) == 3
        assert agent.choose_move(Board(), Player.ONE, epsilon=0.0, search_depth=1) == 3

    def test_board_is_restored(self, agent, block_board):
        before = block_board.grid.copy()
        agent.choose_move(block_board, Player.TWO, epsilon=0.0)
        for col in range(7):
            agent.evaluate_move(block_board, Player.TWO, col)
        assert np.array_equal(block_board.grid, before)


class TestEvaluateMove:
    def test_winning_move(self, agent, win_board):
        assert agent.evaluate_move(win_board, Player.ONE, 4) == math.inf
        assert agent.evaluate_move(win_board, Player.ONE, 4, search_depth=1) == math.inf

    def test_illegal_move(self, agent, full_board):
        assert agent.evaluate_move(full_board, Player.ONE, 0) == -math.inf
        assert agent.evaluate_move(Board(), Player.ONE, 9) == -math.inf

    def test_move_allowing_win_is_minus_inf(self, agent, block_board):
        assert agent.evaluate_move(block_board, Player.TWO, 6) == -math.inf

    def test_one_ply_is_negated_opponent_value(self, agent):
        board = Board()
        score = agent.evaluate_move(board, Player.ONE, 3, search_depth=1)
        board.place(3, Player.ONE)
        assert score == pytest.approx(-agent.value(board, Player.TWO))

    def test_no_reply_scores_zero(self, agent, full_board):
        full_board.remove(0, 5)
        assert agent.evaluate_move(full_board, Player.ONE, 5) == 0.0


class TestLearning:
    def test_exploration_schedule(self, agent):
        assert agent.exploration_rate(0, 100) == pytest.approx(0.25)
        assert agent.exploration_rate(99, 100) == pytest.approx(EPSILON_FLOOR)
        rates = [agent.exploration_rate(i, 10) for i in range(10)]
        assert rates == sorted(rates, reverse=True)
        assert agent.exploration_rate(0, 1) == pytest.approx(EPSILON_FLOOR)

    def test_td_update(self):
        agent = LinearTDAgent(alpha=0.1, gamma=0.5, lambd=0.5,
                              weights=np.zeros(NUM_FEATURES))
        traces = np.zeros(NUM_FEATURES)
        x = np.zeros(NUM_FEATURES)
        x[0] = 1.0
        x[1] = 2.0

        agent.td_update(traces, x, 1.0)
        assert traces[0] == pytest.approx(1.0)
        assert agent.weights[0] == pytest.approx(0.1)
        assert agent.weights[1] == pytest.approx(0.2)

        agent.td_update(traces, x, -1.0)
        assert traces[0] == pytest.approx(1.25)
        assert traces[1] == pytest.approx(2.5)
        assert agent.weights[0] == pytest.approx(0.1 - 0.125)
        assert agent.weights[1] == pytest.approx(0.2 - 0.25)

    def test_weights_are_clamped(self):
        agent = LinearTDAgent(alpha=1.0, weights=np.zeros(NUM_FEATURES))
        traces = np.zeros(NUM_FEATURES)
        agent.td_update(traces, np.full(NUM_FEATURES, 10.0), 1000.0)
        assert np.all(agent.weights == WEIGHT_LIMIT)
        agent.td_update(traces, np.full(NUM_FEATURES, 10.0), -1e6)
        assert np.all(agent.weights == -WEIGHT_LIMIT)

    def test_training_episode(self, agent):
        env = ConnectFourEnv()
        result = agent.play_training_episode(env, epsilon=0.5, seed=4)
        assert 7 <= result.length <= 42
        assert result.first_player in (Player.ONE, Player.TWO)
        assert result.mean_abs_delta >= 0.0
        assert env.result.is_game_over()
        if result.winner is None:
            assert result.length == 42

    def test_train_selfplay(self, agent):
        before = agent.weights.copy()
        summary = agent.train_selfplay(5, seed=1)
        assert summary['games'] == 5
        assert summary['wins_one'] + summary['wins_two'] + summary['draws'] == 5
        assert summary['moves'] >= 5 * 7
        assert np.all(np.abs(agent.weights) <= WEIGHT_LIMIT)
        assert not np.array_equal(agent.weights, before)


class TestTemporalDifferenceTargets:
    def test_episode_matches_hand_computed_updates(self):
        seed, epsilon = 3, 0.3
        agent = LinearTDAgent(rng=random.Random(17))
        agent.play_training_episode(ConnectFourEnv(), epsilon, seed=seed)

        twin = LinearTDAgent(rng=random.Random(17))
        shaping = RewardCalculator()
        env = ConnectFourEnv()
        env.reset(seed=seed)
        traces = np.zeros(NUM_FEATURES)

        while True:
            mover = env.current_player
            f = extract_features(env.board, mover)
            v = float(np.dot(twin.weights, f))
            col = twin.choose_move(env.board, mover, epsilon=epsilon, search_depth=1)
            _, _, terminated, truncated, _ = env.step(col)
            assert not truncated

            if env.result == GameResult.win_for(mover):
                target = 1.0
            elif env.result == GameResult.DRAW:
                target = 0.0
            else:
                shaped, _ = shaping.calculate_reward(env.board, mover)
                opponent_value = float(np.dot(twin.weights,
                                              extract_features(env.board, mover.other())))
                target = shaped + twin.gamma * -opponent_value

            traces = twin.gamma * twin.lambd * traces + f
            twin.weights = np.clip(twin.weights + twin.alpha * (target - v) * traces,
                                   -WEIGHT_LIMIT, WEIGHT_LIMIT)
            if terminated:
                break

        assert np.allclose(agent.weights, twin.weights)

    def test_winning_move_has_no_bootstrap(self):
        board = Board.from_rows(X_WINS_AT_4_ROWS)
        agent = LinearTDAgent(rng=random.Random(0))
        f = extract_features(board, Player.ONE)
        v = float(np.dot(agent.weights, f))
        expected = agent.weights + agent.alpha * (1.0 - v) * f

        result = agent.play_training_episode(PresetEnv(board, Player.ONE), epsilon=1.0)
        assert result.winner == Player.ONE
        assert result.length == 1
        assert np.allclose(agent.weights, expected)

    def test_drawing_move_targets_zero(self):
        board = Board.from_rows(FULL_DRAWN_ROWS)
        board.remove(0, 6)
        agent = LinearTDAgent(rng=random.Random(0))
        f = extract_features(board, Player.TWO)
        v = float(np.dot(agent.weights, f))
        expected = agent.weights + agent.alpha * (0.0 - v) * f

        result = agent.play_training_episode(PresetEnv(board, Player.TWO), epsilon=0.0)
        assert result.winner is None
        assert result.length == 1
        assert np.allclose(agent.weights, expected)
