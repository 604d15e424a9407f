"""
agent.py - Linear TD(lambda) agent for Connect Four

The agent values a position as the dot product of a weight vector with the
features of extract_features, from the point of view of the player to move.
Moves are chosen in two stages:

1. immediate_tactics: take a winning column, else block the opponent's.
   This always runs, during training too, and ignores epsilon.
2. Epsilon-greedy over evaluate_move, a 1-ply or 2-ply lookahead on the
   learned value.

Training is self-play on a ConnectFourEnv with per-episode eligibility
traces; no experience is kept between episodes.
"""

import math
import random
from typing import Dict, NamedTuple, Optional

import numpy as np

from c4rl.ai.features import (NUM_FEATURES, CENTER_DIFF, MY_THREE_PLAYABLE,
                              OPP_THREE_PLAYABLE, MY_IMMEDIATE_WINS,
                              OPP_IMMEDIATE_WINS, describe_features,
                              extract_features)
from c4rl.ai.persistence import load_weights, save_weights
from c4rl.debug import debug, DebugLevel
from c4rl.game.board import Board
from c4rl.game.rules import ConnectFourEnv
from c4rl.utils import COLS, COLUMN_ORDER, FALLBACK_COLUMN, GameResult, Player

# Starting weights; only the strongest tactical signals are seeded
INITIAL_WEIGHTS = {
    CENTER_DIFF: 0.3,
    MY_THREE_PLAYABLE: 2.0,
    OPP_THREE_PLAYABLE: -2.5,
    MY_IMMEDIATE_WINS: 3.0,
    OPP_IMMEDIATE_WINS: -3.5,
}

WEIGHT_LIMIT = 50.0
EPSILON_FLOOR = 0.02
TRAINING_SEARCH_DEPTH = 1


def default_weights() -> np.ndarray:
    weights = np.zeros(NUM_FEATURES, dtype=np.float64)
    for index, value in INITIAL_WEIGHTS.items():
        weights[index] = value
    return weights


class EpisodeResult(NamedTuple):
    winner: Optional[Player]
    length: int
    first_player: Player
    epsilon: float
    mean_abs_delta: float


class LinearTDAgent:
    """
    Agent with a linear value function trained by TD(lambda) self-play.
    """

    def __init__(self, alpha: float = 0.004,
                 gamma: float = 0.99,
                 lambd: float = 0.85,
                 epsilon: float = 0.25,
                 weights: Optional[np.ndarray] = None,
                 rng: Optional[random.Random] = None):
        """
        Args:
            alpha: Learning rate
            gamma: Discount factor
            lambd: Eligibility trace decay
            epsilon: Default exploration rate, and the start of the
                training schedule
            weights: Initial weights (defaults to INITIAL_WEIGHTS)
            rng: Random source for exploration
        """
        self.alpha = alpha
        self.gamma = gamma
        self.lambd = lambd
        self.epsilon = epsilon
        self.rng = rng if rng is not None else random.Random()

        if weights is None:
            self.weights = default_weights()
        else:
            self.weights = np.array(weights, dtype=np.float64)
            if self.weights.shape != (NUM_FEATURES,):
                raise ValueError(f"Expected {NUM_FEATURES} weights, got shape {self.weights.shape}")

    def reset_weights(self):
        self.weights = default_weights()

    # --- evaluation ---

    def value(self, board: Board, player_to_move: Player) -> float:
        """Estimated value of board for the player about to move."""
        return float(np.dot(self.weights, extract_features(board, player_to_move)))

    def immediate_tactics(self, board: Board, player: Player) -> Optional[int]:
        """First winning column for player, else the first column blocking an opponent win."""
        wins = board.winning_columns(player)
        if wins:
            return wins[0]

        blocks = board.winning_columns(player.other())
        if blocks:
            return blocks[0]
        return None

    def evaluate_move(self, board: Board, player: Player, col: int,
                      search_depth: int = 2) -> float:
        """
        Score playing col for player with a short lookahead.

        A winning move scores +inf. With search_depth <= 1 the score is the
        negated value of the resulting position for the opponent. Deeper, the
        opponent's replies are enumerated: any winning reply makes the move
        -inf, otherwise the worst resulting value for player is returned.
        The board is restored before returning.
        """
        opponent = player.other()
        row = board.place(col, player)
        if row is None:
            return -math.inf

        try:
            if board.is_line(player, row, col):
                return math.inf

            if search_depth <= 1:
                return -self.value(board, opponent)

            worst = math.inf
            has_reply = False
            for reply in range(COLS):
                reply_row = board.place(reply, opponent)
                if reply_row is None:
                    continue
                has_reply = True
                loses = board.is_line(opponent, reply_row, reply)
                if not loses:
                    worst = min(worst, self.value(board, player))
                board.remove(reply_row, reply)
                if loses:
                    return -math.inf

            return worst if has_reply else 0.0
        finally:
            board.remove(row, col)

    def choose_move(self, board: Board, player: Player,
                    epsilon: Optional[float] = None,
                    search_depth: int = 2) -> int:
        """
        Select a column for player.

        Args:
            board: Current position; returned unchanged
            player: Side to move
            epsilon: Exploration rate for this call (None uses self.epsilon)
            search_depth: 1 or 2 ply lookahead for evaluate_move

        Returns:
            A legal column, or FALLBACK_COLUMN if the board is full
        """
        if board.is_full():
            return FALLBACK_COLUMN

        tactical = self.immediate_tactics(board, player)
        if tactical is not None:
            return tactical

        valid_moves = board.get_valid_moves()
        epsilon = self.epsilon if epsilon is None else epsilon
        if self.rng.random() < epsilon:
            return self.rng.choice(valid_moves)

        best_col = valid_moves[0]
        best_score = -math.inf
        for col in COLUMN_ORDER:
            if not board.is_valid_move(col):
                continue
            score = self.evaluate_move(board, player, col, search_depth)
            if score > best_score:
                best_score = score
                best_col = col

        return best_col

    # --- training ---

    def exploration_rate(self, game_index: int, games: int) -> float:
        """Linearly decayed epsilon for game_index of a run of games."""
        frac = 1.0 if games <= 1 else game_index / (games - 1)
        return self.epsilon + (EPSILON_FLOOR - self.epsilon) * frac

    def td_update(self, traces: np.ndarray, features: np.ndarray, delta: float):
        """Decay and accumulate traces in place, then move and clamp the weights."""
        traces *= self.gamma * self.lambd
        traces += features
        self.weights += self.alpha * delta * traces
        np.clip(self.weights, -WEIGHT_LIMIT, WEIGHT_LIMIT, out=self.weights)

    def play_training_episode(self, env: ConnectFourEnv, epsilon: float,
                              seed: Optional[int] = None) -> EpisodeResult:
        """
        Play one self-play game on env, updating the weights every half-move.

        The starting side is drawn by env.reset. Each mover's TD target is
        1.0 for a win, 0.0 for a draw, and otherwise the shaped reward plus
        the discounted negated value of the position for the opponent.
        """
        env.reset(seed=seed)
        traces = np.zeros(NUM_FEATURES, dtype=np.float64)
        first_player = env.current_player
        length = 0
        abs_delta = 0.0

        while True:
            mover = env.current_player
            features = extract_features(env.board, mover)
            value_before = float(np.dot(self.weights, features))

            col = self.choose_move(env.board, mover, epsilon=epsilon,
                                   search_depth=TRAINING_SEARCH_DEPTH)
            _, reward, terminated, truncated, _ = env.step(col)
            if truncated:
                debug.warning(f"Episode truncated by column {col}", "agent")
                break
            length += 1

            if terminated:
                target = reward
            else:
                target = reward + self.gamma * -self.value(env.board, mover.other())

            delta = target - value_before
            self.td_update(traces, features, delta)
            abs_delta += abs(delta)

            if debug.is_enabled_for(DebugLevel.TRACE, "agent"):
                debug.trace(f"{mover.name} col {col} target {target:.3f} delta {delta:.3f} "
                            f"[{describe_features(features)}]", "agent")

            if terminated:
                break

        if env.result == GameResult.PLAYER_ONE_WIN:
            winner = Player.ONE
        elif env.result == GameResult.PLAYER_TWO_WIN:
            winner = Player.TWO
        else:
            winner = None

        return EpisodeResult(winner, length, first_player, epsilon,
                             abs_delta / length if length else 0.0)

    def train_selfplay(self, games: int, env: Optional[ConnectFourEnv] = None,
                       seed: Optional[int] = None) -> Dict[str, float]:
        """
        Train for games self-play episodes with a linearly decaying epsilon.

        Args:
            games: Number of episodes
            env: Environment to play on (a fresh one by default)
            seed: Seeds the environment RNG before the first episode

        Returns:
            Tallies of the run
        """
        env = env if env is not None else ConnectFourEnv()
        summary = {'games': games, 'wins_one': 0, 'wins_two': 0, 'draws': 0, 'moves': 0}

        for game_index in range(games):
            epsilon = self.exploration_rate(game_index, games)
            result = self.play_training_episode(env, epsilon,
                                                seed=seed if game_index == 0 else None)
            summary['moves'] += result.length
            if result.winner == Player.ONE:
                summary['wins_one'] += 1
            elif result.winner == Player.TWO:
                summary['wins_two'] += 1
            else:
                summary['draws'] += 1

        debug.debug(f"Self-play finished: {summary}", "agent")
        return summary

    # --- persistence ---

    def save(self, path: str) -> bool:
        return save_weights(self.weights, path)

    def load(self, path: str) -> bool:
        """
        Load weights from path. On any failure the agent falls back to its
        default weights and False is returned.
        """
        weights = load_weights(path)
        if weights is None:
            self.reset_weights()
            return False
        self.weights = weights
        return True

    @classmethod
    def from_file(cls, path: str, **kwargs) -> 'LinearTDAgent':
        agent = cls(**kwargs)
        agent.load(path)
        return agent
