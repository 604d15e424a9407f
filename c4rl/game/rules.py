"""
rules.py - Game state management and Gymnasium environment for Connect Four

This module provides:
1. ConnectFourGame, a turn-tracking game manager used by the CLI and matches
2. ConnectFourEnv, a two-player self-play environment whose rewards are
   always from the point of view of the player who just moved
"""

from typing import Any, Dict, List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from c4rl.ai.reward_calculator import RewardCalculator
from c4rl.debug import debug
from c4rl.game.board import Board
from c4rl.utils import ROWS, COLS, GameResult, Player


class ConnectFourGame:
    """
    High-level game manager: board, side to move, result and history.

    Illegal moves are rejected, never corrected.
    """

    def __init__(self, first_player: Player = Player.ONE):
        self.first_player = first_player
        self.reset()

    def reset(self) -> None:
        self.board = Board()
        self.current_player = self.first_player
        self.result = GameResult.IN_PROGRESS
        self.history: List[Tuple[int, int, Player]] = []

    @property
    def last_move(self) -> Optional[Tuple[int, int]]:
        if not self.history:
            return None
        row, col, _ = self.history[-1]
        return row, col

    def make_move(self, column: int) -> bool:
        """
        Play column for the current player.

        Returns:
            True if the move was made, False if it is not legal
        """
        if self.result.is_game_over():
            debug.debug(f"Rejected move {column}: game is over", "game")
            return False

        row = self.board.place(column, self.current_player)
        if row is None:
            debug.debug(f"Rejected move {column}: not legal", "game")
            return False

        mover = self.current_player
        self.history.append((row, column, mover))

        if self.board.is_line(mover, row, column):
            self.result = GameResult.win_for(mover)
            debug.info(f"Player {mover} wins with column {column}", "game")
        elif self.board.is_full():
            self.result = GameResult.DRAW
            debug.info("Game ends in a draw", "game")
        else:
            self.current_player = mover.other()
        return True

    def undo_move(self) -> bool:
        if not self.history:
            return False

        row, column, mover = self.history.pop()
        self.board.remove(row, column)
        self.current_player = mover
        self.result = GameResult.IN_PROGRESS
        return True

    def is_game_over(self) -> bool:
        return self.result.is_game_over()

    def get_winner(self) -> Optional[Player]:
        if self.result == GameResult.PLAYER_ONE_WIN:
            return Player.ONE
        if self.result == GameResult.PLAYER_TWO_WIN:
            return Player.TWO
        return None

    def get_current_player(self) -> Player:
        return self.current_player

    def get_valid_moves(self) -> List[int]:
        if self.is_game_over():
            return []
        return self.board.get_valid_moves()

    def get_winning_line(self) -> List[Tuple[int, int]]:
        if self.get_winner() is None:
            return []
        return self.board.get_winning_line(*self.last_move)

    def render(self, color: bool = False) -> str:
        return self.board.render(highlight=self.get_winning_line(), color=color)


class ConnectFourEnv(gym.Env):
    """
    Two-player Connect Four environment following the Gymnasium interface.

    Both sides act through the same env; ``current_player`` says who moves
    next. Rewards belong to the player who made the move: reward_win for a
    winning move, reward_draw for filling the board, and a shaped reward
    from RewardCalculator otherwise.
    """

    metadata = {'render_modes': ['ascii', 'human']}

    def __init__(self, render_mode: Optional[str] = None,
                 reward_calculator: Optional[RewardCalculator] = None,
                 reward_invalid_move: float = -1.0):
        self.action_space = spaces.Discrete(COLS)
        self.observation_space = spaces.Box(low=0, high=2, shape=(ROWS, COLS), dtype=np.int8)

        self.render_mode = render_mode
        self.reward_calculator = reward_calculator or RewardCalculator()
        self.reward_invalid_move = reward_invalid_move

        self.board = Board()
        self.current_player = Player.ONE
        self.result = GameResult.IN_PROGRESS

    def reset(self, seed: Optional[int] = None,
              options: Optional[Dict[str, Any]] = None) -> Tuple[np.ndarray, Dict]:
        """
        Start a new game.

        Args:
            seed: Seeds the environment's RNG (used for the starting side)
            options: {'first_player': Player} forces the starting side

        Returns:
            Initial observation and info dictionary
        """
        super().reset(seed=seed)

        self.board.reset()
        self.result = GameResult.IN_PROGRESS
        first = (options or {}).get('first_player')
        if first is None:
            first = Player.ONE if self.np_random.integers(2) == 0 else Player.TWO
        self.current_player = first

        if self.render_mode == "human":
            self.render()
        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        """
        Play action for current_player.

        Returns:
            (observation, reward, terminated, truncated, info); an illegal
            action truncates the episode and leaves the board untouched
        """
        mover = self.current_player
        action = int(action)

        if self.result.is_game_over() or not self.board.is_valid_move(action):
            debug.warning(f"Invalid action {action} for {mover.name}", "env")
            info = self._get_info()
            info['invalid_move'] = True
            return self._get_observation(), self.reward_invalid_move, False, True, info

        row = self.board.place(action, mover)
        components: Dict[str, float] = {}
        terminated = True

        if self.board.is_line(mover, row, action):
            self.result = GameResult.win_for(mover)
            reward = self.reward_calculator.reward_win
        elif self.board.is_full():
            self.result = GameResult.DRAW
            reward = self.reward_calculator.reward_draw
        else:
            reward, components = self.reward_calculator.calculate_reward(self.board, mover)
            terminated = False
            self.current_player = mover.other()

        if self.render_mode == "human":
            self.render()

        info = self._get_info()
        info.update(mover=mover, row=row, column=action, reward_components=components)
        return self._get_observation(), reward, terminated, False, info

    def render(self) -> Optional[str]:
        if self.render_mode == "ascii":
            return self.board.render()
        if self.render_mode == "human":
            print(self.board.render())
        return None

    def _get_observation(self) -> np.ndarray:
        return self.board.grid.copy()

    def _get_info(self) -> Dict[str, Any]:
        return {
            'current_player': self.current_player,
            'valid_moves': self.board.get_valid_moves(),
            'game_result': self.result,
            'pieces': self.board.piece_count(),
        }
