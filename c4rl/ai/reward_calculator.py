"""
reward_calculator.py - Shaped rewards for non-terminal self-play moves

Terminal moves are scored by the environment (win 1.0, draw 0.0). For every
other move the mover is punished for handing the opponent an immediate win
and mildly rewarded for creating one of its own.
"""

from typing import Dict, Tuple

from c4rl.game.board import Board
from c4rl.utils import Player


class RewardCalculator:
    """Calculates the shaped reward of a position just after a move."""

    def __init__(self, reward_win: float = 1.0, reward_draw: float = 0.0,
                 penalty_allow_win: float = -0.9, reward_create_threat: float = 0.2):
        self.reward_win = reward_win
        self.reward_draw = reward_draw
        self.penalty_allow_win = penalty_allow_win
        self.reward_create_threat = reward_create_threat

    def calculate_reward(self, board: Board, mover: Player) -> Tuple[float, Dict[str, float]]:
        """
        Reward for mover after its move left board in a non-terminal state.

        Returns:
            (reward, components) where components names each contributing term
        """
        components = {}
        reward = 0.0

        if board.count_immediate_wins(mover.other()) > 0:
            components['allows_win'] = self.penalty_allow_win
            reward += self.penalty_allow_win

        if board.count_immediate_wins(mover) > 0:
            components['creates_threat'] = self.reward_create_threat
            reward += self.reward_create_threat

        return reward, components
