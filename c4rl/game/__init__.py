"""
c4rl.game - Board model and game management for Connect Four

The board is imported here; the game manager and the Gymnasium environment
live in c4rl.game.rules, which depends on the reward shaping in c4rl.ai.
"""

from c4rl.game.board import Board

__all__ = ['Board']
