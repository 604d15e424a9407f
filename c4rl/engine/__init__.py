"""
c4rl.engine - Adversarial search for Connect Four

Depth-limited minimax with alpha-beta pruning over a hand-tuned heuristic.
"""

from c4rl.engine.heuristic import evaluate_position
from c4rl.engine.minimax import MinimaxPlayer

__all__ = ['MinimaxPlayer', 'evaluate_position']
