"""
c4rl - Connect Four decision engines

This package provides two move choosers that share one board model:
a minimax search with alpha-beta pruning over a hand-tuned heuristic, and
a linear value-function agent trained by TD(lambda) self-play.
"""

__version__ = '0.2.0'
