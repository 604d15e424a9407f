"""
c4rl.ai - Learning agent for Connect Four

A linear value function over 14 tactical features, trained by TD(lambda)
self-play, plus its binary model format and training supervisor.
"""

# Submodules are imported directly (c4rl.ai.agent, c4rl.ai.training) to keep
# c4rl.game.rules free of an import cycle through this package.
__all__ = []
