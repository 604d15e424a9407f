"""
c4rl.data - Training job and model registry

JSON records of training runs and the model files they produced.
"""

__all__ = []
