"""
c4rl.interfaces - User-facing front ends

The command-line interface lives in c4rl.interfaces.cli.
"""

__all__ = []
