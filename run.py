#!/usr/bin/env python3
"""
run.py - Entry point for the c4rl command-line interface

Examples:
    python run.py play --mode hvc --difficulty hard --color
    python run.py train --games 20000 --model models/c4rl_model.bin
    python run.py evaluate --model models/c4rl_model.bin --depth 4
"""

import sys

from c4rl.interfaces.cli import main

if __name__ == "__main__":
    sys.exit(main())
