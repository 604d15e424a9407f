"""
utils.py - Shared constants, enumerations and helpers for c4rl

This module holds the board geometry, the player/result enumerations,
the difficulty table consumed by the CLI, the precomputed list of
four-cell windows and the text renderer.
"""

from enum import Enum, auto
from typing import Iterable, List, Optional, Tuple

import numpy as np

# Board geometry
ROWS = 6
COLS = 7
CONNECT_N = 4
CENTER_COL = COLS // 2

# Center-first ordering; alpha-beta relies on it to cut early
COLUMN_ORDER = (3, 2, 4, 1, 5, 0, 6)

# Returned by move choosers when the board has no legal column
FALLBACK_COLUMN = 0


class Player(Enum):
    """Players, also used as cell states."""
    EMPTY = 0
    ONE = 1
    TWO = 2

    def other(self) -> 'Player':
        """Get the opposing player."""
        if self == Player.ONE:
            return Player.TWO
        elif self == Player.TWO:
            return Player.ONE
        return Player.EMPTY

    @property
    def symbol(self) -> str:
        return PIECE_SYMBOLS[self.value]

    def __str__(self):
        return self.symbol


PIECE_SYMBOLS = {0: '.', 1: 'X', 2: 'O'}


class GameResult(Enum):
    """Outcome of a game."""
    IN_PROGRESS = auto()
    PLAYER_ONE_WIN = auto()
    PLAYER_TWO_WIN = auto()
    DRAW = auto()

    def is_game_over(self) -> bool:
        return self != GameResult.IN_PROGRESS

    @classmethod
    def win_for(cls, player: Player) -> 'GameResult':
        return cls.PLAYER_ONE_WIN if player == Player.ONE else cls.PLAYER_TWO_WIN


class Difficulty(Enum):
    """Search depth (in plies) for each CPU difficulty tier."""
    EASY = 3
    NORMAL = 4
    HARD = 5
    EXPERT = 8

    @property
    def depth(self) -> int:
        return self.value

    @classmethod
    def from_name(cls, name: str) -> 'Difficulty':
        return cls[name.upper()]


class Direction(Enum):
    """Line orientations."""
    HORIZONTAL = auto()
    VERTICAL = auto()
    DIAGONAL_DOWN = auto()  # top-left to bottom-right
    DIAGONAL_UP = auto()  # bottom-left to top-right


# (row, col) step for each orientation; row 0 is the top of the board
DIRECTION_VECTORS = {
    Direction.HORIZONTAL: (0, 1),
    Direction.VERTICAL: (1, 0),
    Direction.DIAGONAL_DOWN: (1, 1),
    Direction.DIAGONAL_UP: (-1, 1),
}


def is_valid_position(row: int, col: int) -> bool:
    return 0 <= row < ROWS and 0 <= col < COLS


def _build_windows() -> Tuple[Tuple[Tuple[int, int], ...], ...]:
    windows = []
    for dr, dc in DIRECTION_VECTORS.values():
        for row in range(ROWS):
            for col in range(COLS):
                cells = tuple((row + i * dr, col + i * dc) for i in range(CONNECT_N))
                if all(is_valid_position(r, c) for r, c in cells):
                    windows.append(cells)
    return tuple(windows)


# Every run of four cells on the board, in all four orientations (69 in total)
WINDOWS = _build_windows()


def empty_grid() -> np.ndarray:
    return np.zeros((ROWS, COLS), dtype=np.int8)


# ANSI escapes for the colour renderer
COLORS = {
    Player.ONE: "\033[31m",
    Player.TWO: "\033[33m",
    "HIGHLIGHT": "\033[1;42m",
    "RESET": "\033[0m",
}


def render_board_ascii(grid: np.ndarray,
                       highlight: Optional[Iterable[Tuple[int, int]]] = None,
                       color: bool = False) -> str:
    """
    Render the board as text.

    Args:
        grid: ROWS x COLS array of cell values
        highlight: Cells to emphasise, typically the winning line
        color: Use ANSI colours for pieces and highlighted cells

    Returns:
        Multi-line string with column numbers underneath
    """
    marked = set(highlight or ())
    lines: List[str] = []
    border = "+" + "-" * (COLS * 2 + 1) + "+"
    lines.append(border)

    for row in range(ROWS):
        cells = []
        for col in range(COLS):
            player = Player(int(grid[row, col]))
            text = player.symbol
            if (row, col) in marked:
                text = f"{COLORS['HIGHLIGHT']}{text}{COLORS['RESET']}" if color else text.lower()
            elif color and player != Player.EMPTY:
                text = f"{COLORS[player]}{text}{COLORS['RESET']}"
            cells.append(text)
        lines.append("| " + " ".join(cells) + " |")

    lines.append(border)
    lines.append("  " + " ".join(str(col) for col in range(COLS)))
    return "\n".join(lines)
