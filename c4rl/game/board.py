"""
board.py - Board representation and core mechanics for Connect Four

The Board is plain state plus pure queries. It does not know whose turn it
is; callers pass the player explicitly. Search code mutates it with the
place/remove pair and must restore every cell it touches.
"""

from typing import Iterable, List, Optional, Tuple

import numpy as np

from c4rl.utils import (ROWS, COLS, CONNECT_N, DIRECTION_VECTORS, WINDOWS,
                        PIECE_SYMBOLS, Player, empty_grid, is_valid_position,
                        render_board_ascii)

_SYMBOL_VALUES = {symbol: value for value, symbol in PIECE_SYMBOLS.items()}


class Board:
    """
    A 6x7 Connect Four grid. Row 0 is the top row, row 5 the bottom row.
    """

    def __init__(self, grid: Optional[np.ndarray] = None):
        if grid is None:
            self.grid = empty_grid()
        else:
            self.grid = np.array(grid, dtype=np.int8)
            if self.grid.shape != (ROWS, COLS):
                raise ValueError(f"Board grid must be {ROWS}x{COLS}, got {self.grid.shape}")

    @classmethod
    def from_rows(cls, rows: Iterable[str]) -> 'Board':
        """
        Build a board from text rows, top row first.

        Each row uses '.' for empty, 'X' for Player.ONE and 'O' for Player.TWO.
        Spaces are ignored.
        """
        rows = [row.replace(" ", "") for row in rows]
        if len(rows) != ROWS or any(len(row) != COLS for row in rows):
            raise ValueError(f"Expected {ROWS} rows of {COLS} cells")

        grid = empty_grid()
        for r, row in enumerate(rows):
            for c, symbol in enumerate(row.upper()):
                if symbol not in _SYMBOL_VALUES:
                    raise ValueError(f"Unknown cell symbol {symbol!r}")
                grid[r, c] = _SYMBOL_VALUES[symbol]
        return cls(grid)

    def reset(self):
        self.grid = empty_grid()

    def copy(self) -> 'Board':
        return Board(self.grid.copy())

    def mirror(self) -> 'Board':
        """Return the board reflected left to right."""
        return Board(self.grid[:, ::-1].copy())

    def cell(self, row: int, col: int) -> Player:
        return Player(int(self.grid[row, col]))

    # --- moves ---

    def landing_row(self, col: int) -> Optional[int]:
        """Lowest empty row of a column, or None if full or out of range."""
        if not 0 <= col < COLS:
            return None
        for row in range(ROWS - 1, -1, -1):
            if self.grid[row, col] == Player.EMPTY.value:
                return row
        return None

    def is_valid_move(self, col: int) -> bool:
        return 0 <= col < COLS and self.grid[0, col] == Player.EMPTY.value

    def get_valid_moves(self) -> List[int]:
        return [col for col in range(COLS) if self.grid[0, col] == Player.EMPTY.value]

    def place(self, col: int, player: Player) -> Optional[int]:
        """
        Drop a piece for player into col.

        Returns:
            The landing row, or None if the move is not legal
        """
        row = self.landing_row(col)
        if row is None:
            return None
        self.grid[row, col] = player.value
        return row

    def remove(self, row: int, col: int):
        """Clear a cell; the undo half of place()."""
        self.grid[row, col] = Player.EMPTY.value

    def is_full(self) -> bool:
        return not (self.grid[0] == Player.EMPTY.value).any()

    def piece_count(self) -> int:
        return int(np.count_nonzero(self.grid))

    def is_playable(self, row: int, col: int) -> bool:
        """An empty cell the next drop in its column would fill."""
        if not is_valid_position(row, col) or self.grid[row, col] != Player.EMPTY.value:
            return False
        return row == ROWS - 1 or self.grid[row + 1, col] != Player.EMPTY.value

    # --- lines ---

    def _count_direction(self, value: int, row: int, col: int, dr: int, dc: int) -> int:
        count = 0
        while 0 <= row < ROWS and 0 <= col < COLS and self.grid[row, col] == value:
            count += 1
            row += dr
            col += dc
        return count

    def is_line(self, player: Player, row: int, col: int) -> bool:
        """
        Check whether player has four in a row through (row, col).

        Counts outward in both directions of each orientation starting at the
        anchor; the anchor is counted twice, hence the -1.
        """
        value = player.value
        for dr, dc in DIRECTION_VECTORS.values():
            run = (self._count_direction(value, row, col, dr, dc)
                   + self._count_direction(value, row, col, -dr, -dc) - 1)
            if run >= CONNECT_N:
                return True
        return False

    def get_winning_line(self, row: int, col: int) -> List[Tuple[int, int]]:
        """Cells of the line through (row, col), or [] if there is none."""
        value = self.grid[row, col]
        if value == Player.EMPTY.value:
            return []

        for dr, dc in DIRECTION_VECTORS.values():
            positions = [(row, col)]
            for sign in (1, -1):
                r, c = row + sign * dr, col + sign * dc
                while is_valid_position(r, c) and self.grid[r, c] == value:
                    positions.append((r, c))
                    r += sign * dr
                    c += sign * dc
            if len(positions) >= CONNECT_N:
                return sorted(positions)
        return []

    def has_won(self, player: Player) -> bool:
        """Full scan for any line of player; use is_line when the last move is known."""
        cells = self.grid.tolist()
        value = player.value
        for window in WINDOWS:
            if all(cells[r][c] == value for r, c in window):
                return True
        return False

    def winning_columns(self, player: Player) -> List[int]:
        """Columns where player's next drop completes a line."""
        columns = []
        for col in range(COLS):
            row = self.place(col, player)
            if row is None:
                continue
            if self.is_line(player, row, col):
                columns.append(col)
            self.remove(row, col)
        return columns

    def count_immediate_wins(self, player: Player) -> int:
        return len(self.winning_columns(player))

    # --- display ---

    def render(self, highlight=None, color: bool = False) -> str:
        return render_board_ascii(self.grid, highlight=highlight, color=color)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        rows = ["".join(self.cell(r, c).symbol for c in range(COLS)) for r in range(ROWS)]
        return f"Board.from_rows({rows!r})"
