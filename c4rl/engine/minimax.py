"""
minimax.py - Minimax search with alpha-beta pruning for Connect Four

MinimaxPlayer searches to a fixed depth (the CPU difficulty) and scores
leaves with the heuristic evaluator. The search mutates the caller's board
in place and undoes every move before returning.
"""

import random
from typing import Dict, Optional, Tuple, Union

from c4rl.debug import debug
from c4rl.engine.heuristic import evaluate_position
from c4rl.game.board import Board
from c4rl.utils import COLUMN_ORDER, FALLBACK_COLUMN, Difficulty, Player

# Terminal scores; the remaining depth is added so quicker wins rank higher
WIN_SCORE = 500000
INF = 1000000

LastMove = Tuple[int, int, Player]


class MinimaxPlayer:
    """
    A Connect Four player using depth-limited minimax with alpha-beta pruning.

    Root ties are broken at random; everything below the root is
    deterministic.
    """

    def __init__(self, depth: Union[int, Difficulty] = Difficulty.NORMAL,
                 rng: Optional[random.Random] = None,
                 use_pruning: bool = True):
        """
        Args:
            depth: Search depth in plies, or a Difficulty tier
            rng: Random source for root tie-breaks
            use_pruning: Disable to run the plain minimax recursion
        """
        self.depth = depth.depth if isinstance(depth, Difficulty) else int(depth)
        if self.depth < 1:
            raise ValueError("Search depth must be at least 1")
        self.rng = rng if rng is not None else random.Random()
        self.use_pruning = use_pruning
        self.nodes_evaluated = 0

    def score_moves(self, board: Board, player: Player,
                    depth: Optional[int] = None) -> Dict[int, int]:
        """
        Minimax score of every legal column, in centre-first order.

        Each root child is searched with a full window so the scores are
        exact rather than bounds.
        """
        depth = self.depth if depth is None else depth
        opponent = player.other()
        scores = {}

        for col in COLUMN_ORDER:
            row = board.place(col, player)
            if row is None:
                continue
            scores[col] = self.minimax(board, depth - 1, -INF, INF, False,
                                       player, opponent, (row, col, player))
            board.remove(row, col)

        return scores

    def choose_move(self, board: Board, player: Player,
                    depth: Optional[int] = None) -> int:
        """
        Pick the best column for player.

        Args:
            board: Current position; returned unchanged
            player: Side to move
            depth: Override the configured depth for this call

        Returns:
            A legal column, or FALLBACK_COLUMN if the board is full
        """
        self.nodes_evaluated = 0
        if board.is_full():
            debug.debug("No legal move, returning fallback column", "search")
            return FALLBACK_COLUMN

        scores = self.score_moves(board, player, depth)
        best_score = max(scores.values())
        best_columns = [col for col, score in scores.items() if score == best_score]
        column = self.rng.choice(best_columns)

        debug.debug(f"{player.name} scores {scores} -> column {column} "
                    f"({self.nodes_evaluated} nodes)", "search")
        return column

    def minimax(self, board: Board, depth: int, alpha: float, beta: float,
                is_maximizing: bool, player: Player, opponent: Player,
                last_move: Optional[LastMove] = None) -> float:
        """
        Score a position by alpha-beta search.

        Args:
            board: Current board, mutated and restored
            depth: Remaining plies
            alpha: Best score the maximiser can already guarantee
            beta: Best score the minimiser can already guarantee
            is_maximizing: True when player is to move
            player: The side the score is for
            opponent: The other side
            last_move: (row, col, mover) of the move that produced this
                position; lines can only be completed there. When None the
                whole board is scanned.

        Returns:
            The position's score for player
        """
        self.nodes_evaluated += 1

        winner = self._winner(board, player, opponent, last_move)
        if winner == player:
            return WIN_SCORE + depth
        if winner == opponent:
            return -WIN_SCORE - depth

        moves = [col for col in COLUMN_ORDER if board.is_valid_move(col)]
        if depth <= 0 or not moves:
            return evaluate_position(board, player)

        mover = player if is_maximizing else opponent
        best = -INF if is_maximizing else INF

        for col in moves:
            row = board.place(col, mover)
            score = self.minimax(board, depth - 1, alpha, beta, not is_maximizing,
                                 player, opponent, (row, col, mover))
            board.remove(row, col)

            if is_maximizing:
                best = max(best, score)
                alpha = max(alpha, score)
            else:
                best = min(best, score)
                beta = min(beta, score)

            if self.use_pruning and alpha >= beta:
                break

        return best

    @staticmethod
    def _winner(board: Board, player: Player, opponent: Player,
                last_move: Optional[LastMove]) -> Optional[Player]:
        if last_move is not None:
            row, col, mover = last_move
            return mover if board.is_line(mover, row, col) else None
        if board.has_won(player):
            return player
        if board.has_won(opponent):
            return opponent
        return None
