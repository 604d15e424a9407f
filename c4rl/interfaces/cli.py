"""
cli.py - Command-line interface for c4rl

Subcommands:
    play       Human vs human, vs the minimax engine, or vs the learning agent
    train      Self-play training of the learning agent
    evaluate   Match a saved agent against the minimax engine
    benchmark  Time search and feature extraction
"""

import argparse
import random
import sys
from typing import List, Optional

from c4rl.ai.agent import LinearTDAgent
from c4rl.ai.features import extract_features
from c4rl.ai.training import SelfPlayTrainer
from c4rl.debug import debug, DebugLevel
from c4rl.engine.minimax import MinimaxPlayer
from c4rl.game.board import Board
from c4rl.game.rules import ConnectFourGame
from c4rl.utils import COLS, Difficulty, Player

DEFAULT_MODEL = 'c4rl_model.bin'
QUIT = -1
UNDO = -2


class SimpleCLI:
    """Command-line front end; all game I/O lives here, never in the engines."""

    def __init__(self, argv: Optional[List[str]] = None):
        self.argv = argv
        self.args = None
        self.rng = random.Random()

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog='c4rl', description='Connect Four engines')
        parser.add_argument('--debug', action='store_true', help='Enable debug logging')
        parser.add_argument('--debug-level', default='warning',
                            choices=[level.name.lower() for level in DebugLevel],
                            help='Logging level')
        parser.add_argument('--log-file', help='Also write log output to this file')
        parser.add_argument('--seed', type=int, help='Seed for every random source')

        subparsers = parser.add_subparsers(dest='command', help='Command to run')

        play_parser = subparsers.add_parser('play', help='Play a game interactively')
        play_parser.add_argument('--mode', choices=['hvh', 'hvc', 'hva'], default='hvc',
                                 help='Human vs human, vs CPU search, or vs learning agent')
        play_parser.add_argument('--difficulty', default='normal',
                                 choices=[d.name.lower() for d in Difficulty],
                                 help='CPU search depth tier')
        play_parser.add_argument('--model', default=DEFAULT_MODEL, help='Agent model file')
        play_parser.add_argument('--search-depth', type=int, choices=[1, 2], default=2,
                                 help='Agent lookahead in plies')
        play_parser.add_argument('--first', choices=['human', 'cpu'], default='human',
                                 help='Who moves first against the computer')
        play_parser.add_argument('--color', action='store_true', help='Colour the board')

        train_parser = subparsers.add_parser('train', help='Train the agent by self-play')
        train_parser.add_argument('--games', type=int, default=5000)
        train_parser.add_argument('--model', default=DEFAULT_MODEL)
        train_parser.add_argument('--fresh', action='store_true',
                                  help='Ignore an existing model and start from defaults')
        train_parser.add_argument('--alpha', type=float, default=0.004)
        train_parser.add_argument('--gamma', type=float, default=0.99)
        train_parser.add_argument('--lambd', type=float, default=0.85)
        train_parser.add_argument('--epsilon', type=float, default=0.25)
        train_parser.add_argument('--log-interval', type=int, default=500)
        train_parser.add_argument('--save-interval', type=int, default=0)
        train_parser.add_argument('--eval-interval', type=int, default=0)
        train_parser.add_argument('--data-dir', help='Job/model registry directory')

        eval_parser = subparsers.add_parser('evaluate', help='Match the agent against minimax')
        eval_parser.add_argument('--model', default=DEFAULT_MODEL)
        eval_parser.add_argument('--games', type=int, default=20)
        eval_parser.add_argument('--depth', type=int, default=Difficulty.EASY.depth)

        bench_parser = subparsers.add_parser('benchmark', help='Time the engines')
        bench_parser.add_argument('--depth', type=int, default=Difficulty.NORMAL.depth)
        bench_parser.add_argument('--iterations', type=int, default=200)

        return parser

    def parse_args(self) -> None:
        self.args = self.build_parser().parse_args(self.argv)

        if self.args.debug:
            debug.configure(level=DebugLevel.DEBUG)
        else:
            debug.set_from_string(self.args.debug_level)
        debug.configure(log_file=self.args.log_file)

        if self.args.seed is not None:
            self.rng.seed(self.args.seed)

    def run(self) -> int:
        if not self.args:
            self.parse_args()

        handlers = {
            'play': self.play_game,
            'train': self.train,
            'evaluate': self.evaluate,
            'benchmark': self.benchmark,
        }
        handler = handlers.get(self.args.command)
        if handler is None:
            print("Please specify a command. Use --help for options.")
            return 1
        return handler() or 0

    # --- play ---

    def _load_agent(self, path: str, **kwargs) -> LinearTDAgent:
        agent = LinearTDAgent(rng=random.Random(self.rng.random()), **kwargs)
        if agent.load(path):
            print(f"Loaded model from {path}")
        else:
            print(f"No usable model at {path}; using default weights")
        return agent

    def _computer(self):
        mode = self.args.mode
        if mode == 'hvc':
            difficulty = Difficulty.from_name(self.args.difficulty)
            print(f"CPU difficulty {difficulty.name.lower()} (depth {difficulty.depth})")
            engine = MinimaxPlayer(difficulty, rng=random.Random(self.rng.random()))
            return engine.choose_move
        if mode == 'hva':
            agent = self._load_agent(self.args.model)
            depth = self.args.search_depth
            return lambda board, player: agent.choose_move(board, player, epsilon=0.0,
                                                           search_depth=depth)
        return None

    def play_game(self) -> int:
        computer = self._computer()
        computer_side = None
        if computer is not None:
            computer_side = Player.ONE if self.args.first == 'cpu' else Player.TWO

        game = ConnectFourGame()
        print("Enter a column number (0-6), 'u' to undo or 'q' to quit.")
        print(game.render(color=self.args.color))

        while not game.is_game_over():
            player = game.get_current_player()
            if player == computer_side:
                move = computer(game.board, player)
                print(f"CPU ({player}) plays column {move}")
            else:
                move = self.get_human_move(player)
                if move is None:
                    continue
                if move == QUIT:
                    print("Quitting game.")
                    return 0
                if move == UNDO:
                    undone = game.undo_move()
                    if undone and computer_side is not None:
                        game.undo_move()
                    print(game.render(color=self.args.color))
                    continue

            if not game.make_move(move):
                print(f"Column {move} is not legal.")
                continue
            print(game.render(color=self.args.color))

        winner = game.get_winner()
        if winner is None:
            print("It's a draw!")
        elif winner == computer_side:
            print(f"CPU ({winner}) wins!")
        else:
            print(f"Player {winner} wins!")
        return 0

    def get_human_move(self, player: Player):
        """
        Read one move from stdin.

        Returns:
            A column, QUIT, UNDO, or None for unusable input
        """
        try:
            text = input(f"Player {player}, your move: ").strip().lower()
        except EOFError:
            return QUIT

        if text == 'q':
            return QUIT
        if text == 'u':
            return UNDO
        try:
            move = int(text)
        except ValueError:
            print("Please enter a column number.")
            return None
        if not 0 <= move < COLS:
            print(f"Column must be between 0 and {COLS - 1}.")
            return None
        return move

    # --- training ---

    def train(self) -> int:
        args = self.args
        agent = LinearTDAgent(alpha=args.alpha, gamma=args.gamma, lambd=args.lambd,
                              epsilon=args.epsilon, rng=random.Random(self.rng.random()))
        if not args.fresh:
            if agent.load(args.model):
                print(f"Continuing from {args.model}")
            else:
                print("Starting from default weights")

        trainer = SelfPlayTrainer(agent, model_path=args.model, data_dir=args.data_dir,
                                  rng=random.Random(self.rng.random()))
        summary = trainer.train(episodes=args.games, log_interval=args.log_interval,
                                save_interval=args.save_interval,
                                evaluation_interval=args.eval_interval,
                                seed=args.seed)

        print(f"Trained {summary['episodes']} games; avg length {summary['avg_length']:.1f}, "
              f"draw rate {summary['draw_rate']:.2f}")
        print(f"Model saved to {args.model}")
        return 0

    def evaluate(self) -> int:
        agent = self._load_agent(self.args.model)
        trainer = SelfPlayTrainer(agent, model_path=self.args.model,
                                  rng=random.Random(self.rng.random()))
        result = trainer.evaluate(games=self.args.games, depth=self.args.depth)
        print(f"Agent vs minimax depth {result['opponent_depth']}: "
              f"{result['wins']} wins, {result['losses']} losses, {result['draws']} draws")
        return 0

    # --- benchmark ---

    def benchmark(self) -> int:
        iterations = self.args.iterations
        engine = MinimaxPlayer(self.args.depth, rng=random.Random(self.rng.random()))

        debug.start_timer("search")
        board = Board()
        move = engine.choose_move(board, Player.ONE)
        search_time = debug.end_timer("search")
        print(f"Depth {engine.depth} search from the empty board: column {move}, "
              f"{engine.nodes_evaluated} nodes, {search_time:.3f} s")

        positions = []
        for _ in range(iterations):
            board = Board()
            player = Player.ONE
            for _ in range(self.rng.randint(4, 20)):
                valid = board.get_valid_moves()
                board.place(self.rng.choice(valid), player)
                player = player.other()
            positions.append((board, player))

        debug.start_timer("features")
        for board, player in positions:
            extract_features(board, player)
        feature_time = debug.end_timer("features")
        print(f"Feature extraction: {feature_time / iterations * 1000:.3f} ms per position")
        return 0


def main(argv: Optional[List[str]] = None) -> int:
    return SimpleCLI(argv).run()


if __name__ == "__main__":
    sys.exit(main())
