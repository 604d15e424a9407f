"""
training.py - Self-play training supervisor for the linear TD agent

SelfPlayTrainer runs LinearTDAgent episodes with the agent's decaying
exploration schedule, keeps rolling statistics, writes checkpoints,
records the run in the data registry and periodically measures the agent
against the minimax engine. All file I/O happens between episodes.
"""

import os
import random
import time
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from c4rl.ai.agent import EpisodeResult, LinearTDAgent
from c4rl.data.data_manager import (complete_job, create_job, register_model,
                                    update_job_progress)
from c4rl.debug import debug
from c4rl.engine.minimax import MinimaxPlayer
from c4rl.game.board import Board
from c4rl.game.rules import ConnectFourEnv, ConnectFourGame
from c4rl.utils import Difficulty, Player

MoveChooser = Callable[[Board, Player], int]


class TrainingStats:
    """Track per-episode results during training."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.winners: List[Optional[Player]] = []
        self.first_players: List[Player] = []
        self.lengths: List[int] = []
        self.epsilons: List[float] = []
        self.deltas: List[float] = []

    def add_episode(self, result: EpisodeResult):
        self.winners.append(result.winner)
        self.first_players.append(result.first_player)
        self.lengths.append(result.length)
        self.epsilons.append(result.epsilon)
        self.deltas.append(result.mean_abs_delta)

    def __len__(self) -> int:
        return len(self.lengths)

    def get_summary(self, window: int = 100) -> Dict[str, float]:
        """
        Rates and averages over the most recent window episodes.

        first_mover_win_rate is the share of decided-or-drawn games won by
        the side that opened, the usual self-play health signal.
        """
        if not self.lengths:
            return {'episodes': 0, 'avg_length': 0.0, 'draw_rate': 0.0,
                    'first_mover_win_rate': 0.0, 'avg_abs_td_error': 0.0, 'epsilon': 0.0}

        winners = self.winners[-window:]
        firsts = self.first_players[-window:]
        return {
            'episodes': len(self.lengths),
            'avg_length': float(np.mean(self.lengths[-window:])),
            'draw_rate': float(np.mean([w is None for w in winners])),
            'first_mover_win_rate': float(np.mean([w == f for w, f in zip(winners, firsts)])),
            'avg_abs_td_error': float(np.mean(self.deltas[-window:])),
            'epsilon': float(self.epsilons[-1]),
        }


def play_match(first: MoveChooser, second: MoveChooser, games: int = 10,
               alternate: bool = True) -> Dict[str, int]:
    """
    Play games between two move choosers.

    The first chooser opens as Player.ONE in even-numbered games; with
    alternate the sides swap every game. Illegal moves forfeit.

    Returns:
        {'first': wins, 'second': wins, 'draws': draws}
    """
    tally = {'first': 0, 'second': 0, 'draws': 0}

    for game_index in range(games):
        swapped = alternate and game_index % 2 == 1
        choosers = {Player.ONE: second if swapped else first,
                    Player.TWO: first if swapped else second}
        labels = {Player.ONE: 'second' if swapped else 'first',
                  Player.TWO: 'first' if swapped else 'second'}

        game = ConnectFourGame()
        while not game.is_game_over():
            player = game.get_current_player()
            column = choosers[player](game.board, player)
            if not game.make_move(column):
                debug.warning(f"{labels[player]} played illegal column {column}", "training")
                tally[labels[player.other()]] += 1
                break
        else:
            winner = game.get_winner()
            tally['draws' if winner is None else labels[winner]] += 1

    return tally


class SelfPlayTrainer:
    """
    Train a LinearTDAgent through self-play.
    """

    def __init__(self, agent: Optional[LinearTDAgent] = None,
                 model_path: str = os.path.join('models', 'c4rl_model.bin'),
                 data_dir: Optional[str] = None,
                 eval_games: int = 10,
                 eval_depth: int = Difficulty.EASY.depth,
                 env: Optional[ConnectFourEnv] = None,
                 rng: Optional[random.Random] = None):
        """
        Args:
            agent: Agent to train (a fresh one by default)
            model_path: Final model location; checkpoints go beside it
            data_dir: Registry directory (the package default when None)
            eval_games: Games per evaluation match
            eval_depth: Minimax depth of the evaluation opponent
            env: Environment for the episodes
            rng: Random source for the evaluation opponent's tie-breaks
        """
        self.agent = agent if agent is not None else LinearTDAgent()
        self.model_path = model_path
        self.data_dir = data_dir
        self.eval_games = eval_games
        self.eval_depth = eval_depth
        self.env = env if env is not None else ConnectFourEnv()
        self.rng = rng if rng is not None else random.Random()
        self.stats = TrainingStats()
        self.evaluations: List[Dict[str, Any]] = []
        self.job_id = -1

    def train(self, episodes: int = 1000,
              log_interval: int = 100,
              save_interval: int = 0,
              evaluation_interval: int = 0,
              seed: Optional[int] = None) -> Dict[str, Any]:
        """
        Run episodes of self-play.

        Args:
            episodes: Number of self-play games
            log_interval: Episodes between progress lines
            save_interval: Episodes between checkpoints (0 disables)
            evaluation_interval: Episodes between evaluation matches (0 disables)
            seed: Seeds the environment RNG for the first episode

        Returns:
            Summary statistics of the run
        """
        self.job_id = create_job({
            'episodes': episodes,
            'alpha': self.agent.alpha,
            'gamma': self.agent.gamma,
            'lambda': self.agent.lambd,
            'epsilon': self.agent.epsilon,
            'model_path': self.model_path,
        }, data_dir=self.data_dir)
        debug.info(f"Starting self-play training for {episodes} episodes (job {self.job_id})",
                   "training")
        debug.start_timer("training")
        start_time = time.time()

        for index in range(episodes):
            epsilon = self.agent.exploration_rate(index, episodes)
            result = self.agent.play_training_episode(
                self.env, epsilon, seed=seed if index == 0 else None)
            self.stats.add_episode(result)
            episode = index + 1

            if log_interval and episode % log_interval == 0:
                summary = self.stats.get_summary(log_interval)
                debug.info(f"Episode {episode}/{episodes} [{time.time() - start_time:.1f}s] "
                           f"length {summary['avg_length']:.1f}, "
                           f"draws {summary['draw_rate']:.2f}, "
                           f"first mover wins {summary['first_mover_win_rate']:.2f}, "
                           f"|td| {summary['avg_abs_td_error']:.4f}, "
                           f"epsilon {epsilon:.3f}", "training")
                update_job_progress(self.job_id, episode, data_dir=self.data_dir)

            if save_interval and episode % save_interval == 0 and episode < episodes:
                self._save_checkpoint(episode)

            if evaluation_interval and episode % evaluation_interval == 0:
                self.evaluate()

        debug.end_timer("training", "training")
        summary = self.stats.get_summary()
        self._save_checkpoint(episodes, final=True)
        complete_job(self.job_id, summary, data_dir=self.data_dir)
        debug.info(f"Training completed after {episodes} episodes", "training")
        return summary

    def evaluate(self, games: Optional[int] = None,
                 depth: Optional[int] = None) -> Dict[str, Any]:
        """
        Play the greedy agent against a MinimaxPlayer, alternating sides.

        Returns:
            Win/loss/draw counts from the agent's point of view
        """
        games = self.eval_games if games is None else games
        depth = self.eval_depth if depth is None else depth
        opponent = MinimaxPlayer(depth, rng=self.rng)

        def agent_move(board: Board, player: Player) -> int:
            return self.agent.choose_move(board, player, epsilon=0.0, search_depth=2)

        tally = play_match(agent_move, opponent.choose_move, games)
        evaluation = {
            'episode': len(self.stats),
            'opponent_depth': depth,
            'wins': tally['first'],
            'losses': tally['second'],
            'draws': tally['draws'],
        }
        self.evaluations.append(evaluation)
        debug.info(f"Evaluation vs depth {depth}: {tally['first']}W "
                   f"{tally['second']}L {tally['draws']}D", "training")
        return evaluation

    def checkpoint_path(self, episode: int) -> str:
        root, ext = os.path.splitext(self.model_path)
        return f"{root}_ep{episode}{ext or '.bin'}"

    def _save_checkpoint(self, episode: int, final: bool = False):
        path = self.model_path if final else self.checkpoint_path(episode)
        if not self.agent.save(path):
            return

        evaluation = self.evaluations[-1] if self.evaluations else None
        register_model(self.job_id, episode, path, is_final=final,
                       evaluation=evaluation, data_dir=self.data_dir)
