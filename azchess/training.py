"""Self-play data generation and the training loop."""

from __future__ import annotations

import argparse
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

import numpy as np

from .board import ChessBoard, ChessMove
from .encoding import PositionEncoder, flatten_planes
from .mcts import MCTS
from .network import NeuralNetwork

POLICY_SIZE = 1858
LEARNING_RATE = 0.001
PROGRESS_INTERVAL = 10


def move_to_index(move: ChessMove) -> int:
    """Map a move to a slot of the policy vector."""
    return (move.from_square * 64 + move.to_square) % POLICY_SIZE


@dataclass
class TrainingExample:
    """A position, its history and the targets the network should learn."""

    fen: str
    history: list[str]
    policy_target: np.ndarray
    value_target: float


@dataclass
class _Collector:
    examples: list[TrainingExample] = field(default_factory=list)
    games_completed: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_game(self, game_examples: Sequence[TrainingExample]) -> int:
        with self._lock:
            self.examples.extend(game_examples)
            self.games_completed += 1
            count = self.games_completed
            if count % PROGRESS_INTERVAL == 0:
                print(f"Completed {count} self-play games")
            return count


class SelfPlayWorker:
    """Plays games against itself and records one example per move."""

    def __init__(
        self,
        network: NeuralNetwork,
        games_to_play: int,
        collector: _Collector | None = None,
        *,
        num_simulations: int = 800,
        max_moves: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.network = network
        self.games_to_play = games_to_play
        self.collector = collector if collector is not None else _Collector()
        self.num_simulations = num_simulations
        self.max_moves = max_moves
        self.rng = rng

    @property
    def examples(self) -> list[TrainingExample]:
        return self.collector.examples

    @property
    def games_completed(self) -> int:
        return self.collector.games_completed

    def run(self) -> None:
        """Play all assigned games, adding their examples to the collector."""
        for _ in range(self.games_to_play):
            self.collector.add_game(self.play_single_game())

    def play_single_game(self) -> list[TrainingExample]:
        """Play one game (or up to ``max_moves`` moves) and return its examples."""
        board = ChessBoard(rng=self.rng)
        mcts = MCTS(self.network, self.num_simulations)
        game_history: list[str] = []
        policy_history: list[np.ndarray] = []

        while not board.is_game_over():
            if self.max_moves is not None and len(game_history) >= self.max_moves:
                break
            current_fen = board.fen
            best_move = mcts.search(board)
            policy = np.zeros(POLICY_SIZE, dtype=np.float32)
            for move in board.legal_moves:
                if move == best_move:
                    policy[move_to_index(move)] = 1.0
            policy_history.append(policy)
            board.make_move(best_move)
            game_history.append(current_fen)

        result = float(board.result())
        examples = []
        for index, (fen, policy) in enumerate(zip(game_history, policy_history)):
            examples.append(TrainingExample(fen, game_history[:index], policy, result))
            result = -result
        return examples


class TrainingManager:
    """Alternates threaded self-play with a training step, saving each iteration."""

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        policy_size: int,
        iterations: int,
        games: int,
        threads: int,
        *,
        num_simulations: int = 800,
        max_moves: int | None = None,
        output_dir: str | Path = ".",
        seed: int | None = None,
    ) -> None:
        if threads < 1:
            raise ValueError(f"threads must be at least 1, got {threads}")
        self.network = NeuralNetwork(input_size, hidden_size, policy_size, seed=seed)
        self.num_iterations = iterations
        self.games_per_iteration = games
        self.num_threads = threads
        self.num_simulations = num_simulations
        self.max_moves = max_moves
        self.output_dir = Path(output_dir)
        self.seed = seed

    def _worker_rng(self, iteration: int, thread: int) -> random.Random | None:
        if self.seed is None:
            return None
        return random.Random(self.seed * 1_000_003 + iteration * 1009 + thread)

    def run(self) -> list[Path]:
        """Run every iteration; returns the paths of the saved networks."""
        saved = []
        for iteration in range(1, self.num_iterations + 1):
            print(f"Starting iteration {iteration}/{self.num_iterations}")
            collector = _Collector()
            games_per_thread = self.games_per_iteration // self.num_threads
            workers = [
                SelfPlayWorker(
                    self.network,
                    games_per_thread,
                    collector,
                    num_simulations=self.num_simulations,
                    max_moves=self.max_moves,
                    rng=self._worker_rng(iteration, thread),
                )
                for thread in range(self.num_threads)
            ]
            with ThreadPoolExecutor(max_workers=self.num_threads) as pool:
                for future in [pool.submit(worker.run) for worker in workers]:
                    future.result()

            print(f"Self-play completed with {len(collector.examples)} examples")
            self.train_on_examples(collector.examples)

            path = self.output_dir / f"network_iter_{iteration}.bin"
            self.network.save(path)
            saved.append(path)
            print(f"Iteration {iteration} completed")
        return saved

    def train_on_examples(self, examples: Sequence[TrainingExample]) -> float:
        """Encode the examples and train the network on them; returns the loss."""
        encoder = PositionEncoder()
        inputs = []
        policy_targets = []
        value_targets = []
        for example in examples:
            inputs.append(flatten_planes(encoder.encode(example.fen, example.history)))
            policy_targets.append(example.policy_target)
            value = np.zeros(3, dtype=np.float32)
            if example.value_target > 0:
                value[0] = 1.0
            elif example.value_target < 0:
                value[2] = 1.0
            else:
                value[1] = 1.0
            value_targets.append(value)
        return self.network.train(inputs, policy_targets, value_targets, LEARNING_RATE)


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point for the self-play training loop."""
    parser = argparse.ArgumentParser(description="Self-play training loop.")
    parser.add_argument("--iterations", type=int, default=10)
    parser.add_argument("--games", type=int, default=100)
    parser.add_argument("--threads", type=int, default=4)
    parser.add_argument("--hidden", type=int, default=256)
    parser.add_argument("--simulations", type=int, default=800)
    parser.add_argument("--max-moves", type=int, default=None)
    parser.add_argument("--output-dir", default=".")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)

    manager = TrainingManager(
        19 * 64,
        args.hidden,
        POLICY_SIZE,
        args.iterations,
        args.games,
        args.threads,
        num_simulations=args.simulations,
        max_moves=args.max_moves,
        output_dir=args.output_dir,
        seed=args.seed,
    )
    print("Starting training...")
    manager.run()
    print("Training completed!")
    return 0