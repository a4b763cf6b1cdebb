"""Monte Carlo tree search guided by the policy/value network."""

from __future__ import annotations

import copy
import math

import numpy as np

from .board import ChessBoard, ChessMove
from .encoding import PositionEncoder, flatten_planes
from .network import NeuralNetwork


def _evaluate(board: ChessBoard, network: NeuralNetwork) -> tuple[np.ndarray, np.ndarray]:
    planes = PositionEncoder().encode(board.fen, board.history)
    return network.evaluate(flatten_planes(planes))


class MCTSNode:
    """A position in the search tree together with its visit statistics."""

    def __init__(
        self,
        board: ChessBoard,
        parent: MCTSNode | None = None,
        move: ChessMove | None = None,
    ) -> None:
        self.board = copy.copy(board)
        self.parent = parent
        self.move = move if move is not None else ChessMove(0, 0)
        self.children: list[MCTSNode] = []
        self.unexplored_moves: list[ChessMove] = list(self.board.legal_moves)
        self.visit_count = 0
        self.total_value = 0.0
        self.policy_probs: np.ndarray = np.empty(0, dtype=np.float32)

    def ucb_score(self, exploration_weight: float) -> float:
        """Mean value plus a prior-weighted exploration bonus; infinite if unvisited."""
        if self.visit_count == 0:
            return math.inf
        prior = 1.0
        parent = self.parent
        if parent is not None and len(parent.policy_probs):
            try:
                index = parent.board.legal_moves.index(self.move)
            except ValueError:
                index = None
            if index is not None and index < len(parent.policy_probs):
                prior = float(parent.policy_probs[index])
        exploitation = self.total_value / self.visit_count
        scale = math.sqrt(parent.visit_count) if parent is not None else 1.0
        exploration = exploration_weight * prior * scale / (1 + self.visit_count)
        return exploitation + exploration

    def is_fully_expanded(self) -> bool:
        """True once every legal move has a child node."""
        return not self.unexplored_moves

    def is_terminal(self) -> bool:
        """True when the game is over at this node."""
        return self.board.is_game_over()

    def expand(self, network: NeuralNetwork) -> MCTSNode | None:
        """Add a child for a random unexplored move and score it with ``network``."""
        if not self.unexplored_moves:
            return None
        index = self.board.rng.randrange(len(self.unexplored_moves))
        move = self.unexplored_moves.pop(index)
        new_board = copy.copy(self.board)
        new_board.make_move(move)
        child = MCTSNode(new_board, self, move)
        self.children.append(child)
        policy, _ = _evaluate(child.board, network)
        child.policy_probs = policy
        return child

    def best_child(self, exploration_weight: float) -> MCTSNode | None:
        """The child with the highest UCB score, or None without children."""
        if not self.children:
            return None
        return max(self.children, key=lambda child: child.ucb_score(exploration_weight))

    def backpropagate(self, value: float) -> None:
        """Add ``value`` up the path to the root, flipping sign at each level."""
        node: MCTSNode | None = self
        while node is not None:
            node.visit_count += 1
            node.total_value += value
            node = node.parent
            value = -value


class MCTS:
    """Runs a fixed number of simulations and picks the most visited move."""

    def __init__(
        self,
        network: NeuralNetwork,
        num_simulations: int = 800,
        exploration_weight: float = 1.0,
    ) -> None:
        self.network = network
        self.num_simulations = num_simulations
        self.exploration_weight = exploration_weight

    def search(self, board: ChessBoard) -> ChessMove:
        """Search from ``board``; returns ``ChessMove(0, 0)`` if nothing was explored."""
        root = MCTSNode(board)
        for _ in range(self.num_simulations):
            node = root
            while not node.is_terminal() and node.is_fully_expanded():
                node = node.best_child(self.exploration_weight)

            if not node.is_terminal():
                node = node.expand(self.network)

            if node.is_terminal():
                value = float(node.board.result())
            else:
                policy, outcome = _evaluate(node.board, self.network)
                node.policy_probs = policy
                value = float(outcome[0] - outcome[2])

            node.backpropagate(value)

        best: MCTSNode | None = None
        most_visits = -1
        for child in root.children:
            if child.visit_count > most_visits:
                most_visits = child.visit_count
                best = child
        return best.move if best is not None else ChessMove(0, 0)