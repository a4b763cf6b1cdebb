"""AlphaZero-style chess position encoding, tree search and self-play training."""

__version__ = "0.1.0"
__all__ = ["board", "encoding", "mcts", "network", "training"]