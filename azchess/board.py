"""A stand-in chess board that cycles through sample positions with random moves."""

from __future__ import annotations

import itertools
import random
import threading
from dataclasses import dataclass

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

SAMPLE_POSITIONS = (
    "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1",
    "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2",
    "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2",
    "r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3",
    "r1bqkbnr/pppp1ppp/2n5/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R b KQkq - 3 3",
)

MIN_MOVES = 10
MAX_MOVES = 30
_FILES = "abcdefgh"
_RANKS = "12345678"
_PROMOTIONS = ("", "q", "r", "b", "n")


class IllegalMoveError(ValueError):
    """Raised when a move is not among the board's legal moves."""


@dataclass(frozen=True)
class ChessMove:
    """A move between two squares numbered 0 (a1) to 63 (h8)."""

    from_square: int
    to_square: int
    promotion: str = ""

    def __post_init__(self) -> None:
        for square in (self.from_square, self.to_square):
            if not 0 <= square < 64:
                raise ValueError(f"square out of range: {square}")
        if self.promotion not in _PROMOTIONS:
            raise ValueError(f"invalid promotion piece: {self.promotion!r}")

    def uci(self) -> str:
        """Return the move in coordinate notation, e.g. ``e2e4`` or ``e7e8q``."""
        return (
            _FILES[self.from_square % 8]
            + _RANKS[self.from_square // 8]
            + _FILES[self.to_square % 8]
            + _RANKS[self.to_square // 8]
            + self.promotion
        )

    def __str__(self) -> str:
        return self.uci()


class ChessBoard:
    """Position, history and move list of a simulated game.

    Moves are random square pairs, and every move made advances all boards
    through a shared cycle of sample positions.
    """

    _sample_cycle = itertools.cycle(SAMPLE_POSITIONS)
    _cycle_lock = threading.Lock()

    def __init__(self, fen: str = START_FEN, rng: random.Random | None = None) -> None:
        self.fen = fen
        self.history: list[str] = []
        self.rng = rng if rng is not None else random.Random()
        self.legal_moves: list[ChessMove] = []
        self._generate_legal_moves()

    def __copy__(self) -> ChessBoard:
        clone = ChessBoard.__new__(ChessBoard)
        clone.fen = self.fen
        clone.history = list(self.history)
        clone.rng = self.rng
        clone.legal_moves = list(self.legal_moves)
        return clone

    def _generate_legal_moves(self) -> None:
        count = self.rng.randint(MIN_MOVES, MAX_MOVES)
        self.legal_moves = [
            ChessMove(self.rng.randint(0, 63), self.rng.randint(0, 63))
            for _ in range(count)
        ]

    def make_move(self, move: ChessMove) -> None:
        """Play ``move``; raises :class:`IllegalMoveError` if it is not legal."""
        if move not in self.legal_moves:
            raise IllegalMoveError(f"illegal move: {move}")
        self.history.append(self.fen)
        with self._cycle_lock:
            self.fen = next(ChessBoard._sample_cycle)
        self._generate_legal_moves()

    def is_game_over(self) -> bool:
        """The game is over when no legal moves remain."""
        return not self.legal_moves

    def result(self) -> int:
        """Return 1 for a white win, 0 for a draw, -1 for a black win (chosen at random)."""
        return self.rng.choice((1, 0, -1))