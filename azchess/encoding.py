"""Plane encoding of chess positions given as FEN strings."""

from __future__ import annotations

import re
from enum import IntEnum
from typing import Sequence

import numpy as np

BOARD_SIZE = 8
SQUARES = BOARD_SIZE * BOARD_SIZE
PIECE_TYPES = 6
TOTAL_PLANES = 117
HISTORY_OFFSET = 19
PLANES_PER_POSITION = 14
MAX_HISTORY = 8
REPETITION_LOOKBACK = 8


class Plane(IntEnum):
    """Indices of the planes that describe the current position."""

    WHITE_PAWN = 0
    WHITE_ROOK = 1
    WHITE_KNIGHT = 2
    WHITE_BISHOP = 3
    WHITE_QUEEN = 4
    WHITE_KING = 5
    BLACK_PAWN = 6
    BLACK_ROOK = 7
    BLACK_KNIGHT = 8
    BLACK_BISHOP = 9
    BLACK_QUEEN = 10
    BLACK_KING = 11
    REPETITION_ONCE = 12
    REPETITION_TWICE = 13
    COLOR_TO_MOVE = 14
    WHITE_KINGSIDE_CASTLE = 15
    WHITE_QUEENSIDE_CASTLE = 16
    BLACK_KINGSIDE_CASTLE = 17
    BLACK_QUEENSIDE_CASTLE = 18


_PIECE_PLANES = {
    "P": Plane.WHITE_PAWN,
    "R": Plane.WHITE_ROOK,
    "N": Plane.WHITE_KNIGHT,
    "B": Plane.WHITE_BISHOP,
    "Q": Plane.WHITE_QUEEN,
    "K": Plane.WHITE_KING,
    "p": Plane.BLACK_PAWN,
    "r": Plane.BLACK_ROOK,
    "n": Plane.BLACK_KNIGHT,
    "b": Plane.BLACK_BISHOP,
    "q": Plane.BLACK_QUEEN,
    "k": Plane.BLACK_KING,
}

_CASTLING_PLANES = {
    "K": Plane.WHITE_KINGSIDE_CASTLE,
    "Q": Plane.WHITE_QUEENSIDE_CASTLE,
    "k": Plane.BLACK_KINGSIDE_CASTLE,
    "q": Plane.BLACK_QUEENSIDE_CASTLE,
}

_PIECE_NAMES = (
    "White Pawn", "White Rook", "White Knight", "White Bishop",
    "White Queen", "White King",
    "Black Pawn", "Black Rook", "Black Knight", "Black Bishop",
    "Black Queen", "Black King",
)

_REPETITION_NAMES = ("Repetition Once", "Repetition Twice")

_STATE_NAMES = (
    "Color to Move",
    "White Kingside Castle", "White Queenside Castle",
    "Black Kingside Castle", "Black Queenside Castle",
)

_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


def _board_part(fen: str) -> str:
    return fen.split(" ", 1)[0]


def _field(fen: str, index: int) -> str:
    fields = fen.split(" ", 5)
    if index >= len(fields):
        return ""
    value = fields[index]
    if index == 5:
        value = value.split("\n", 1)[0]
    return value


def _parse_float(text: str, what: str) -> float:
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"FEN {what} field is not a number: {text!r}")
    return float(match.group(0))


def _plane_label(index: int) -> tuple[str, str]:
    if index < 12:
        piece = _PIECE_NAMES[index]
        return f"Current: {piece}", f"Shows current positions of {piece}"
    if index < 14:
        return (
            f"Current: {_REPETITION_NAMES[index - 12]}",
            "Indicates if current position has repeated",
        )
    if index < HISTORY_OFFSET:
        state = _STATE_NAMES[index - 14]
        return f"Current: {state}", f"Current game state: {state}"
    history, kind = divmod(index - HISTORY_OFFSET, PLANES_PER_POSITION)
    ago = history + 1
    if kind < 12:
        piece = _PIECE_NAMES[kind]
        return (
            f"History {ago}: {piece}",
            f"Shows {piece} positions from {ago} moves ago",
        )
    return (
        f"History {ago}: {_REPETITION_NAMES[kind - 12]}",
        f"Indicates if position from {ago} moves ago has repeated",
    )


def flatten_planes(planes) -> np.ndarray:
    """Turn a stack of boolean planes into a flat float32 vector of 0s and 1s."""
    return np.asarray(planes, dtype=np.float32).reshape(-1)


class PositionEncoder:
    """Encodes a position and its history as 117 boolean 8x8 planes."""

    BOARD_SIZE = BOARD_SIZE
    PIECE_TYPES = PIECE_TYPES
    TOTAL_PLANES = TOTAL_PLANES

    def __init__(self) -> None:
        self.planes = np.zeros((0, SQUARES), dtype=bool)
        self.total_move_count = 0.0
        self.no_progress_move_count = 0.0

    def encode(self, fen: str, previous_positions: Sequence[str]) -> np.ndarray:
        """Encode ``fen`` with its earlier positions; returns a (117, 64) bool array."""
        previous = list(previous_positions)
        self.planes = np.zeros((TOTAL_PLANES, SQUARES), dtype=bool)

        self._encode_pieces(fen, 0)
        self._encode_repetitions(previous, 0)

        for step in range(MAX_HISTORY):
            history_index = len(previous) - 1 - step
            if history_index < 0:
                break
            offset = HISTORY_OFFSET + step * PLANES_PER_POSITION
            target = previous[history_index]
            self._encode_pieces(target, offset)
            earlier = previous[max(0, history_index - REPETITION_LOOKBACK):history_index]
            if earlier:
                self._encode_repetitions([*earlier, target], offset)

        self._encode_castling_rights(fen)
        self._encode_color_to_move(fen)

        halfmove = _field(fen, 4)
        fullmove = _field(fen, 5)
        self.total_move_count = _parse_float(fullmove, "fullmove")
        self.no_progress_move_count = _parse_float(halfmove, "halfmove")

        return self.planes.copy()

    def _encode_pieces(self, fen: str, offset: int) -> None:
        rank, file = BOARD_SIZE - 1, 0
        for char in _board_part(fen):
            if char == "/":
                rank -= 1
                file = 0
                continue
            if char in "0123456789":
                file += int(char)
                continue
            plane = _PIECE_PLANES.get(char)
            if plane is not None and plane + offset < TOTAL_PLANES:
                if not (0 <= rank < BOARD_SIZE and 0 <= file < BOARD_SIZE):
                    raise ValueError(f"piece placement runs off the board: {fen!r}")
                self.planes[plane + offset, rank * BOARD_SIZE + file] = True
            file += 1

    def _encode_repetitions(self, positions: list[str], offset: int) -> None:
        if not positions:
            return
        target = _board_part(positions[-1])
        window = positions[:-1][-REPETITION_LOOKBACK:]
        count = sum(1 for position in window if _board_part(position) == target)
        for threshold, plane in ((1, Plane.REPETITION_ONCE), (2, Plane.REPETITION_TWICE)):
            if count >= threshold and plane + offset < TOTAL_PLANES:
                self.planes[plane + offset, :] = True

    def _encode_castling_rights(self, fen: str) -> None:
        castling = _field(fen, 2)
        for symbol, plane in _CASTLING_PLANES.items():
            self.planes[plane, :] = symbol in castling

    def _encode_color_to_move(self, fen: str) -> None:
        self.planes[Plane.COLOR_TO_MOVE, :] = _field(fen, 1) == "w"

    def format_planes(self, start_plane: int = 0, end_plane: int | None = -1) -> str:
        """Render planes ``start_plane`` up to ``end_plane`` (exclusive) as text."""
        count = len(self.planes)
        if end_plane is None or end_plane == -1:
            end_plane = count
        lines: list[str] = []
        if start_plane >= 0:
            for index in range(start_plane, min(end_plane, count)):
                name, description = _plane_label(index)
                lines.append(f"Plane {index}: {name}")
                lines.append(f"Description: {description}")
                grid = self.planes[index].reshape(BOARD_SIZE, BOARD_SIZE)
                for row in grid[::-1]:
                    lines.append("".join("1 " if bit else "0 " for bit in row))
                lines.append("")
        lines.append("Additional Scalar Inputs:")
        lines.append(f"Total Move Count: {self.total_move_count:g}")
        lines.append(f"No Progress Move Count: {self.no_progress_move_count:g}")
        return "\n".join(lines) + "\n"

    def print_planes(self, start_plane: int = 0, end_plane: int | None = -1) -> None:
        """Print the text produced by :meth:`format_planes`."""
        print(self.format_planes(start_plane, end_plane), end="")