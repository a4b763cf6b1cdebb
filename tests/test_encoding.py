import numpy as np
import pytest

from azchess.encoding import (
    HISTORY_OFFSET,
    PLANES_PER_POSITION,
    TOTAL_PLANES,
    Plane,
    PositionEncoder,
    flatten_planes,
)

START = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
AFTER_E5 = "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2"
AFTER_NF3 = "rnbqkbnr/pppp1ppp/8/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"


@pytest.fixture
def encoder():
    return PositionEncoder()


def test_shape_and_dtype(encoder):
    planes = encoder.encode(START, [])
    assert planes.shape == (TOTAL_PLANES, 64)
    assert planes.dtype == bool


def test_start_position_pawns_mirror(encoder):
    planes = encoder.encode(START, [])
    white = planes[Plane.WHITE_PAWN].reshape(8, 8)
    black = planes[Plane.BLACK_PAWN].reshape(8, 8)
    assert white[1].all()
    assert white.sum() == white[1].sum()
    assert np.array_equal(white[::-1], black)


def test_start_position_pieces_mirror(encoder):
    planes = encoder.encode(START, [])
    for white_plane in range(6):
        white = planes[white_plane].reshape(8, 8)
        black = planes[white_plane + 6].reshape(8, 8)
        assert np.array_equal(white[::-1], black)


def test_black_king_square(encoder):
    planes = encoder.encode(START, [])
    king = planes[Plane.BLACK_KING].reshape(8, 8)
    assert king[7, 4]
    assert king.sum() == 1


def test_color_to_move(encoder):
    assert encoder.encode(START, [])[Plane.COLOR_TO_MOVE].all()
    assert not encoder.encode(AFTER_E4, [])[Plane.COLOR_TO_MOVE].any()


def test_castling_rights(encoder):
    fen = "r3k2r/8/8/8/8/8/8/R3K2R w Kq - 0 1"
    planes = encoder.encode(fen, [])
    assert planes[Plane.WHITE_KINGSIDE_CASTLE].all()
    assert not planes[Plane.WHITE_QUEENSIDE_CASTLE].any()
    assert not planes[Plane.BLACK_KINGSIDE_CASTLE].any()
    assert planes[Plane.BLACK_QUEENSIDE_CASTLE].all()


def test_no_castling(encoder):
    planes = encoder.encode("4k3/8/8/8/8/8/8/4K3 w - - 0 1", [])
    assert not planes[Plane.WHITE_KINGSIDE_CASTLE : Plane.BLACK_QUEENSIDE_CASTLE + 1].any()


def test_move_counts(encoder):
    encoder.encode("4k3/8/8/8/8/8/8/4K3 w - - 3 17", [])
    assert encoder.total_move_count == 17.0
    assert encoder.no_progress_move_count == 3.0


def test_missing_move_counts_raise(encoder):
    with pytest.raises(ValueError):
        encoder.encode("4k3/8/8/8/8/8/8/4K3 w -", [])


def test_piece_off_board_raises(encoder):
    with pytest.raises(ValueError):
        encoder.encode("pppppppppp/8/8/8/8/8/8/8 w - - 0 1", [])


def test_no_history_leaves_history_planes_empty(encoder):
    planes = encoder.encode(START, [])
    assert not planes[HISTORY_OFFSET:].any()
    assert not planes[Plane.REPETITION_ONCE].any()


def test_history_pieces_match_plain_encoding(encoder):
    planes = encoder.encode(AFTER_NF3, [START, AFTER_E4, AFTER_E5])
    reference = PositionEncoder()
    for step, fen in enumerate([AFTER_E5, AFTER_E4, START]):
        offset = HISTORY_OFFSET + step * PLANES_PER_POSITION
        expected = reference.encode(fen, [])[:12]
        assert np.array_equal(planes[offset : offset + 12], expected)
    later = HISTORY_OFFSET + 3 * PLANES_PER_POSITION
    assert not planes[later:].any()


def test_current_repetition_once(encoder):
    planes = encoder.encode(START, [START, AFTER_E4, START])
    assert planes[Plane.REPETITION_ONCE].all()
    assert not planes[Plane.REPETITION_TWICE].any()


def test_current_repetition_twice(encoder):
    planes = encoder.encode(START, [START, AFTER_E4, START, AFTER_E4, START])
    assert planes[Plane.REPETITION_ONCE].all()
    assert planes[Plane.REPETITION_TWICE].all()


def test_repetition_lookback_is_limited(encoder):
    history = [START] + [AFTER_E4] * 8 + [START]
    planes = encoder.encode(START, history)
    assert not planes[Plane.REPETITION_ONCE].any()


def test_history_repetition(encoder):
    planes = encoder.encode(START, [START, AFTER_E4, START, AFTER_E5])
    first = HISTORY_OFFSET
    second = HISTORY_OFFSET + PLANES_PER_POSITION
    assert not planes[first + Plane.REPETITION_ONCE].any()
    assert planes[second + Plane.REPETITION_ONCE].all()
    assert not planes[second + Plane.REPETITION_TWICE].any()


def test_long_history_stays_in_bounds(encoder):
    history = [START, AFTER_E4, AFTER_E5, AFTER_NF3] * 3
    planes = encoder.encode(START, history)
    assert planes.shape == (TOTAL_PLANES, 64)
    last = HISTORY_OFFSET + 6 * PLANES_PER_POSITION
    assert planes[last : last + 12].any()


def test_encode_resets_previous_result(encoder):
    encoder.encode(START, [START, AFTER_E4, START])
    planes = encoder.encode(START, [])
    assert not planes[Plane.REPETITION_ONCE].any()
    assert not planes[HISTORY_OFFSET:].any()


def test_flatten_planes(encoder):
    planes = encoder.encode(START, [AFTER_E4])
    flat = flatten_planes(planes)
    assert flat.shape == (TOTAL_PLANES * 64,)
    assert flat.dtype == np.float32
    assert set(np.unique(flat)) <= {0.0, 1.0}
    assert flat.sum() == planes.sum()


def test_format_planes_content(encoder):
    encoder.encode(START, [AFTER_E4])
    text = encoder.format_planes()
    assert "Plane 0: Current: White Pawn" in text
    assert "Description: Shows current positions of White Pawn" in text
    assert "Plane 14: Current: Color to Move" in text
    assert "Plane 19: History 1: White Pawn" in text
    assert "Total Move Count: 1\n" in text
    assert "No Progress Move Count: 0\n" in text


def test_format_planes_grid(encoder):
    encoder.encode(START, [])
    lines = encoder.format_planes(0, 1).splitlines()
    grid = lines[2:10]
    assert grid[6] == "1 " * 8
    assert grid[0] == "0 " * 8
    assert sum(line.startswith("Plane ") for line in lines) == 1


def test_format_planes_range(encoder):
    encoder.encode(START, [])
    lines = encoder.format_planes(5, 9).splitlines()
    headers = [line for line in lines if line.startswith("Plane ")]
    assert len(headers) == 4
    assert headers[0].startswith("Plane 5:")


def test_format_before_encode_has_only_scalars(encoder):
    text = encoder.format_planes()
    assert not any(line.startswith("Plane ") for line in text.splitlines())
    assert text.startswith("Additional Scalar Inputs:")


def test_print_planes_matches_format(encoder, capsys):
    encoder.encode(AFTER_NF3, [START])
    encoder.print_planes(0, 3)
    assert capsys.readouterr().out == encoder.format_planes(0, 3)