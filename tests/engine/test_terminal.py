from __future__ import annotations

import pytest

from bitchess.engine import attacks
from bitchess.engine.board import Board, new_board
from bitchess.engine.errors import InvariantViolation
from bitchess.engine.move import parse_uci
from bitchess.engine.piece import Color


def play(board: Board, *ucis: str) -> Board:
    for u in ucis:
        board.move(parse_uci(u, board.side_to_move))
    return board


def test_fools_mate() -> None:
    b = play(new_board(), "f2f3", "e7e6", "g2g4")
    assert not b.is_checkmate()
    play(b, "d8h4")
    assert b.in_check()
    assert b.is_checkmate()
    assert b.legal_moves() == []


def test_not_in_check_is_never_mate() -> None:
    assert not new_board().is_checkmate()


def test_back_rank_mate() -> None:
    b = play(Board.from_fen("6k1/5ppp/8/8/8/8/8/R5K1 w - - 0 1"), "a1a8")
    assert b.is_checkmate()


def test_back_rank_check_blocked_by_bishop() -> None:
    b = play(Board.from_fen("6k1/5ppp/4b3/8/8/8/8/R5K1 w - - 0 1"), "a1a8")
    assert b.in_check()
    assert not b.is_checkmate()


def test_back_rank_check_answered_by_capture() -> None:
    b = play(Board.from_fen("6k1/5ppp/1n6/8/8/8/8/R5K1 w - - 0 1"), "a1a8")
    assert not b.is_checkmate()


def test_pinned_blocker_does_not_help() -> None:
    # The d7 bishop could block on c8/d8 but is pinned by the b5 bishop
    b = Board.from_fen("4k3/3b4/8/1B6/8/8/8/R3K3 w - - 0 1")
    play(b, "a1a8")
    assert b.pinned_pieces() == 1 << 51
    assert b.is_checkmate() == (not b.legal_moves())


def test_smothered_mate() -> None:
    b = Board.from_fen("6rk/5Npp/8/8/8/8/8/6K1 b - - 0 1")
    (checker,) = b.checking_pieces()
    assert checker.check_ray == 0
    assert b.is_checkmate()


def test_knight_check_escaped_by_capture() -> None:
    b = Board.from_fen("5rrk/5Npp/8/8/8/8/8/6K1 b - - 0 1")
    assert b.in_check()
    assert not b.is_checkmate()


def test_double_check_only_king_moves() -> None:
    b = Board.from_fen("4k3/8/8/8/1b6/8/4PP2/4K2r w - - 0 1")
    assert len(b.checking_pieces()) == 2
    assert b.is_checkmate()


def test_double_check_with_king_escape() -> None:
    b = Board.from_fen("4k3/8/8/8/1b6/8/8/4K2r w - - 0 1")
    assert len(b.checking_pieces()) == 2
    assert not b.is_checkmate()
    assert {m.to_uci() for m in b.legal_moves()} == {"e1e2", "e1f2"}


def test_checking_pawn_captured_en_passant() -> None:
    # d7d5 checks the e4 king; only exd6 e.p. and king moves can answer
    b = Board.from_fen("4k3/3p4/8/4P3/4K3/8/8/8 b - - 0 1")
    play(b, "d7d5")
    assert b.in_check()
    assert "e5d6" in {m.to_uci() for m in b.legal_moves()}
    assert not b.is_checkmate()


def test_more_than_two_checkers_is_invariant_violation() -> None:
    b = Board.from_fen("4k3/8/8/8/1b6/5n2/8/r3K3 w - - 0 1")
    assert len(b.checking_pieces()) == 3
    with pytest.raises(InvariantViolation):
        b.is_checkmate()


@pytest.mark.parametrize(
    ("fen", "expected"),
    [
        ("8/8/8/8/8/8/8/k6K w - - 0 1", True),
        ("8/8/8/8/8/8/8/KB5k w - - 0 1", True),
        ("8/8/8/8/8/8/8/KN5k w - - 0 1", True),
        ("8/8/8/8/8/8/8/Kn5k w - - 0 1", True),
        ("5bk1/8/8/8/8/8/8/2B1K3 w - - 0 1", True),
        ("2b1k3/8/8/8/8/8/8/2B1K3 w - - 0 1", False),
        ("5nk1/8/8/8/8/8/8/2N1K3 w - - 0 1", False),
        ("7k/8/8/8/8/8/8/KR6 w - - 0 1", False),
        ("7k/8/8/8/8/8/8/KQ6 w - - 0 1", False),
        ("8/8/8/8/8/8/P7/K6k w - - 0 1", False),
        ("8/8/8/8/8/8/8/KBB4k w - - 0 1", False),
        ("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1", False),
    ],
)
def test_insufficient_material(fen: str, expected: bool) -> None:
    assert Board.from_fen(fen).insufficient_material() is expected


def test_blocker_reach_helpers() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/4P3/1N2K3 w - - 0 1")
    board.pinned_pieces()
    assert attacks.pawn_pushes_no_pin(board, Color.WHITE) == (1 << 20) | (1 << 28)
    # b1 knight: a3, c3, d2
    assert attacks.interposer_reach(board, Color.WHITE) == (1 << 16) | (1 << 18) | (1 << 11)


def test_pinned_pieces_cannot_block() -> None:
    board = Board.from_fen("4k3/4r3/8/8/8/8/4N3/4K3 w - - 0 1")
    assert board.pinned_pieces() == 1 << 12
    assert attacks.interposer_reach(board, Color.WHITE) == 0


def test_reach_helpers_require_pin_analysis() -> None:
    board = Board.from_fen("4k3/8/8/8/8/8/4P3/4K3 w - - 0 1")
    with pytest.raises(InvariantViolation):
        attacks.pawn_pushes_no_pin(board, Color.WHITE)
