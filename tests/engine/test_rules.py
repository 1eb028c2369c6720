from __future__ import annotations

import pytest

from bitchess.engine.board import Board, new_board
from bitchess.engine.errors import IllegalMoveError
from bitchess.engine.move import Move, parse_move_text, parse_uci
from bitchess.engine.piece import BK, BP, EMPTY, WK, WP, WQ, WR


def play(board: Board, *ucis: str) -> Board:
    for u in ucis:
        board.move(parse_uci(u, board.side_to_move))
    return board


def reason_for(board: Board, move: Move) -> str:
    with pytest.raises(IllegalMoveError) as excinfo:
        board.move(move)
    return excinfo.value.reason


def test_opening_moves_and_wrong_turn() -> None:
    b = play(new_board(), "e2e4")
    assert reason_for(b, parse_uci("a2a4")) == "cannot move piece of different color of turn"
    play(b, "e7e5", "g1f3")
    assert b.piece_at(21) != EMPTY


def test_rejected_move_leaves_board_untouched() -> None:
    b = new_board()
    fen = b.to_fen()
    with pytest.raises(IllegalMoveError):
        b.move(parse_uci("e2e5"))
    assert b.to_fen() == fen
    assert b.check_move(parse_uci("e2e4")) is None
    assert b.to_fen() == fen


@pytest.mark.parametrize(
    ("fen", "uci", "reason"),
    [
        (None, "e3e4", "there must be a piece on the source square"),
        (None, "a1a2", "can't capture piece of same color"),
        (None, "b1b3", "invalid piece movement of: N"),
        (None, "e2e5", "invalid piece movement of: P"),
        (None, "e2d3", "pawn captures can't occur on empty squares"),
        (None, "a1a3", "non-knight pieces are not allowed to jump over other pieces"),
        (None, "c1e3", "non-knight pieces are not allowed to jump over other pieces"),
        (
            "rnbqkbnr/pppp1ppp/8/4p3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq e6 0 2",
            "e4e5",
            "can't move a pawn onto a piece",
        ),
        (
            "4k3/4r3/8/8/8/8/4N3/4K3 w - - 0 1",
            "e2c3",
            "can't make a move that leaves king in check",
        ),
        (
            "4k3/8/8/8/8/8/3r4/4K3 w - - 0 1",
            "e1e2",
            "can't make a move that leaves king in check",
        ),
    ],
)
def test_rejection_reasons(fen, uci: str, reason: str) -> None:
    b = Board.from_fen(fen) if fen else new_board()
    assert reason_for(b, parse_uci(uci, b.side_to_move)) == reason


def test_king_is_never_a_capture_target() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/4RK2 b - - 0 1")
    # Hand the move to white without black escaping
    b.side_to_move = b.side_to_move.opposite
    b._invalidate()
    assert b.check_move(parse_uci("e1e8")) == "can't capture the king"
    assert bin(b.bb[BK]).count("1") == 1


def test_king_may_capture_undefended_attacker() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/3r4/4K3 w - - 0 1")
    b.move(parse_uci("e1d2"))
    assert b.piece_at(11) == WK


def test_king_cannot_retreat_along_checking_line() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/8/r3K3 w - - 0 1")
    assert {m.to_uci() for m in b.legal_moves()} == {"e1d2", "e1e2", "e1f2"}


def test_en_passant_capture_removes_pawn() -> None:
    b = play(new_board(), "e2e4", "a7a6", "e4e5", "f7f5")
    play(b, "e5f6")
    assert b.real_piece_at(37) == EMPTY
    assert b.piece_at(45) == WP
    assert not b.bb[BP] & (1 << 37)


def test_en_passant_only_for_one_move() -> None:
    b = play(new_board(), "e2e4", "a7a6", "e4e5", "f7f5", "h2h3", "h7h6")
    assert reason_for(b, parse_uci("e5f6")) == "pawn captures can't occur on empty squares"


def test_en_passant_discovering_rank_check_is_rejected() -> None:
    b = Board.from_fen("8/8/8/KPp4r/8/8/8/7k w - c6 0 1")
    assert reason_for(b, parse_uci("b5c6")) == "can't make a move that leaves king in check"


def test_knight_landing_on_en_passant_square_captures_nothing() -> None:
    b = Board.from_fen("4k3/8/8/4n3/3Pp3/8/8/K7 b - d3 0 1")
    play(b, "e5d3")
    assert b.real_piece_at(19) != EMPTY
    assert b.bb[WP] == 1 << 27


def test_kingside_castling() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    play(b, "e1g1")
    assert b.piece_at(6) == WK
    assert b.piece_at(5) == WR
    assert b.piece_at(7) == EMPTY
    assert b.castling == "kq"
    play(b, "e8c8")
    assert b.to_fen().split()[0] == "2kr3r/8/8/8/8/8/8/R4RK1"
    assert b.castling == ""


@pytest.mark.parametrize(
    ("fen", "uci", "reason"),
    [
        ("r3k2r/8/8/8/8/8/5r2/R3K2R w KQkq - 0 1", "e1g1", "can't castle through check"),
        ("r3k2r/8/8/8/8/8/4r3/R3K2R w KQkq - 0 1", "e1g1", "can't castle out of check"),
        ("r3k2r/8/8/8/8/8/8/R3K2R w kq - 0 1", "e1g1", "white is not allowed to castle kingside"),
        ("r3k2r/8/8/8/8/8/8/R3K2R b KQ - 0 1", "e8c8", "black is not allowed to castle queenside"),
        ("r3k2r/8/8/8/8/8/8/RN2K2R w KQkq - 0 1", "e1c1", "castling path must be empty"),
        ("r3k2r/8/8/8/8/8/8/R3K1nR w KQkq - 0 1", "e1g1", "castling path must be empty"),
        (
            "r3k2r/8/8/8/8/8/8/R3KN1R w KQkq - 0 1",
            "e1g1",
            "non-knight pieces are not allowed to jump over other pieces",
        ),
    ],
)
def test_castling_rejections(fen: str, uci: str, reason: str) -> None:
    b = Board.from_fen(fen)
    assert reason_for(b, parse_uci(uci, b.side_to_move)) == reason


def test_castling_rights_lost_on_rook_moves_and_captures() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    play(b, "h1h7")
    assert b.castling == "Qkq"
    play(b, "a8a1")
    assert b.castling == "k"


def test_rook_captured_on_home_square_loses_right() -> None:
    b = Board.from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    play(b, "h8h1")
    assert b.castling == "Qq"


def test_promotion_rules() -> None:
    fen = "8/P7/8/8/8/8/8/k6K w - - 0 1"
    b = Board.from_fen(fen)
    assert reason_for(b, parse_uci("a7a8")) == "white pawn on 8th rank has to promote to some piece"
    assert (
        reason_for(b, parse_move_text("a7 a8 q"))
        == "can only promote to a piece of the same color as the pawn that moved"
    )
    assert reason_for(b, Move(48, 56, WK)) == "can't promote to a pawn or king"
    assert reason_for(b, Move(48, 56, WP)) == "can't promote to a pawn or king"
    assert reason_for(b, Move(7, 15, WQ)) == "only pawns can promote"

    b.move(parse_move_text("a7 a8 Q"))
    assert b.bb[WP] == 0
    assert b.bb[WQ] == 1 << 56
    assert b.in_check()


def test_promotion_only_on_last_rank() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/4P3/4K3 w - - 0 1")
    assert reason_for(b, Move(12, 20, WQ)) == "white pawn can only promote on 8th rank"


def test_black_promotion_with_capture() -> None:
    b = Board.from_fen("4k3/8/8/8/8/8/1p6/R3K3 b - - 0 1")
    assert reason_for(b, parse_uci("b2a1", b.side_to_move)) == (
        "black pawn on 1st rank has to promote to some piece"
    )
    b.move(parse_uci("b2a1n", b.side_to_move))
    assert b.to_fen().split()[0] == "4k3/8/8/8/8/8/8/n3K3"
    assert b.halfmove_clock == 0
    assert b.fullmove_number == 2


def test_legal_moves_from_start() -> None:
    moves = {m.to_uci() for m in new_board().legal_moves()}
    assert len(moves) == 20
    assert {"e2e4", "g1f3", "b1a3", "h2h3"} <= moves


def test_legal_moves_include_all_promotions() -> None:
    moves = {m.to_uci() for m in Board.from_fen("8/P7/8/8/8/8/8/k6K w - - 0 1").legal_moves()}
    assert {"a7a8q", "a7a8r", "a7a8b", "a7a8n"} <= moves
    assert "a7a8" not in moves


def test_counters() -> None:
    b = play(new_board(), "g1f3")
    assert b.halfmove_clock == 1
    assert b.fullmove_number == 1
    play(b, "g8f6")
    assert b.halfmove_clock == 2
    assert b.fullmove_number == 2
    play(b, "e2e4")
    assert b.halfmove_clock == 0
