from __future__ import annotations

import random

import pytest

from bitchess.engine.board import Board, new_board

chess = pytest.importorskip("chess")


FENS = [
    "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
    "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
    "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
    "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8",
    "r4rk1/1pp1qppp/p1np1n2/2b1p1B1/2B1P1b1/P1NP1N2/1PP1QPPP/R4RK1 w - - 0 10",
    "8/8/8/KPp4r/8/8/8/7k w - c6 0 1",
    "4k3/8/8/8/1b6/8/8/4K2r w - - 0 1",
]


def ours(board: Board) -> set[str]:
    return {m.to_uci() for m in board.legal_moves()}


def theirs(board: "chess.Board") -> set[str]:
    return {m.uci() for m in board.legal_moves}


@pytest.mark.parametrize("fen", FENS)
def test_legal_moves_agree(fen: str) -> None:
    assert ours(Board.from_fen(fen)) == theirs(chess.Board(fen))


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_random_games_agree(seed: int) -> None:
    rng = random.Random(seed)
    b = new_board()
    ref = chess.Board()
    for _ in range(60):
        expected = theirs(ref)
        assert ours(b) == expected
        assert b.in_check() == ref.is_check()
        assert b.is_checkmate() == ref.is_checkmate()
        assert b.insufficient_material() == _simple_insufficient(ref)
        if not expected:
            break
        uci = rng.choice(sorted(expected))
        ref.push_uci(uci)
        b.move(next(m for m in b.legal_moves() if m.to_uci() == uci))
        assert b.to_fen().split()[:3] == ref.fen().split()[:3]


def _simple_insufficient(ref: "chess.Board") -> bool:
    # python-chess also calls some K+N+N positions drawn; compare on our rule set
    pieces = ref.piece_map().values()
    non_kings = [p for p in pieces if p.piece_type != chess.KING]
    if any(p.piece_type in (chess.PAWN, chess.ROOK, chess.QUEEN) for p in non_kings):
        return False
    if len(non_kings) <= 1:
        return True
    if len(non_kings) == 2 and all(p.piece_type == chess.BISHOP for p in non_kings):
        colors = {p.color for p in non_kings}
        if len(colors) == 2:
            squares = [sq for sq, p in ref.piece_map().items() if p.piece_type == chess.BISHOP]
            return len({bool(chess.BB_SQUARES[sq] & chess.BB_DARK_SQUARES) for sq in squares}) == 1
    return False
