from __future__ import annotations

from typing import TYPE_CHECKING

from . import attacks, rules
from .errors import InvariantViolation
from .geometry import ATTACK_MAP, BB_SQUARES, DARK_SQUARES, LIGHT_SQUARES, iter_squares
from .move import Move
from .piece import BB, BN, BQ, BR, BP, WB, WN, WP, WQ, WR, king_of, pawn_of

if TYPE_CHECKING:
    from .board import Board


def _king_can_move(board: "Board") -> bool:
    color = board.side_to_move
    king = king_of(color)
    king_sq = board.king_square(color)
    targets = (
        ATTACK_MAP[king][king_sq]
        & ~board.occupancy(color)
        & ~board.attacked_squares(color.opposite)
    )
    return bool(targets)


def _en_passant_escape(board: "Board") -> bool:
    # En passant can both capture a checking pawn and block on the landing square
    ep = board.ep_square
    if ep is None:
        return False
    color = board.side_to_move
    pawn = pawn_of(color)
    for sq in iter_squares(board.bb[pawn] & ATTACK_MAP[pawn_of(color.opposite)][ep]):
        if rules.check_move(board, Move(sq, ep)) is None:
            return True
    return False


def is_checkmate(board: "Board") -> bool:
    """Return True if the side to move is checkmated.

    Raises:
        InvariantViolation: If more than two pieces give check at once.
    """
    if not board.in_check():
        return False
    color = board.side_to_move
    checkers = board.checking_pieces()
    if len(checkers) > 2:
        raise InvariantViolation(f"{len(checkers)} pieces give check at once")

    if _king_can_move(board):
        return False
    if len(checkers) == 2:
        return True

    checker = checkers[0]
    if board.attacked_squares(color, exclude_pinned=True) & BB_SQUARES[checker.square]:
        return False

    block_squares = checker.check_ray & ~BB_SQUARES[checker.square]
    if block_squares:
        reach = attacks.interposer_reach(board, color) | attacks.pawn_pushes_no_pin(board, color)
        if reach & block_squares:
            return False

    return not _en_passant_escape(board)


def insufficient_material(board: "Board") -> bool:
    """Return True for K v K, K+minor v K, and K+B v K+B on same-colored squares."""
    if any(board.bb[p] for p in (WP, WR, WQ, BP, BR, BQ)):
        return False
    white_minors = board.bb[WN] | board.bb[WB]
    black_minors = board.bb[BN] | board.bb[BB]
    minors = (white_minors | black_minors).bit_count()
    if minors <= 1:
        return True
    if minors == 2 and not (board.bb[WN] | board.bb[BN]) and board.bb[WB] and board.bb[BB]:
        bishops = board.bb[WB] | board.bb[BB]
        return not bishops & LIGHT_SQUARES or not bishops & DARK_SQUARES
    return False
