from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .apply import apply_move
from .geometry import (
    ATTACK_MAP,
    BB_SQUARES,
    MOVE_MAP,
    RANK_1,
    RANK_8,
    SLIDER_DIRECTIONS,
    iter_squares,
    ray_between,
    scan,
)
from .move import Move
from .piece import EMPTY, Color, Piece, pieces_of, promotion_pieces, rook_of

if TYPE_CHECKING:
    from .board import Board


# (color, king destination) -> (right letter, side name, rook square, squares between)
CASTLING_PATHS: Dict[Tuple[Color, int], Tuple[str, str, int, Tuple[int, ...]]] = {
    (Color.WHITE, 6): ("K", "kingside", 7, (5, 6)),
    (Color.WHITE, 2): ("Q", "queenside", 0, (3, 2, 1)),
    (Color.BLACK, 62): ("k", "kingside", 63, (61, 62)),
    (Color.BLACK, 58): ("q", "queenside", 56, (59, 58, 57)),
}


def _last_rank(color: Color) -> int:
    return RANK_8 if color is Color.WHITE else RANK_1


def _check_castling(board: "Board", move: Move, color: Color) -> Optional[str]:
    letter, side_name, rook_sq, between = CASTLING_PATHS[(color, move.to_sq)]
    if letter not in board.castling or not board.bb[rook_of(color)] & BB_SQUARES[rook_sq]:
        return f"{color.name.lower()} is not allowed to castle {side_name}"
    occupied = board.occupancy_all()
    if any(occupied & BB_SQUARES[sq] for sq in between):
        return "castling path must be empty"
    first_step = between[0]
    scratch = board.copy()
    apply_move(scratch, Move(move.from_sq, first_step))
    if scratch.in_check(color):
        return "can't castle through check"
    if board.in_check(color):
        return "can't castle out of check"
    return None


def _check_promotion(move: Move, piece: Piece, color: Color) -> Optional[str]:
    on_last_rank = bool(BB_SQUARES[move.to_sq] & _last_rank(color))
    rank_name = "8th" if color is Color.WHITE else "1st"
    promo = move.promotion
    if promo is EMPTY:
        if piece.is_pawn and on_last_rank:
            return f"{color.name.lower()} pawn on {rank_name} rank has to promote to some piece"
        return None
    if promo.is_pawn or promo.is_king:
        return "can't promote to a pawn or king"
    if not piece.is_pawn:
        return "only pawns can promote"
    if promo.color is not color:
        return "can only promote to a piece of the same color as the pawn that moved"
    if not on_last_rank:
        return f"{color.name.lower()} pawn can only promote on {rank_name} rank"
    return None


def check_move(board: "Board", move: Move) -> Optional[str]:
    """Run the ordered legality checks for ``move`` against ``board``.

    The caller's board is never mutated; speculative applies happen on
    copies.

    Returns:
        Optional[str]: None when the move is legal, otherwise the reason of
            the first failing check.
    """
    piece = board.real_piece_at(move.from_sq)
    if piece is EMPTY:
        return "there must be a piece on the source square"
    color = piece.color
    target = board.piece_at(move.to_sq)
    to_bit = BB_SQUARES[move.to_sq]

    if target is not EMPTY and target.color is color:
        return "can't capture piece of same color"
    if target.is_king:
        return "can't capture the king"

    if color is not board.side_to_move:
        return "cannot move piece of different color of turn"

    if not (MOVE_MAP[piece][move.from_sq] | ATTACK_MAP[piece][move.from_sq]) & to_bit:
        return f"invalid piece movement of: {piece.glyph}"

    if piece.is_pawn:
        if ATTACK_MAP[piece][move.from_sq] & to_bit and target is EMPTY:
            return "pawn captures can't occur on empty squares"
        if MOVE_MAP[piece][move.from_sq] & to_bit and target is not EMPTY:
            return "can't move a pawn onto a piece"

    if move.from_sq == move.to_sq:
        return "destination square can't be same as source square"

    if not piece.is_knight and ray_between(move.from_sq, move.to_sq) & board.occupancy_all():
        return "non-knight pieces are not allowed to jump over other pieces"

    # The promoted kind never changes whether the mover's king is attacked
    scratch = board.copy()
    apply_move(scratch, Move(move.from_sq, move.to_sq))
    if scratch.in_check(color):
        return "can't make a move that leaves king in check"

    if piece.is_king and abs(move.to_sq - move.from_sq) == 2:
        reason = _check_castling(board, move, color)
        if reason is not None:
            return reason

    return _check_promotion(move, piece, color)


def _candidate_targets(board: "Board", piece: Piece, sq: int, own: int) -> int:
    if piece.is_slider:
        occupied = board.occupancy_all()
        reach = 0
        for d in SLIDER_DIRECTIONS[piece]:
            reach |= scan(sq, d, occupied)
        return reach & ~own
    return (MOVE_MAP[piece][sq] | ATTACK_MAP[piece][sq]) & ~own


def generate_legal_moves(board: "Board") -> List[Move]:
    """Enumerate every legal move for the side to move.

    Candidates come from the geometry tables; pinned pieces are limited to
    their pin line and every candidate is confirmed with ``check_move``.
    """
    color = board.side_to_move
    own = board.occupancy(color)
    pinned = board.pinned_pieces()
    last_rank = _last_rank(color)
    moves: List[Move] = []
    for piece in pieces_of(color):
        for sq in iter_squares(board.bb[piece]):
            targets = _candidate_targets(board, piece, sq, own)
            if pinned & BB_SQUARES[sq]:
                targets &= board.pin_line(sq) or 0
            for to in iter_squares(targets):
                if piece.is_pawn and BB_SQUARES[to] & last_rank:
                    candidates = [Move(sq, to, promo) for promo in promotion_pieces(color)]
                else:
                    candidates = [Move(sq, to)]
                for m in candidates:
                    if check_move(board, m) is None:
                        moves.append(m)
    return moves
