from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from .errors import InvariantViolation
from .geometry import BB_SQUARES
from .move import Move
from .piece import EMPTY, Color, pawn_of, rook_of

if TYPE_CHECKING:
    from .board import Board


# King destination -> rook from|to toggle for that corner
CASTLING_ROOK_MASKS: Dict[int, int] = {
    6: BB_SQUARES[7] | BB_SQUARES[5],
    2: BB_SQUARES[0] | BB_SQUARES[3],
    62: BB_SQUARES[63] | BB_SQUARES[61],
    58: BB_SQUARES[56] | BB_SQUARES[59],
}

# Corner square -> castling right lost when a rook leaves or is captured there
CORNER_RIGHTS: Dict[int, str] = {0: "Q", 7: "K", 56: "q", 63: "k"}


def apply_move(board: "Board", move: Move) -> None:
    """Apply ``move`` to ``board`` in place without validating it.

    Raises:
        InvariantViolation: If the source square is empty.
    """
    piece = board.real_piece_at(move.from_sq)
    if piece is EMPTY:
        raise InvariantViolation(f"no piece on source square {move.from_sq}")
    color = piece.color
    from_bit = BB_SQUARES[move.from_sq]
    to_bit = BB_SQUARES[move.to_sq]

    captured = board.real_piece_at(move.to_sq)
    en_passant = (
        piece.is_pawn
        and captured is EMPTY
        and move.to_sq == board.ep_square
        and move.from_sq % 8 != move.to_sq % 8
    )

    board.bb[piece] ^= from_bit | to_bit
    if captured is not EMPTY:
        board.bb[captured] ^= to_bit
    if en_passant:
        behind = move.to_sq - 8 if color is Color.WHITE else move.to_sq + 8
        board.bb[pawn_of(color.opposite)] &= ~BB_SQUARES[behind]
    if move.promotion is not EMPTY:
        board.bb[piece] ^= to_bit
        board.bb[move.promotion] ^= to_bit

    if piece.is_king and abs(move.to_sq - move.from_sq) == 2:
        board.bb[rook_of(color)] ^= CASTLING_ROOK_MASKS[move.to_sq]

    if piece.is_pawn and abs(move.to_sq - move.from_sq) == 16:
        board.ep_square = (move.from_sq + move.to_sq) // 2
    else:
        board.ep_square = None

    rights = board.castling
    if piece.is_king:
        lost = "KQ" if color is Color.WHITE else "kq"
        rights = "".join(c for c in rights if c not in lost)
    for sq in (move.from_sq, move.to_sq):
        if sq in CORNER_RIGHTS:
            rights = rights.replace(CORNER_RIGHTS[sq], "")
    board.castling = rights

    if piece.is_pawn or captured is not EMPTY or en_passant:
        board.halfmove_clock = 0
    else:
        board.halfmove_clock += 1
    if board.side_to_move is Color.BLACK:
        board.fullmove_number += 1

    board._invalidate()
    board.side_to_move = board.side_to_move.opposite
