from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Tuple

from .errors import InvariantViolation
from .geometry import (
    ATTACK_MAP,
    BB_SQUARES,
    MOVE_MAP,
    RAY_SQUARES,
    SLIDER_DIRECTIONS,
    Direction,
    iter_squares,
    scan,
)
from .piece import Color, Piece, king_of, pawn_of, pieces_of

if TYPE_CHECKING:
    from .board import Board


@dataclass(frozen=True)
class CheckingPiece:
    """A piece currently giving check to the side to move.

    Attributes:
        piece (Piece): Kind of the checking piece.
        square (int): Square the checker stands on.
        check_ray (int): The checker's square plus every square between it and
            the king; 0 for contact checks (knight, pawn).
    """

    piece: Piece
    square: int
    check_ray: int


def _slider_reach(sq: int, piece: Piece, occupied: int) -> int:
    out = 0
    for d in SLIDER_DIRECTIONS[piece]:
        out |= scan(sq, d, occupied)
    return out


def attacked_squares(board: "Board", color: Color) -> int:
    """Return every square attacked by ``color``.

    Squares holding ``color``'s own pieces are included (they are defended).
    The opposing king does not block slider scans, so a king in check cannot
    step back along the checking line.
    """
    occupied = board.occupancy_all() & ~board.bb[king_of(color.opposite)]
    out = 0
    for p in pieces_of(color):
        for sq in iter_squares(board.bb[p]):
            if p.is_slider:
                out |= _slider_reach(sq, p, occupied)
            else:
                out |= ATTACK_MAP[p][sq]
    return out


def pseudo_scan(
    board: "Board", sq: int, direction: Direction, defender: Color
) -> Tuple[int, int, bool]:
    """Walk one ray from an attacking slider toward the defending king.

    The first defending piece met is passed through. The walk stops at the
    next occupied square.

    Returns:
        Tuple[int, int, bool]: ``(line, passed, reached_king)`` where ``line``
            holds the slider's square and every square walked before the king,
            ``passed`` is the bitboard of the piece passed through (0 if none)
            and ``reached_king`` tells whether the walk ended on the king.
    """
    king_bit = board.bb[king_of(defender)]
    defenders = board.occupancy(defender) & ~king_bit
    occupied = board.occupancy_all()
    line = BB_SQUARES[sq]
    passed = 0
    for s in RAY_SQUARES[direction][sq]:
        bit = BB_SQUARES[s]
        if bit & king_bit:
            return line, passed, True
        if bit & occupied:
            if passed or not bit & defenders:
                break
            passed = bit
        line |= bit
    return line, passed, False


def checking_pieces(board: "Board") -> Tuple[Tuple[CheckingPiece, ...], int, Dict[int, int]]:
    """Find the pieces checking the side to move and its pinned pieces.

    Returns:
        Tuple: ``(checkers, pinned, pin_lines)`` where ``pinned`` is a bitboard
            and ``pin_lines`` maps each pinned square to the squares it may
            still move on.
    """
    defender = board.side_to_move
    attacker = defender.opposite
    king_bit = board.bb[king_of(defender)]
    checkers: List[CheckingPiece] = []
    pinned = 0
    pin_lines: Dict[int, int] = {}

    for p in pieces_of(attacker):
        for sq in iter_squares(board.bb[p]):
            if not p.is_slider:
                if ATTACK_MAP[p][sq] & king_bit:
                    checkers.append(CheckingPiece(p, sq, 0))
                continue
            for d in SLIDER_DIRECTIONS[p]:
                line, passed, reached_king = pseudo_scan(board, sq, d, defender)
                if not reached_king:
                    continue
                if passed:
                    pinned |= passed
                    pin_lines[passed.bit_length() - 1] = line
                else:
                    checkers.append(CheckingPiece(p, sq, line))
    return tuple(checkers), pinned, pin_lines


def attacked_squares_no_pin(board: "Board", color: Color) -> int:
    """Return the squares ``color`` could legally capture on.

    Pinned pieces contribute nothing, the king only reaches squares the
    opponent does not attack, and squares holding ``color``'s own pieces are
    removed.

    Raises:
        InvariantViolation: If the pin analysis has not run for this position.
    """
    if board._pinned is None:
        raise InvariantViolation("pinned pieces queried before pin analysis")
    pinned = board._pinned if color is board.side_to_move else 0
    occupied = board.occupancy_all()
    out = 0
    for p in pieces_of(color):
        for sq in iter_squares(board.bb[p] & ~pinned):
            if p.is_slider:
                out |= _slider_reach(sq, p, occupied)
            elif p.is_king:
                out |= ATTACK_MAP[p][sq] & ~board.attacked_squares(color.opposite)
            else:
                out |= ATTACK_MAP[p][sq]
    return out & ~board.occupancy(color)


def interposer_reach(board: "Board", color: Color) -> int:
    """Return the empty squares unpinned knights and sliders of ``color`` reach."""
    if board._pinned is None:
        raise InvariantViolation("pinned pieces queried before pin analysis")
    pinned = board._pinned if color is board.side_to_move else 0
    occupied = board.occupancy_all()
    out = 0
    for p in pieces_of(color):
        if not (p.is_slider or p.is_knight):
            continue
        for sq in iter_squares(board.bb[p] & ~pinned):
            if p.is_slider:
                out |= _slider_reach(sq, p, occupied)
            else:
                out |= ATTACK_MAP[p][sq]
    return out & ~occupied


def pawn_pushes_no_pin(board: "Board", color: Color) -> int:
    """Return the empty squares unpinned pawns of ``color`` can push to."""
    if board._pinned is None:
        raise InvariantViolation("pinned pieces queried before pin analysis")
    pinned = board._pinned if color is board.side_to_move else 0
    pawn = pawn_of(color)
    forward = Direction.N if color is Color.WHITE else Direction.S
    occupied = board.occupancy_all()
    out = 0
    for sq in iter_squares(board.bb[pawn] & ~pinned):
        out |= scan(sq, forward, occupied, MOVE_MAP[pawn][sq])
    return out & ~occupied
