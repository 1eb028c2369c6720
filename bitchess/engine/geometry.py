from __future__ import annotations

from enum import IntEnum
from typing import Dict, List, Tuple

from .errors import InvariantViolation
from .piece import (
    BB,
    BK,
    BN,
    BP,
    BQ,
    BR,
    PIECE_ORDER,
    WB,
    WK,
    WN,
    WP,
    WQ,
    WR,
    Piece,
)


# Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
BB_SQUARES: Tuple[int, ...] = tuple(1 << sq for sq in range(64))
SQUARE_COORDS: Tuple[Tuple[int, int], ...] = tuple((sq % 8, sq // 8) for sq in range(64))
ALL_SQUARES = (1 << 64) - 1

RANK_1 = 0xFF
RANK_8 = RANK_1 << 56

# a1 is a dark square
DARK_SQUARES = sum(BB_SQUARES[sq] for sq in range(64) if sum(SQUARE_COORDS[sq]) % 2 == 0)
LIGHT_SQUARES = ALL_SQUARES ^ DARK_SQUARES


class Direction(IntEnum):
    N = 0
    NE = 1
    E = 2
    SE = 3
    S = 4
    SW = 5
    W = 6
    NW = 7


DIRECTION_DELTAS: Dict[Direction, Tuple[int, int]] = {
    Direction.N: (0, 1),
    Direction.NE: (1, 1),
    Direction.E: (1, 0),
    Direction.SE: (1, -1),
    Direction.S: (0, -1),
    Direction.SW: (-1, -1),
    Direction.W: (-1, 0),
    Direction.NW: (-1, 1),
}

ORTHOGONALS: Tuple[Direction, ...] = (Direction.N, Direction.E, Direction.S, Direction.W)
DIAGONALS: Tuple[Direction, ...] = (Direction.NE, Direction.SE, Direction.SW, Direction.NW)

SLIDER_DIRECTIONS: Dict[Piece, Tuple[Direction, ...]] = {
    WB: DIAGONALS,
    BB: DIAGONALS,
    WR: ORTHOGONALS,
    BR: ORTHOGONALS,
    WQ: ORTHOGONALS + DIAGONALS,
    BQ: ORTHOGONALS + DIAGONALS,
}

KNIGHT_DELTAS = ((-1, 2), (1, 2), (-2, 1), (2, 1), (-2, -1), (2, -1), (-1, -2), (1, -2))
KING_DELTAS = tuple(DIRECTION_DELTAS.values())


def _on_board(f: int, r: int) -> bool:
    return 0 <= f < 8 and 0 <= r < 8


def _ray_squares(sq: int, direction: Direction) -> Tuple[int, ...]:
    df, dr = DIRECTION_DELTAS[direction]
    f, r = SQUARE_COORDS[sq]
    out: List[int] = []
    while True:
        f += df
        r += dr
        if not _on_board(f, r):
            return tuple(out)
        out.append(r * 8 + f)


def _step_mask(sq: int, deltas) -> int:
    f, r = SQUARE_COORDS[sq]
    mask = 0
    for df, dr in deltas:
        if _on_board(f + df, r + dr):
            mask |= BB_SQUARES[(r + dr) * 8 + f + df]
    return mask


# RAY_SQUARES[direction][sq]: squares walked from sq (exclusive) to the edge, in order
RAY_SQUARES: Tuple[Tuple[Tuple[int, ...], ...], ...] = tuple(
    tuple(_ray_squares(sq, d) for sq in range(64)) for d in Direction
)
RAYS: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(sum(BB_SQUARES[s] for s in RAY_SQUARES[d][sq]) for sq in range(64)) for d in Direction
)


def _slider_mask(sq: int, directions: Tuple[Direction, ...]) -> int:
    mask = 0
    for d in directions:
        mask |= RAYS[d][sq]
    return mask


def _build_tables() -> Tuple[Tuple[Tuple[int, ...], ...], Tuple[Tuple[int, ...], ...]]:
    move_map: List[List[int]] = [[0] * 64 for _ in PIECE_ORDER]
    attack_map: List[List[int]] = [[0] * 64 for _ in PIECE_ORDER]
    for sq in range(64):
        f, r = SQUARE_COORDS[sq]

        knight = _step_mask(sq, KNIGHT_DELTAS)
        king = _step_mask(sq, KING_DELTAS)
        for p in (WN, BN):
            move_map[p][sq] = attack_map[p][sq] = knight
        for p in (WK, BK):
            move_map[p][sq] = attack_map[p][sq] = king

        for p, directions in SLIDER_DIRECTIONS.items():
            move_map[p][sq] = attack_map[p][sq] = _slider_mask(sq, directions)

        # Pawns push and capture on different squares
        attack_map[WP][sq] = _step_mask(sq, ((-1, 1), (1, 1)))
        attack_map[BP][sq] = _step_mask(sq, ((-1, -1), (1, -1)))
        if r < 7:
            move_map[WP][sq] = BB_SQUARES[sq + 8]
            if r == 1:
                move_map[WP][sq] |= BB_SQUARES[sq + 16]
        if r > 0:
            move_map[BP][sq] = BB_SQUARES[sq - 8]
            if r == 6:
                move_map[BP][sq] |= BB_SQUARES[sq - 16]

    # Castling destinations only exist from the kings' home squares
    move_map[WK][4] |= BB_SQUARES[2] | BB_SQUARES[6]
    move_map[BK][60] |= BB_SQUARES[58] | BB_SQUARES[62]

    return (
        tuple(tuple(row) for row in move_map),
        tuple(tuple(row) for row in attack_map),
    )


MOVE_MAP, ATTACK_MAP = _build_tables()


def scan(sq: int, direction: Direction, occupied: int, guide: int = ALL_SQUARES) -> int:
    """Walk from ``sq`` along ``direction`` until blocked or off ``guide``.

    Args:
        sq (int): Starting square (not included in the result).
        direction (Direction): Direction of travel.
        occupied (int): Bitboard of squares that stop the walk.
        guide (int): Mask the walk must stay inside, usually the piece's
            movement mask.

    Returns:
        int: Every empty square traversed plus the first occupied square
            reached, so captures are representable.
    """
    out = 0
    for s in RAY_SQUARES[direction][sq]:
        bit = BB_SQUARES[s]
        if not bit & guide:
            break
        out |= bit
        if bit & occupied:
            break
    return out


def direction_between(a: int, b: int) -> Direction:
    """Return the direction leading from square ``a`` to square ``b``.

    Raises:
        InvariantViolation: If the squares share no rank, file, or diagonal.
    """
    fa, ra = SQUARE_COORDS[a]
    fb, rb = SQUARE_COORDS[b]
    df, dr = fb - fa, rb - ra
    if a == b or not (df == 0 or dr == 0 or abs(df) == abs(dr)):
        raise InvariantViolation(f"squares {a} and {b} are not aligned")
    step = ((df > 0) - (df < 0), (dr > 0) - (dr < 0))
    for d, delta in DIRECTION_DELTAS.items():
        if delta == step:
            return d
    raise InvariantViolation(f"no direction for step {step}")


def ray_between(a: int, b: int) -> int:
    """Return the squares strictly between two aligned squares."""
    out = 0
    for s in RAY_SQUARES[direction_between(a, b)][a]:
        if s == b:
            return out
        out |= BB_SQUARES[s]
    raise InvariantViolation(f"square {b} is not on a ray from {a}")


def lsb_index(bb: int) -> int:
    return (bb & -bb).bit_length() - 1


def iter_squares(bb: int):
    """Yield the index of every set bit, lowest first."""
    while bb:
        lsb = bb & -bb
        yield lsb.bit_length() - 1
        bb ^= lsb
