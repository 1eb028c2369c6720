from __future__ import annotations

from enum import IntEnum
from typing import Tuple


class Color(IntEnum):
    WHITE = 0
    BLACK = 1

    @property
    def opposite(self) -> "Color":
        return Color.BLACK if self is Color.WHITE else Color.WHITE

    @property
    def fen(self) -> str:
        return "w" if self is Color.WHITE else "b"

    def __str__(self) -> str:
        return "White" if self is Color.WHITE else "Black"

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class Piece(IntEnum):
    """The twelve piece kinds, indexed like the board's bitboard list.

    ``EMPTY`` is the sentinel returned for unoccupied squares; it never
    indexes a bitboard.
    """

    WHITE_PAWN = 0
    WHITE_KNIGHT = 1
    WHITE_BISHOP = 2
    WHITE_ROOK = 3
    WHITE_QUEEN = 4
    WHITE_KING = 5
    BLACK_PAWN = 6
    BLACK_KNIGHT = 7
    BLACK_BISHOP = 8
    BLACK_ROOK = 9
    BLACK_QUEEN = 10
    BLACK_KING = 11
    EMPTY = 12

    @property
    def color(self) -> Color:
        if self is Piece.EMPTY:
            raise ValueError("the empty piece has no color")
        return Color.WHITE if self < Piece.BLACK_PAWN else Color.BLACK

    @property
    def glyph(self) -> str:
        return PIECE_TO_CHAR.get(self, "-")

    @property
    def is_pawn(self) -> bool:
        return self in (Piece.WHITE_PAWN, Piece.BLACK_PAWN)

    @property
    def is_knight(self) -> bool:
        return self in (Piece.WHITE_KNIGHT, Piece.BLACK_KNIGHT)

    @property
    def is_king(self) -> bool:
        return self in (Piece.WHITE_KING, Piece.BLACK_KING)

    @property
    def is_slider(self) -> bool:
        return self in SLIDERS

    def __str__(self) -> str:
        return self.glyph


# Short aliases, used where bitboards are indexed directly
WP, WN, WB, WR, WQ, WK = (
    Piece.WHITE_PAWN,
    Piece.WHITE_KNIGHT,
    Piece.WHITE_BISHOP,
    Piece.WHITE_ROOK,
    Piece.WHITE_QUEEN,
    Piece.WHITE_KING,
)
BP, BN, BB, BR, BQ, BK = (
    Piece.BLACK_PAWN,
    Piece.BLACK_KNIGHT,
    Piece.BLACK_BISHOP,
    Piece.BLACK_ROOK,
    Piece.BLACK_QUEEN,
    Piece.BLACK_KING,
)
EMPTY = Piece.EMPTY

PIECE_ORDER: Tuple[Piece, ...] = (WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK)
WHITE_PIECES: Tuple[Piece, ...] = (WP, WN, WB, WR, WQ, WK)
BLACK_PIECES: Tuple[Piece, ...] = (BP, BN, BB, BR, BQ, BK)
SLIDERS = frozenset((WB, WR, WQ, BB, BR, BQ))

PIECE_TO_CHAR = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}


def pieces_of(color: Color) -> Tuple[Piece, ...]:
    return WHITE_PIECES if color is Color.WHITE else BLACK_PIECES


def pawn_of(color: Color) -> Piece:
    return WP if color is Color.WHITE else BP


def rook_of(color: Color) -> Piece:
    return WR if color is Color.WHITE else BR


def king_of(color: Color) -> Piece:
    return WK if color is Color.WHITE else BK


def promotion_pieces(color: Color) -> Tuple[Piece, ...]:
    """Return the pieces a pawn of ``color`` may promote to, strongest first."""
    if color is Color.WHITE:
        return (WQ, WR, WB, WN)
    return (BQ, BR, BB, BN)
