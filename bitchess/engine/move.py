from __future__ import annotations

from dataclasses import dataclass

from .errors import NotationError
from .piece import CHAR_TO_PIECE, EMPTY, Color, Piece


# Letters accepted as a promotion piece; the case selects the color.
PROMOTION_LETTERS = "NQBRnqbr"


@dataclass(frozen=True)
class Move:
    """Engine-internal move representation.

    Attributes:
        from_sq (int): Origin square index (0-based).
        to_sq (int): Destination square index (0-based).
        promotion (Piece): Piece the pawn becomes, or ``EMPTY``.
    """

    from_sq: int
    to_sq: int
    promotion: Piece = EMPTY

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``.
        """
        promo = "" if self.promotion is EMPTY else self.promotion.glyph.lower()
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo

    def __str__(self) -> str:
        return self.to_uci()


def parse_uci(uci: str, side: Color = Color.WHITE) -> Move:
    """Parse a UCI move string.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).
        side (Color): Color of the mover; selects the promoted piece's color.

    Returns:
        Move: Parsed move.

    Raises:
        NotationError: If the string has an invalid length, squares, or
            promotion piece.
    """
    if len(uci) not in (4, 5):
        raise NotationError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo = EMPTY
    if len(uci) == 5:
        letter = uci[4].lower()
        if letter not in PROMOTION_LETTERS:
            raise NotationError(f"invalid promotion piece: {letter!r}")
        promo = CHAR_TO_PIECE[letter.upper() if side is Color.WHITE else letter]
    return Move(from_sq, to_sq, promo)


def parse_move_text(text: str, side: Color = Color.WHITE) -> Move:
    """Parse terminal input such as ``"e2 e4"`` or ``"e7 e8 Q"``.

    The optional third token is a promotion letter; upper case means a white
    piece and lower case a black one. A single token is read as UCI for
    ``side``.

    Raises:
        NotationError: If the text cannot be parsed.
    """
    tokens = text.split()
    if len(tokens) == 1:
        return parse_uci(tokens[0], side)
    if len(tokens) not in (2, 3):
        raise NotationError(f"expected 'from to [promotion]', got {text!r}")
    promo = EMPTY
    if len(tokens) == 3:
        letter = tokens[2]
        if len(letter) != 1 or letter not in PROMOTION_LETTERS:
            raise NotationError(f"invalid promotion piece: {letter!r}")
        promo = CHAR_TO_PIECE[letter]
    return Move(str_to_square(tokens[0]), str_to_square(tokens[1]), promo)


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a 0-based square index.

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Zero-based square index.

    Raises:
        NotationError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise NotationError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1]) - 1
    return rank * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a 0-based square index into algebraic notation.

    Raises:
        NotationError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise NotationError(f"invalid square index: {idx}")
    return chr(ord("a") + idx % 8) + str(idx // 8 + 1)
