from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from . import attacks, rules, terminal
from .apply import apply_move
from .errors import IllegalMoveError, NotationError
from .geometry import BB_SQUARES, lsb_index
from .move import Move, square_to_str, str_to_square
from .piece import (
    BP,
    CHAR_TO_PIECE,
    EMPTY,
    PIECE_ORDER,
    WP,
    Color,
    Piece,
    king_of,
    pieces_of,
)


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


@dataclass
class Board:
    """Board state with bitboards, FEN I/O and lazily derived caches.

    Notes:
    - Squares are 0..63 (a1=0 .. h8=63), rank-major from white's perspective.
    - Every mutation goes through ``_invalidate``; caches are owned by this
      instance and copied by value in ``copy``.
    - Not thread-safe; take a ``copy`` per thread.
    """

    # 12 piece bitboards, indexed by ``Piece``
    bb: List[int]
    side_to_move: Color
    castling: str  # subset of 'KQkq' or ''
    ep_square: Optional[int]  # square index or None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    # derived caches; None means "not computed for the current position"
    _occupancy: List[Optional[int]] = field(
        default_factory=lambda: [None, None], repr=False, compare=False
    )
    _attacked: List[Optional[int]] = field(
        default_factory=lambda: [None, None], repr=False, compare=False
    )
    _pinned: Optional[int] = field(default=None, repr=False, compare=False)
    _pin_lines: Optional[Dict[int, int]] = field(default=None, repr=False, compare=False)
    _checkers: Optional[Tuple[attacks.CheckingPiece, ...]] = field(
        default=None, repr=False, compare=False
    )

    @classmethod
    def startpos(cls) -> "Board":
        """Create a board initialized to the standard chess starting position.

        Returns:
            Board: White to move, all castling rights available.
        """
        return cls.from_fen(STARTPOS_FEN)

    @classmethod
    def from_fen(cls, fen: str) -> "Board":
        """Create a board from a Forsyth–Edwards Notation (FEN) string.

        Args:
            fen (str): FEN string describing the position to load.

        Returns:
            Board: Board instance initialized with state encoded in ``fen``.

        Raises:
            ValueError: If ``fen`` is empty, has the wrong number of fields,
                contains invalid piece placement, castling rights, en passant
                square or move counters, or does not hold exactly one king per
                side, or leave the side not to move in check.
        """
        if not fen or not isinstance(fen, str):
            raise ValueError("FEN must be a non-empty string")
        parts = fen.strip().split()
        if len(parts) != 6:
            raise ValueError("FEN must have 6 fields")
        placement, stm, castling, ep, halfmove, fullmove = parts

        ranks = placement.split("/")
        if len(ranks) != 8:
            raise ValueError("FEN board must have 8 ranks")
        bb = [0] * 12
        for rank_idx, rank in enumerate(ranks[::-1]):  # start from rank 1 (bottom)
            file_idx = 0
            for ch in rank:
                if ch.isdigit():
                    n = int(ch)
                    if n < 1 or n > 8:
                        raise ValueError("invalid empty count in FEN rank")
                    file_idx += n
                else:
                    if ch not in CHAR_TO_PIECE:
                        raise ValueError(f"invalid piece in FEN: {ch!r}")
                    if file_idx >= 8:
                        raise ValueError("too many squares in FEN rank")
                    bb[CHAR_TO_PIECE[ch]] |= BB_SQUARES[rank_idx * 8 + file_idx]
                    file_idx += 1
            if file_idx != 8:
                raise ValueError("rank does not sum to 8 squares in FEN")
        for color in Color:
            if bin(bb[king_of(color)]).count("1") != 1:
                raise ValueError(f"{color} must have exactly one king")

        if stm not in ("w", "b"):
            raise ValueError("side to move must be 'w' or 'b'")

        if castling != "-":
            for ch in castling:
                if ch not in "KQkq":
                    raise ValueError("invalid castling rights")
            castling = "".join(c for c in "KQkq" if c in castling)
        else:
            castling = ""

        ep_square: Optional[int]
        if ep == "-":
            ep_square = None
        else:
            try:
                ep_square = str_to_square(ep)
            except NotationError as e:
                raise ValueError("invalid en passant square") from e
            if ep_square // 8 not in (2, 5):
                raise ValueError("invalid en passant square rank")

        try:
            halfmove_clock = int(halfmove)
            fullmove_number = int(fullmove)
        except ValueError as e:
            raise ValueError("invalid move counters in FEN") from e
        if halfmove_clock < 0 or fullmove_number <= 0:
            raise ValueError("invalid move counters in FEN")

        board = cls(
            bb=bb,
            side_to_move=Color.WHITE if stm == "w" else Color.BLACK,
            castling=castling,
            ep_square=ep_square,
            halfmove_clock=halfmove_clock,
            fullmove_number=fullmove_number,
        )
        # The side that just moved can never have left its own king attacked
        if board.in_check(board.side_to_move.opposite):
            raise ValueError("side not to move is in check")
        return board

    def to_fen(self) -> str:
        """Serialize the current position into a normalized FEN string."""
        ranks_str: List[str] = []
        for rank_idx in range(7, -1, -1):
            run = 0
            row = []
            for file_idx in range(8):
                p = self.real_piece_at(rank_idx * 8 + file_idx)
                if p is EMPTY:
                    run += 1
                    continue
                if run > 0:
                    row.append(str(run))
                    run = 0
                row.append(p.glyph)
            if run > 0:
                row.append(str(run))
            ranks_str.append("".join(row))
        placement = "/".join(ranks_str)

        castling = self.castling if self.castling else "-"
        ep = square_to_str(self.ep_square) if self.ep_square is not None else "-"
        return (
            f"{placement} {self.side_to_move.fen} {castling} {ep} "
            f"{self.halfmove_clock} {self.fullmove_number}"
        )

    # --- Square queries ---
    def real_piece_at(self, sq: int) -> Piece:
        """Return the piece whose bitboard has ``sq`` set, or ``EMPTY``."""
        bit = BB_SQUARES[sq]
        for p in PIECE_ORDER:
            if self.bb[p] & bit:
                return p
        return EMPTY

    def piece_at(self, sq: int) -> Piece:
        """Return the piece on ``sq``, counting the en-passant phantom.

        On the en-passant target square this returns the pawn of the side not
        to move, the pawn that an en-passant capture would take, even though no
        bit is set there.
        """
        if sq == self.ep_square:
            return BP if self.side_to_move is Color.WHITE else WP
        return self.real_piece_at(sq)

    def king_square(self, color: Color) -> int:
        return lsb_index(self.bb[king_of(color)])

    # --- Cached derived state ---
    def occupancy(self, color: Color) -> int:
        cached = self._occupancy[color]
        if cached is None:
            cached = 0
            for p in pieces_of(color):
                cached |= self.bb[p]
            self._occupancy[color] = cached
        return cached

    def occupancy_all(self) -> int:
        return self.occupancy(Color.WHITE) | self.occupancy(Color.BLACK)

    def attacked_squares(self, color: Color, exclude_pinned: bool = False) -> int:
        """Return the squares attacked by ``color``.

        Args:
            color (Color): Attacking side.
            exclude_pinned (bool): Skip pinned pieces and own-occupied squares,
                as used when asking whether a piece can legally capture. Only
                meaningful for the side to move; never cached.
        """
        if exclude_pinned:
            self.pinned_pieces()
            return attacks.attacked_squares_no_pin(self, color)
        cached = self._attacked[color]
        if cached is None:
            cached = attacks.attacked_squares(self, color)
            self._attacked[color] = cached
        return cached

    def in_check(self, color: Optional[Color] = None) -> bool:
        """Return True if ``color`` (default: side to move) is in check."""
        c = self.side_to_move if color is None else color
        return bool(self.bb[king_of(c)] & self.attacked_squares(c.opposite))

    def _analyze(self) -> None:
        checkers, pinned, pin_lines = attacks.checking_pieces(self)
        self._checkers = checkers
        self._pinned = pinned
        self._pin_lines = pin_lines

    def pinned_pieces(self) -> int:
        """Return the bitboard of the side to move's pinned pieces."""
        if self._pinned is None:
            self._analyze()
        assert self._pinned is not None
        return self._pinned

    def pin_line(self, sq: int) -> Optional[int]:
        """Return the squares a pinned piece on ``sq`` may still move to."""
        self.pinned_pieces()
        assert self._pin_lines is not None
        return self._pin_lines.get(sq)

    def checking_pieces(self) -> Tuple[attacks.CheckingPiece, ...]:
        if self._checkers is None:
            self._analyze()
        assert self._checkers is not None
        return self._checkers

    def _invalidate(self) -> None:
        self._occupancy = [None, None]
        self._attacked = [None, None]
        self._pinned = None
        self._pin_lines = None
        self._checkers = None

    def copy(self) -> "Board":
        """Return an independent copy, caches included."""
        return Board(
            bb=list(self.bb),
            side_to_move=self.side_to_move,
            castling=self.castling,
            ep_square=self.ep_square,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
            _occupancy=list(self._occupancy),
            _attacked=list(self._attacked),
            _pinned=self._pinned,
            _pin_lines=dict(self._pin_lines) if self._pin_lines is not None else None,
            _checkers=self._checkers,
        )

    # --- Moves ---
    def check_move(self, move: Move) -> Optional[str]:
        """Return None if ``move`` is legal, otherwise the rejection reason."""
        return rules.check_move(self, move)

    def move(self, move: Move) -> None:
        """Validate and apply ``move`` in place.

        Raises:
            IllegalMoveError: If the move is rejected; the board is unchanged.
        """
        reason = rules.check_move(self, move)
        if reason is not None:
            raise IllegalMoveError(reason)
        apply_move(self, move)

    def unsafe_apply(self, move: Move) -> None:
        """Apply ``move`` in place without validation.

        Used by trusted callers replaying a move another board already accepted.
        """
        apply_move(self, move)

    def legal_moves(self) -> List[Move]:
        return rules.generate_legal_moves(self)

    # --- Status helpers ---
    def is_checkmate(self) -> bool:
        return terminal.is_checkmate(self)

    def insufficient_material(self) -> bool:
        return terminal.insufficient_material(self)

    def render(self) -> str:
        """Return an 8x8 text grid, rank 8 first, ``-`` for empty squares."""
        rows = []
        for rank_idx in range(7, -1, -1):
            rows.append(
                "".join(self.real_piece_at(rank_idx * 8 + f).glyph for f in range(8))
            )
        return "\n".join(rows) + "\n"

    def __str__(self) -> str:
        return self.render()


def new_board() -> Board:
    """Return a board set up at the standard initial position."""
    return Board.startpos()
