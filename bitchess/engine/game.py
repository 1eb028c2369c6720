from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .board import Board
from .move import Move
from .piece import Color


@dataclass
class Game:
    """Game wrapper around a board with helper operations.

    Responsibility: own the board, apply validated moves and remember the
    played moves for display. The history is never consulted for rules.
    """

    board: Board
    move_stack: List[Move] = field(default_factory=list)

    @classmethod
    def new(cls) -> "Game":
        return cls(board=Board.startpos())

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        return cls(board=Board.from_fen(fen))

    def to_fen(self) -> str:
        return self.board.to_fen()

    @property
    def side_to_move(self) -> Color:
        return self.board.side_to_move

    def legal_moves(self) -> List[Move]:
        return self.board.legal_moves()

    def apply_move(self, move: Move) -> None:
        # Raises IllegalMoveError and leaves the board untouched on rejection
        self.board.move(move)
        self.move_stack.append(move)

    def last_move(self) -> Optional[Move]:
        return self.move_stack[-1] if self.move_stack else None

    # --- State flags for protocol ---
    def in_check(self) -> bool:
        return self.board.in_check()

    def checkmate(self) -> bool:
        return self.board.is_checkmate()

    def insufficient_material(self) -> bool:
        return self.board.insufficient_material()

    def move_history_uci(self) -> List[str]:
        return [m.to_uci() for m in self.move_stack]
