from __future__ import annotations

import logging
import queue
import random
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional, Protocol

from ..engine.board import Board, new_board
from ..engine.errors import NotationError
from ..engine.move import Move, parse_move_text
from ..engine.piece import Color


logger = logging.getLogger(__name__)

Reader = Callable[[], str]
Writer = Callable[[str], None]

RESIGN_WORDS = frozenset(("resign", "quit", "exit"))


class MatchClient(Protocol):
    """What a player may ask of the match it plays in."""

    def get_board(self) -> Board: ...

    def time_left(self, color: Color) -> Optional[float]: ...


class Player(ABC):
    """A participant running on its own thread.

    The match hands each player a prompt queue and a move queue, both with a
    single slot. A prompt carries the opponent's accepted move (None on the
    first prompt) or a stop request. The player keeps a private board and
    replays accepted moves on it.
    """

    def __init__(self) -> None:
        self.color: Color = Color.WHITE
        self.board: Board = new_board()
        self.client: Optional[MatchClient] = None
        self._prompts: Optional["queue.Queue"] = None
        self._moves: Optional["queue.Queue"] = None

    def attach(
        self,
        color: Color,
        client: MatchClient,
        prompts: "queue.Queue",
        moves: "queue.Queue",
    ) -> None:
        self.color = color
        self.client = client
        self.board = client.get_board()
        self._prompts = prompts
        self._moves = moves

    @abstractmethod
    def choose_move(self) -> Optional[Move]:
        """Return the move to play from ``self.board``, or None to resign."""

    def run(self) -> None:
        if self._prompts is None or self._moves is None:
            raise RuntimeError("player must be attached to a match before running")
        logger.debug("player started", extra={"color": self.color.name.lower()})
        while True:
            prompt = self._prompts.get()
            if prompt.stop:
                return
            if prompt.opp_move is not None:
                self.board.unsafe_apply(prompt.opp_move)
            try:
                move = self.choose_move()
            except Exception:
                logger.exception(
                    "player failed to choose a move", extra={"color": self.color.name.lower()}
                )
                move = None
            # An illegal move ends the match, so only a legal one is replayed locally
            if move is not None and self.board.check_move(move) is None:
                self.board.unsafe_apply(move)
            self._moves.put(move)


class RandomPlayer(Player):
    """Plays a uniformly random legal move."""

    def __init__(self, seed: Optional[int] = None) -> None:
        super().__init__()
        self._rng = random.Random(seed)

    def choose_move(self) -> Optional[Move]:
        moves = self.board.legal_moves()
        if not moves:
            return None
        return self._rng.choice(moves)


class ScriptedPlayer(Player):
    """Plays a fixed list of moves in order, then resigns."""

    def __init__(self, moves: Iterable[str]) -> None:
        super().__init__()
        self._script: List[str] = list(moves)

    def choose_move(self) -> Optional[Move]:
        if not self._script:
            return None
        return parse_move_text(self._script.pop(0), self.color)


class InteractivePlayer(Player):
    """Reads moves such as ``e2 e4`` or ``e7 e8 Q`` from a terminal."""

    def __init__(self, reader: Reader = input, writer: Writer = print) -> None:
        super().__init__()
        self._read = reader
        self._write = writer

    def _prompt_line(self) -> str:
        left = self.client.time_left(self.color) if self.client is not None else None
        clock = "" if left is None else f" ({max(0.0, left):.0f}s left)"
        return f"{self.color} to move{clock}, enter 'from to [promotion]':"

    def choose_move(self) -> Optional[Move]:
        self._write(self.board.render())
        while True:
            self._write(self._prompt_line())
            try:
                text = self._read().strip()
            except EOFError:
                return None
            if text.lower() in RESIGN_WORDS:
                return None
            try:
                move = parse_move_text(text, self.color)
            except NotationError as e:
                self._write(f"bad input: {e}")
                continue
            reason = self.board.check_move(move)
            if reason is not None:
                self._write(f"illegal move: {reason}")
                continue
            return move
