from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..engine.board import Board, new_board
from ..engine.errors import IllegalMoveError
from ..engine.move import Move
from ..engine.piece import Color
from .players import Player
from .time_control import INFINITE, TimeControl


logger = logging.getLogger(__name__)

PLAYER_JOIN_SECONDS = 1.0


@dataclass(frozen=True)
class Prompt:
    """Message sent to a player: the opponent's last move or a stop request."""

    opp_move: Optional[Move] = None
    stop: bool = False


@dataclass
class MatchResult:
    winner: Optional[Color]
    reason: str
    moves: List[Move] = field(default_factory=list)
    final_fen: str = ""

    @property
    def draw(self) -> bool:
        return self.winner is None

    def moves_uci(self) -> List[str]:
        return [m.to_uci() for m in self.moves]


class Match:
    """Turn-taking loop between two players with a per-player clock.

    Notes:
    - Each player runs on a daemon thread and talks to the match through two
      single-slot queues.
    - The side to move must submit within its remaining time; waiting longer
      forfeits. Submitting an illegal move forfeits too.
    - ``get_board`` and ``time_left`` may be called from player threads.
    """

    def __init__(
        self,
        white: Player,
        black: Player,
        time_control: TimeControl = INFINITE,
        max_moves: Optional[int] = None,
        board: Optional[Board] = None,
    ) -> None:
        self.board = board if board is not None else new_board()
        self.time_control = time_control
        self.max_moves = max_moves
        self.players: Dict[Color, Player] = {Color.WHITE: white, Color.BLACK: black}
        self._time_left: Dict[Color, Optional[float]] = {
            Color.WHITE: time_control.initial_seconds,
            Color.BLACK: time_control.initial_seconds,
        }
        self._prompts: Dict[Color, "queue.Queue[Prompt]"] = {
            c: queue.Queue(maxsize=1) for c in Color
        }
        self._moves: Dict[Color, "queue.Queue[Optional[Move]]"] = {
            c: queue.Queue(maxsize=1) for c in Color
        }
        self._lock = threading.Lock()
        self._turn_started = time.monotonic()
        self._threads: List[threading.Thread] = []

    # --- Client API for players ---
    def get_board(self) -> Board:
        with self._lock:
            return self.board.copy()

    def time_left(self, color: Color) -> Optional[float]:
        """Seconds left on ``color``'s clock, or None without a clock."""
        with self._lock:
            left = self._time_left[color]
            if left is None:
                return None
            if color is self.board.side_to_move:
                return left - (time.monotonic() - self._turn_started)
            return left

    # --- Loop ---
    def _start_players(self) -> None:
        for color, player in self.players.items():
            player.attach(color, self, self._prompts[color], self._moves[color])
            t = threading.Thread(
                target=player.run, name=f"player-{color.name.lower()}", daemon=True
            )
            t.start()
            self._threads.append(t)

    def _prompt(self, color: Color, prompt: Prompt) -> None:
        with self._lock:
            self._turn_started = time.monotonic()
        self._prompts[color].put(prompt)

    def _await_move(self, color: Color) -> Optional[Move]:
        """Block until ``color`` submits a move.

        Raises:
            queue.Empty: If the player's clock runs out first.
        """
        budget = self._time_left[color]
        if budget is None:
            return self._moves[color].get()
        return self._moves[color].get(timeout=max(0.0, budget))

    def _charge_clock(self, color: Color) -> bool:
        """Deduct the elapsed time; return False if the clock went negative."""
        with self._lock:
            left = self._time_left[color]
            if left is None:
                return True
            left -= time.monotonic() - self._turn_started
            if left < 0:
                self._time_left[color] = 0.0
                return False
            self._time_left[color] = left + self.time_control.increment_seconds
            return True

    def _finish(self, winner: Optional[Color], reason: str, moves: List[Move]) -> MatchResult:
        for q in self._prompts.values():
            with contextlib.suppress(queue.Full):
                q.put_nowait(Prompt(stop=True))
        for t in self._threads:
            # A player still thinking past its deadline is left to the daemon flag
            t.join(timeout=PLAYER_JOIN_SECONDS)
        result = MatchResult(
            winner=winner, reason=reason, moves=list(moves), final_fen=self.board.to_fen()
        )
        logger.info(
            "match finished",
            extra={
                "winner": winner.name.lower() if winner is not None else None,
                "reason": reason,
                "plies": len(moves),
                "fen": result.final_fen,
            },
        )
        return result

    def play(self) -> MatchResult:
        """Run the match to completion and return its result."""
        logger.info(
            "match started",
            extra={"time_control": self.time_control.name, "max_moves": self.max_moves},
        )
        self._start_players()
        moves: List[Move] = []
        self._prompt(self.board.side_to_move, Prompt())

        while True:
            color = self.board.side_to_move
            try:
                move = self._await_move(color)
            except queue.Empty:
                return self._finish(color.opposite, f"{color} ran out of time", moves)
            if not self._charge_clock(color):
                return self._finish(color.opposite, f"{color} ran out of time", moves)
            if move is None:
                return self._finish(color.opposite, f"{color} resigned", moves)

            try:
                with self._lock:
                    self.board.move(move)
            except IllegalMoveError as e:
                return self._finish(
                    color.opposite, f"{color} made an invalid move: {e.reason}", moves
                )
            moves.append(move)
            logger.debug(
                "move accepted", extra={"color": color.name.lower(), "move": move.to_uci()}
            )

            if self.board.is_checkmate():
                return self._finish(color, f"{color} won via checkmate", moves)
            if self.board.insufficient_material():
                return self._finish(None, "draw by insufficient mating material", moves)
            if self.max_moves is not None and len(moves) >= self.max_moves:
                return self._finish(None, "move limit reached", moves)

            self._prompt(self.board.side_to_move, Prompt(opp_move=move))
