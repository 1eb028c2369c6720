from __future__ import annotations


class IllegalMoveError(ValueError):
    """Raised when a move is rejected by the legality validator.

    Attributes:
        reason (str): Human-readable rejection reason.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotationError(ValueError):
    """Raised for malformed square, move, or promotion text."""


class InvariantViolation(RuntimeError):
    """Raised when the engine reaches a state that legal play can never produce."""
