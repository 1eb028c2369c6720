from __future__ import annotations

from typing import Dict

from .board import Board


def perft(board: Board, depth: int) -> int:
    """Compute perft node count for `board` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    Children are produced by copying the board and replaying each legal move
    with ``unsafe_apply``; the original board is left untouched.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1

    moves = board.legal_moves()
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        child = board.copy()
        child.unsafe_apply(m)
        nodes += perft(child, depth - 1)
    return nodes


def divide(board: Board, depth: int) -> Dict[str, int]:
    """Return the perft count below each root move, keyed by UCI text."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out: Dict[str, int] = {}
    for m in board.legal_moves():
        child = board.copy()
        child.unsafe_apply(m)
        out[m.to_uci()] = perft(child, depth - 1)
    return out
