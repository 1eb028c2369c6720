from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List, Optional

import uvicorn
from pydantic import ValidationError

from ..config import ENV_PREFIX, Settings, load_settings
from ..match.match import Match, MatchResult
from ..match.players import InteractivePlayer, Player, RandomPlayer
from ..match.time_control import time_control_by_name


logger = logging.getLogger(__name__)

PLAYER_KINDS = ("human", "random")


def _make_player(kind: str, seed: Optional[int]) -> Player:
    if kind == "human":
        return InteractivePlayer()
    return RandomPlayer(seed=seed)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bitchess", description="Bitboard chess rules engine")
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    play = sub.add_parser("play", help="Play a match in the terminal")
    play.add_argument("--white", choices=PLAYER_KINDS, default="human")
    play.add_argument("--black", choices=PLAYER_KINDS, default="random")
    play.add_argument("--time-control", default=None, help="infinite or 3min")
    play.add_argument("--seed", type=int, default=None, help="Seed for random players")
    play.add_argument("--max-moves", type=int, default=None, help="Stop after this many plies")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def run_play(settings: Settings, white: str, black: str, seed: Optional[int]) -> MatchResult:
    match = Match(
        _make_player(white, seed),
        # Offset so two random players with one seed do not mirror each other
        _make_player(black, None if seed is None else seed + 1),
        time_control=time_control_by_name(settings.time_control),
        max_moves=settings.max_moves,
    )
    result = match.play()
    print(match.board.render())
    if result.winner is None:
        print(f"Draw: {result.reason}")
    else:
        print(f"{result.winner} wins: {result.reason}")
    return result


def run_serve(settings: Settings) -> None:
    # The factory reloads settings from the environment in the server process
    os.environ[ENV_PREFIX + "LOG_LEVEL"] = settings.log_level
    uvicorn.run(
        "bitchess.protocol.http.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {"log_level": args.log_level.upper() if args.log_level else None}
    if args.command == "play":
        overrides.update(time_control=args.time_control, max_moves=args.max_moves)
    else:
        overrides.update(host=args.host, port=args.port)
    try:
        settings = load_settings(**overrides)
    except ValidationError as e:
        print(f"invalid configuration:\n{e}", file=sys.stderr)
        return 2

    logging.basicConfig(level=settings.log_level)
    if args.command == "play":
        run_play(settings, args.white, args.black, args.seed)
    else:
        run_serve(settings)
    return 0


if __name__ == "__main__":
    sys.exit(main())
