from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class TimeControl:
    """Per-player clock budget.

    Attributes:
        name (str): Identifier used on the command line.
        initial_seconds (Optional[float]): Starting budget; None means no
            clock at all.
        increment_seconds (float): Seconds added after each accepted move.
    """

    name: str
    initial_seconds: Optional[float]
    increment_seconds: float = 0.0

    @property
    def unlimited(self) -> bool:
        return self.initial_seconds is None


INFINITE = TimeControl("infinite", None)
THREE_MINUTE = TimeControl("3min", 180.0)

TIME_CONTROLS: Dict[str, TimeControl] = {tc.name: tc for tc in (INFINITE, THREE_MINUTE)}


def time_control_by_name(name: str) -> TimeControl:
    """Look up a preset by name.

    Raises:
        ValueError: If ``name`` is not a known preset.
    """
    try:
        return TIME_CONTROLS[name]
    except KeyError:
        raise ValueError(
            f"unknown time control {name!r}; expected one of {sorted(TIME_CONTROLS)}"
        ) from None
