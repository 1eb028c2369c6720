from __future__ import annotations

import os
from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field


ENV_PREFIX = "BITCHESS_"


class Settings(BaseModel):
    """Runtime settings shared by the CLI and the HTTP server.

    Values come from ``BITCHESS_*`` environment variables; command-line flags
    override them.
    """

    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    time_control: Literal["infinite", "3min"] = "infinite"
    max_moves: Optional[int] = Field(default=None, ge=1)


def load_settings(environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> Settings:
    """Build ``Settings`` from the environment plus explicit overrides.

    Args:
        environ: Mapping to read ``BITCHESS_*`` keys from; defaults to
            ``os.environ``.
        **overrides: Values that win over the environment. ``None`` values are
            ignored so unset CLI flags fall through.

    Raises:
        pydantic.ValidationError: If a value is invalid.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {}
    for name in Settings.model_fields:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is not None and raw != "":
            values[name] = raw.upper() if name == "log_level" else raw
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)
