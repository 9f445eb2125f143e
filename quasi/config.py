from __future__ import annotations
import logging
import os
from typing import Optional

_DEFAULT_MAX_DEPTH = 100
_DEFAULT_LOG_LEVEL = "WARNING"

_TRUTHY = {"1", "true", "yes", "on"}


def int_from_env(var: str, default: int) -> int:
    raw = os.environ.get(var)
    if not raw or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{var} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{var} must be positive, got {value}")
    return value


def flag_from_env(var: str, default: bool = False) -> bool:
    raw = os.environ.get(var)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def get_max_depth() -> int:
    """Deepest expression nesting the reader accepts."""
    return int_from_env("QUASI_MAX_DEPTH", _DEFAULT_MAX_DEPTH)


def get_log_level() -> int:
    name = os.environ.get("QUASI_LOG_LEVEL", _DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    # getLevelName returns a string for unknown names
    return level if isinstance(level, int) else logging.WARNING


def use_color() -> bool:
    return flag_from_env("QUASI_COLOR")


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Attach a stream handler to the package logger for applications and demos."""
    logger = logging.getLogger("quasi")
    logger.setLevel(level if level is not None else get_log_level())
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
