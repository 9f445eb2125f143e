"""Quoting: turning code into expression trees without evaluating it."""

from __future__ import annotations

import logging
from typing import Optional, Union

from quasi.errors import QuasiCaptureError, QuasiTypeError
from quasi.reader.parser import parse
from quasi.runtime_context import current_frame
from quasi.types.environment import Environment
from quasi.types.nodes import Node
from quasi.types.promise import CallFrame, SlotKey
from quasi.types.quosure import Quosure

logger = logging.getLogger(__name__)


def quote(code: Union[str, Node]) -> Node:
    """Return the expression tree for `code`. Markers are kept as written."""
    if isinstance(code, Node):
        return code
    if not isinstance(code, str):
        raise QuasiTypeError(f"quote expects source text, got {type(code).__name__}")
    return parse(code)


def quo(code: Union[str, Node], env: Optional[Environment] = None) -> Quosure:
    """Quote `code` and bundle it with the environment it should be evaluated in."""
    return Quosure(quote(code), env)


def capture_argument(slot: SlotKey, frame: Optional[CallFrame] = None) -> Quosure:
    """Capture what the caller wrote for argument `slot` of a lazy call.

    With no explicit frame, the innermost lazy call currently running is used.
    The slot is not forced, so capturing it again yields an equal quosure.
    """
    if frame is None:
        frame = current_frame()
    if frame is None:
        raise QuasiCaptureError(f"Cannot capture argument {slot!r} outside of a function call")
    captured = frame.capture(slot)
    logger.debug("captured %s argument %r: %s", frame.name, slot, captured.expr)
    return captured
