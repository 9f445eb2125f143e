from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from quasi.types.promise import CallFrame

# NOTE: For now this is process-global. If threading is introduced,
# consider switching to contextvars or threading.local.
_frames: list["CallFrame"] = []


def push_frame(frame: "CallFrame") -> None:
    _frames.append(frame)


def pop_frame() -> "CallFrame":
    frame = _frames.pop()
    frame.active = False
    return frame


def current_frame() -> Optional["CallFrame"]:
    return _frames[-1] if _frames else None


def frame_depth() -> int:
    return len(_frames)
