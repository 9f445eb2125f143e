"""Unevaluated argument slots and the call frames of lazy functions.

A function wrapped with `lazy` is called with a CallFrame instead of
evaluated arguments. Each argument sits in the frame as a Promise: the
expression the caller wrote plus the caller's environment. The callee may
capture a promise as a Quosure, or force it to get its value. Once forced,
a slot can no longer be captured.
"""

from __future__ import annotations

from typing import Callable, Optional, Union

from quasi import Value, EvaluatorFn
from quasi.errors import QuasiArityError, QuasiCaptureError
from quasi.types.environment import Environment
from quasi.types.nodes import Node
from quasi.types.quosure import Quosure

SlotKey = Union[int, str]


class Promise:
    __slots__ = ("expr", "env", "forced", "_value")

    def __init__(self, expr: Node, env: Environment):
        self.expr = expr
        self.env = env
        self.forced = False
        self._value: Value = None

    def force(self, evaluate_fn: EvaluatorFn) -> Value:
        if not self.forced:
            self._value = evaluate_fn(self.expr, self.env)
            self.forced = True
        return self._value

    def capture(self) -> Quosure:
        if self.forced:
            raise QuasiCaptureError(
                f"Cannot capture argument '{self.expr}': it has already been evaluated",
                self.expr.position,
            )
        return Quosure(self.expr, self.env)

    def __repr__(self) -> str:
        state = f"value={self._value!r}" if self.forced else "unforced"
        return f"<promise {self.expr} {state}>"


class CallFrame:
    """The argument slots of one call to a lazy function."""

    __slots__ = ("name", "promises", "names", "env", "evaluate_fn", "active")

    def __init__(
        self,
        name: str,
        promises: list[Promise],
        names: tuple[Optional[str], ...],
        env: Environment,
        evaluate_fn: EvaluatorFn,
    ):
        self.name = name
        self.promises = promises
        self.names = names or (None,) * len(promises)
        self.env = env
        self.evaluate_fn = evaluate_fn
        self.active = True

    def __len__(self) -> int:
        return len(self.promises)

    def has(self, key: SlotKey) -> bool:
        if isinstance(key, int):
            return -len(self.promises) <= key < len(self.promises)
        return key in self.names

    def slot(self, key: SlotKey) -> Promise:
        if isinstance(key, int):
            if not self.has(key):
                raise QuasiArityError(f"{self.name}() has no argument {key}: it was given {len(self)}")
            return self.promises[key]
        for n, p in zip(self.names, self.promises):
            if n == key:
                return p
        raise QuasiArityError(f"{self.name}() was not given an argument named '{key}'")

    def capture(self, key: SlotKey) -> Quosure:
        if not self.active:
            raise QuasiCaptureError(f"Cannot capture argument {key!r}: the call to {self.name}() has returned")
        return self.slot(key).capture()

    def force(self, key: SlotKey) -> Value:
        return self.slot(key).force(self.evaluate_fn)

    def values(self) -> tuple[list[Value], dict[str, Value]]:
        """Force every slot left to right, splitting positional and named values."""
        args: list[Value] = []
        kwargs: dict[str, Value] = {}
        for n, p in zip(self.names, self.promises):
            v = p.force(self.evaluate_fn)
            if n is None:
                args.append(v)
            else:
                kwargs[n] = v
        return args, kwargs

    def __repr__(self) -> str:
        return f"<frame {self.name}({', '.join(str(p.expr) for p in self.promises)})>"


class LazyFunction:
    """A callable that receives its arguments unevaluated, as a CallFrame."""

    __slots__ = ("fn", "name")

    def __init__(self, fn: Callable[[CallFrame], Value], name: Optional[str] = None):
        self.fn = fn
        self.name = name or fn.__name__

    def __call__(self, frame: CallFrame) -> Value:
        return self.fn(frame)

    def __repr__(self) -> str:
        return f"<lazy function {self.name}>"


def lazy(fn=None, *, name: Optional[str] = None):
    """Decorator marking `fn(frame)` as a function with unevaluated arguments."""
    if fn is None:
        return lambda f: LazyFunction(f, name)
    return LazyFunction(fn, name)
