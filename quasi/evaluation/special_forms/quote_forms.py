from __future__ import annotations

from typing import Optional

from quasi import Value
from quasi.errors import QuasiArityError, QuasiCaptureError, QuasiTypeError
from quasi.evaluation.substitute import interpolate, resolve_quosure
from quasi.types.nodes import Node, Identifier, Call
from quasi.types.promise import CallFrame, Promise, lazy
from quasi.types.quosure import Quosure


def _single(frame: CallFrame) -> Node:
    if len(frame) != 1:
        raise QuasiArityError(f"{frame.name} expects exactly 1 argument, got {len(frame)}")
    return frame.capture(0).expr


def _interpolated_args(frame: CallFrame) -> tuple[list[Node], list[Optional[str]]]:
    # Rebuild the call so that `!!!` arguments splice into the sequence.
    call = Call(Identifier(frame.name), tuple(p.expr for p in frame.promises), frame.names)
    call = interpolate(call, frame.env, frame.evaluate_fn)
    return list(call.args), list(call.arg_names())


def _collect(verb: str, items: list, names: list[Optional[str]]):
    if all(n is None for n in names):
        return items
    # unnamed elements are keyed by their source text
    out = {}
    for v, n in zip(items, names):
        key = n if n is not None else str(v.expr if isinstance(v, Quosure) else v)
        if key in out:
            raise QuasiArityError(f"{verb}() has more than one element named '{key}'")
        out[key] = v
    return out


@lazy(name="quote")
def quote_form(frame: CallFrame) -> Node:
    """quote(x): the expression exactly as written, markers included."""
    return _single(frame)


@lazy(name="expr")
def expr_form(frame: CallFrame) -> Node:
    """expr(x): the expression with its `!!` and `!!!` markers resolved here."""
    return interpolate(_single(frame), frame.env, frame.evaluate_fn)


@lazy(name="exprs")
def exprs_form(frame: CallFrame) -> Value:
    items, names = _interpolated_args(frame)
    return _collect(frame.name, items, names)


@lazy(name="quo")
def quo_form(frame: CallFrame) -> Quosure:
    """quo(x): like expr(), bundled with the current environment."""
    return Quosure(interpolate(_single(frame), frame.env, frame.evaluate_fn), frame.env)


@lazy(name="quos")
def quos_form(frame: CallFrame) -> Value:
    items, names = _interpolated_args(frame)
    return _collect(frame.name, [Quosure(e, frame.env) for e in items], names)


def _argument_promise(frame: CallFrame) -> Promise:
    arg = _single(frame)
    if not isinstance(arg, Identifier):
        raise QuasiTypeError(f"{frame.name}() expects the name of a function argument, got {arg}", arg.position)
    where = frame.env.find(arg.name)
    value = where.vars[arg.name] if where is not None else None
    if not isinstance(value, Promise):
        raise QuasiCaptureError(f"'{arg.name}' is not an argument of the enclosing function", arg.position)
    return value


@lazy(name="enquo")
def enquo_form(frame: CallFrame) -> Quosure:
    """enquo(arg): what the caller wrote for `arg`, in the caller's environment."""
    return resolve_quosure(_argument_promise(frame).capture(), evaluate_fn=frame.evaluate_fn)


@lazy(name="enexpr")
def enexpr_form(frame: CallFrame) -> Node:
    return enquo_form(frame).expr
