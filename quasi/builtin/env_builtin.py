"""Built-in functions for the quasi runtime environment.

This module defines arithmetic, comparison and logical operators, vector and
list constructors, summary functions, helpers for building expressions by
hand, and the `register` function that installs all of them (together with
the special forms and the data verbs) into an environment.

Operators work element-wise on numpy arrays, so the same expression can be
evaluated over plain values and over table columns.
"""
from __future__ import annotations

import operator
from typing import Any

import numpy as np

from quasi import Value
from quasi.data.verbs import VERBS
from quasi.errors import QuasiArityError, QuasiTypeError
from quasi.evaluation.special_forms import SPECIAL_FORMS
from quasi.printer import deparse
from quasi.types.environment import Environment
from quasi.types.nodes import Identifier, Call
from quasi.types.quosure import Quosure
from quasi.evaluation.substitute import as_node, as_node_sequence


def _numeric(name: str, fn):
    def op(*args):
        try:
            return fn(*args)
        except TypeError:
            raise QuasiTypeError(f"Arguments to {name} must be numbers, got "
                                 f"{', '.join(type(a).__name__ for a in args)}") from None
    op.__name__ = name
    return op


def sub(*args: Value) -> Value:
    if len(args) == 1:
        return -args[0]
    if len(args) == 2:
        return args[0] - args[1]
    raise QuasiArityError(f"- takes 1 or 2 arguments, got {len(args)}")


def _python_bools(*args: Value) -> bool:
    return all(isinstance(a, bool) for a in args)


def logical_and(a: Value, b: Value) -> Value:
    if _python_bools(a, b):
        return a and b
    return np.logical_and(a, b)


def logical_or(a: Value, b: Value) -> Value:
    if _python_bools(a, b):
        return a or b
    return np.logical_or(a, b)


def logical_not(a: Value) -> Value:
    if _python_bools(a):
        return not a
    return np.logical_not(a)


# -------------------------------
# Vectors and lists
# -------------------------------
def combine(*args: Value) -> np.ndarray:
    """c(...): concatenate scalars and vectors into one array."""
    if not args:
        return np.asarray([])
    return np.concatenate([np.atleast_1d(np.asarray(a)) for a in args])


def list_builtin(*args: Value, **kwargs: Value) -> Value:
    """list(...): a Python list, or a dict when every element is named."""
    if kwargs and args:
        raise QuasiTypeError("list() elements must be either all named or all unnamed")
    return dict(kwargs) if kwargs else list(args)


def length(x: Value) -> int:
    if x is None:
        return 0
    if isinstance(x, np.ndarray):
        return int(x.size)
    if isinstance(x, (list, tuple, dict)):
        return len(x)
    return 1


def paste(*args: Value, sep: str = " ") -> str:
    return sep.join(str(a) for a in args)


def paste0(*args: Value) -> str:
    return paste(*args, sep="")


# -------------------------------
# Summaries
# -------------------------------
def _item(x: Any) -> Value:
    return x.item() if isinstance(x, np.generic) else x


def mean(x: Value) -> float:
    return _item(np.mean(np.asarray(x)))


def total(*args: Value) -> Value:
    return _item(np.sum(combine(*args)))


def minimum(*args: Value) -> Value:
    return _item(np.min(combine(*args)))


def maximum(*args: Value) -> Value:
    return _item(np.max(combine(*args)))


def n_distinct(x: Value) -> int:
    return len(np.unique(np.asarray(x)))


def desc(x: Value) -> Value:
    """Reverse the sort order of a numeric vector; arrange() also reads desc(x) directly."""
    return -np.asarray(x)


# -------------------------------
# Building expressions by hand
# -------------------------------
def sym(name: str) -> Identifier:
    if isinstance(name, Identifier):
        return name
    if not isinstance(name, str):
        raise QuasiTypeError(f"sym() expects a string, got {type(name).__name__}")
    return Identifier(name)


def syms(*names: Value) -> list[Identifier]:
    if len(names) == 1 and isinstance(names[0], (list, tuple, np.ndarray)):
        names = tuple(names[0])
    return [sym(str(n)) for n in names]


def call2(fn: Value, *args: Value, **kwargs: Value) -> Call:
    """call2("f", a, b = x): build a call expression."""
    head = Identifier(fn) if isinstance(fn, str) else as_node(fn)
    nodes, names = as_node_sequence(list(args))
    named_nodes, named = as_node_sequence(kwargs)
    return Call(head, tuple(nodes + named_nodes), tuple(names + named))


def expr_text(x: Value) -> str:
    if isinstance(x, Quosure):
        x = x.expr
    return deparse(as_node(x))


def identity(x: Value) -> Value:
    return x


def is_null(x: Value) -> bool:
    return x is None


def register(env: Environment) -> None:
    """Register all builtin functions, special forms and data verbs into the given environment."""
    env.update(
        {
            "+": _numeric("+", operator.add),
            "-": _numeric("-", sub),
            "*": _numeric("*", operator.mul),
            "/": _numeric("/", operator.truediv),
            "==": operator.eq,
            "!=": operator.ne,
            "<": operator.lt,
            "<=": operator.le,
            ">": operator.gt,
            ">=": operator.ge,
            "&": logical_and,
            "|": logical_or,
            "!": logical_not,
            "c": combine,
            "list": list_builtin,
            "length": length,
            "paste": paste,
            "paste0": paste0,
            "mean": mean,
            "sum": total,
            "min": minimum,
            "max": maximum,
            "n_distinct": n_distinct,
            "desc": desc,
            "sym": sym,
            "syms": syms,
            "call2": call2,
            "expr_text": expr_text,
            "identity": identity,
            "is.null": is_null,
        }
    )
    env.update(SPECIAL_FORMS)
    env.update(VERBS)
