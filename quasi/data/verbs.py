"""Data-manipulation verbs built on quoting.

Every verb is a lazy function. The first argument is forced to get the
table; the remaining arguments are captured as quosures (after resolving
their `!!` and `!!!` markers in the caller's environment) and evaluated in a
data mask, so bare column names work and so does anything the caller can see:

    filter(df, x > threshold)
    mutate(df, y = x * 2, z = y + 1)
    summarise(group_by(df, g), total = sum(x), rows = n())

On a grouped table, filter, mutate and summarise evaluate their expressions
once per group.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from quasi import Value
from quasi.data.mask import data_mask
from quasi.data.table import Table
from quasi.errors import QuasiArityError, QuasiNameError, QuasiTypeError
from quasi.evaluation.substitute import interpolate
from quasi.types.nodes import Node, Identifier, Literal, Call
from quasi.types.promise import CallFrame, lazy
from quasi.types.quosure import Quosure

logger = logging.getLogger(__name__)

DESC = Identifier("desc")
MINUS = Identifier("-")


def _table(frame: CallFrame) -> Table:
    if not len(frame):
        raise QuasiArityError(f"{frame.name}() needs a table as its first argument")
    df = frame.force(0)
    if not isinstance(df, Table):
        raise QuasiTypeError(f"{frame.name}() expects a table, got {type(df).__name__}")
    return df


def _quosures(frame: CallFrame) -> list[tuple[Optional[str], Quosure]]:
    """The arguments after the table, markers resolved, as (name, quosure) pairs."""
    rest = Call(Identifier(frame.name), tuple(p.expr for p in frame.promises[1:]), frame.names[1:])
    rest = interpolate(rest, frame.env, frame.evaluate_fn)
    return [(n, Quosure(e, frame.env)) for e, n in zip(rest.args, rest.arg_names())]


def _eval(frame: CallFrame, df: Table, q: Quosure, extra: Optional[dict] = None) -> Value:
    mask = data_mask(df, q.env)
    if extra:
        mask = mask.child(extra, label="summaries")
    return frame.evaluate_fn(q.expr, mask)


def _column(frame: CallFrame, df: Table, q: Quosure, name: str) -> np.ndarray:
    """Evaluate `q` to a full column, group by group when `df` is grouped."""
    # an empty grouped table has no groups, so evaluate once to keep the dtype
    if not df.groups or not df.nrows:
        return df.broadcast(_eval(frame, df, q), name)
    positions, parts = [], []
    for _, rows in df.group_indices():
        part = df.take(rows)
        positions.append(rows)
        parts.append(part.broadcast(_eval(frame, part, q), name))
    values = np.concatenate(parts)
    result = np.empty_like(values)
    result[np.concatenate(positions)] = values
    return result


def _column_name(expr: Node, verb: str) -> str:
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, Literal) and isinstance(expr.value, str):
        return expr.value
    raise QuasiTypeError(f"{verb}() expects column names, got {expr}", expr.position)


def _scalar(value: Value, name: str):
    arr = np.asarray(value)
    if arr.size != 1:
        raise QuasiTypeError(f"Summary '{name}' must be a single value, got {arr.size}")
    return arr.reshape(()).item()


@lazy(name="filter")
def filter_verb(frame: CallFrame) -> Table:
    """filter(df, cond, ...): keep the rows where every condition is TRUE."""
    df = _table(frame)
    keep = np.ones(df.nrows, dtype=bool)
    for name, q in _quosures(frame):
        if name is not None:
            raise QuasiTypeError(f"filter() conditions must not be named: did you mean {name} == {q.expr}?")
        cond = _column(frame, df, q, str(q.expr))
        if cond.dtype != bool:
            raise QuasiTypeError(f"filter() condition {q.expr} must be logical, got {cond.dtype}")
        keep &= cond
    logger.debug("filter kept %d of %d rows", int(keep.sum()), df.nrows)
    return df.take(keep)


@lazy(name="mutate")
def mutate_verb(frame: CallFrame) -> Table:
    """mutate(df, name = expr, ...): add or replace columns, left to right."""
    df = _table(frame)
    for name, q in _quosures(frame):
        name = name or str(q.expr)
        df = df.with_column(name, _column(frame, df, q, name))
    return df


@lazy(name="select")
def select_verb(frame: CallFrame) -> Table:
    """select(df, a, b, new = old, -c): keep, rename or drop columns."""
    df = _table(frame)
    keep: list[str] = []
    drop: set[str] = set()
    rename: dict[str, str] = {}
    for name, q in _quosures(frame):
        expr = q.expr
        if isinstance(expr, Call) and expr.fn == MINUS and len(expr.args) == 1:
            drop.add(_column_name(expr.args[0], "select"))
            continue
        col = _column_name(expr, "select")
        if col not in df:
            raise QuasiNameError(col, expr.position)
        keep.append(col)
        if name is not None:
            rename[col] = name
    if not keep:
        keep = df.column_names
    missing = drop.difference(df.column_names)
    if missing:
        raise QuasiNameError(sorted(missing)[0])
    return df.select([c for c in keep if c not in drop], rename)


@lazy(name="summarise")
def summarise_verb(frame: CallFrame) -> Table:
    """summarise(df, name = expr, ...): one row per group of summary values."""
    df = _table(frame)
    specs = [(name or str(q.expr), q) for name, q in _quosures(frame)]
    out: dict[str, list] = {g: [] for g in df.groups}
    for name, _ in specs:
        out[name] = []
    for key, rows in df.group_indices():
        part = df.take(rows)
        for g, k in zip(df.groups, key):
            out[g].append(k)
        # later summaries can refer to earlier ones
        done: dict[str, Value] = {}
        for name, q in specs:
            done[name] = _scalar(_eval(frame, part, q, done), name)
            out[name].append(done[name])
    return Table(out)


@lazy(name="arrange")
def arrange_verb(frame: CallFrame) -> Table:
    """arrange(df, a, desc(b)): sort rows, stable, by the given keys in order."""
    df = _table(frame)
    keys = []
    for _, q in _quosures(frame):
        expr, descending = q.expr, False
        if isinstance(expr, Call) and expr.fn == DESC and len(expr.args) == 1:
            expr, descending = expr.args[0], True
        values = frame.evaluate_fn(expr, data_mask(df.ungroup(), q.env))
        _, ranks = np.unique(df.broadcast(values, str(expr)), return_inverse=True)
        keys.append(-ranks if descending else ranks)
    if not keys:
        return df
    # np.lexsort sorts by the last key first
    order = np.lexsort(tuple(reversed(keys)))
    return df.take(order)


@lazy(name="group_by")
def group_by_verb(frame: CallFrame) -> Table:
    """group_by(df, a, b = expr): group by columns, computing new ones if needed."""
    df = _table(frame).ungroup()
    groups: list[str] = []
    for name, q in _quosures(frame):
        if name is None and isinstance(q.expr, (Identifier, Literal)):
            col = _column_name(q.expr, "group_by")
            if col not in df:
                raise QuasiNameError(col, q.expr.position)
        else:
            col = name or str(q.expr)
            df = df.with_column(col, _column(frame, df, q, col))
        groups.append(col)
    return df.group_by(groups)


@lazy(name="ungroup")
def ungroup_verb(frame: CallFrame) -> Table:
    if len(frame) != 1:
        raise QuasiArityError("ungroup() takes only a table")
    return _table(frame).ungroup()


@lazy(name="pull")
def pull_verb(frame: CallFrame) -> np.ndarray:
    """pull(df, col): one column as an array; defaults to the last column."""
    df = _table(frame)
    args = _quosures(frame)
    if len(args) > 1:
        raise QuasiArityError("pull() takes a table and one column")
    if not args:
        if not df.column_names:
            raise QuasiTypeError("pull() on a table without columns")
        return df[df.column_names[-1]]
    expr = args[0][1].expr
    if isinstance(expr, Literal) and isinstance(expr.value, int) and not isinstance(expr.value, bool):
        # 1-based from the left, negative counts from the right
        ncol = len(df.column_names)
        if not 1 <= abs(expr.value) <= ncol:
            raise QuasiArityError(
                f"pull() column {expr.value} is out of range for a table with {ncol} columns", expr.position
            )
        return df[df.column_names[expr.value - 1 if expr.value > 0 else expr.value]]
    col = _column_name(expr, "pull")
    if col not in df:
        raise QuasiNameError(col, expr.position)
    return df[col]


VERBS = {
    "filter": filter_verb,
    "mutate": mutate_verb,
    "select": select_verb,
    "summarise": summarise_verb,
    "summarize": summarise_verb,
    "arrange": arrange_verb,
    "group_by": group_by_verb,
    "ungroup": ungroup_verb,
    "pull": pull_verb,
}
