"""Substitution engine: rewrites the unquote and splice markers of a tree.

All three entry points walk the tree once, depth first and in pre-order,
visiting call arguments left to right. The input tree is never modified;
untouched sub-trees are shared with the result.

- unquote: replace matching `!!` markers with one replacement tree.
- splice: replace a matching marker that sits in an argument list with a
  sequence of trees, flattened into that list.
- interpolate: resolve every marker by evaluating its embedded expression,
  the way `expr()` and `quo()` do inside the language.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Callable, Optional, Union

import numpy as np

from quasi import Value, EvaluatorFn
from quasi.errors import QuasiSpliceError, QuasiTypeError
from quasi.types.environment import Environment
from quasi.types.nodes import Node, Identifier, Literal, Call, Unquote, Splice, MARKERS, LITERAL_TYPES
from quasi.types.quosure import Quosure

logger = logging.getLogger(__name__)

Marker = Union[str, Node]


def as_node(value: Value) -> Node:
    """Turn a value into something that can sit inside an expression tree.

    Quosures contribute their expression only; their environment is dropped.
    """
    if isinstance(value, Node):
        return value
    if isinstance(value, Quosure):
        return value.expr
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, LITERAL_TYPES):
        return Literal(value)
    raise QuasiTypeError(f"Cannot unquote a value of type {type(value).__name__} into an expression")


def as_node_sequence(values: Value) -> tuple[list[Node], list[Optional[str]]]:
    """Split a splice replacement into argument nodes and their names."""
    if isinstance(values, Mapping):
        return [as_node(v) for v in values.values()], [str(k) for k in values.keys()]
    if isinstance(values, np.ndarray):
        values = values.tolist()
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        raise QuasiSpliceError(f"Can only splice a list of expressions, got {type(values).__name__}")
    return [as_node(v) for v in values], [None] * len(values)


def _marker_target(marker: Marker) -> Node:
    if isinstance(marker, str):
        return Identifier(marker)
    if isinstance(marker, Node):
        return marker
    raise QuasiTypeError(f"A marker is a name or an expression, got {marker!r}")


def _rebuild_call(node: Call, fn: Node, args: list[Node], names: list[Optional[str]]) -> Call:
    if fn is node.fn and len(args) == len(node.args) and all(a is b for a, b in zip(args, node.args)) \
            and tuple(names) == node.arg_names():
        return node
    return Call(fn, tuple(args), tuple(names), position=node.position)


def _rewrite_marker(node: Node, inner: Node) -> Node:
    if inner is node.expr:
        return node
    return type(node)(inner, position=node.position)


def unquote(tree: Node, marker: Marker, replacement: Value) -> Node:
    """Replace every `!!marker` in `tree` with `replacement`.

    The replacement is inserted as is and is not searched for further markers.
    """
    target = _marker_target(marker)
    new = as_node(replacement)
    count = 0

    def walk(node: Node) -> Node:
        nonlocal count
        match node:
            case Unquote(expr=inner) if inner == target:
                count += 1
                return new
            case Unquote(expr=inner) | Splice(expr=inner):
                return _rewrite_marker(node, walk(inner))
            case Call():
                fn = walk(node.fn)
                return _rebuild_call(node, fn, [walk(a) for a in node.args], list(node.arg_names()))
        return node

    result = walk(tree)
    logger.debug("unquote %s: %d replacement(s) in %s", target, count, tree)
    return result


def splice(tree: Node, marker: Marker, replacement_list: Value) -> Node:
    """Replace the argument `!!!marker` (or `!!marker`) with the elements of `replacement_list`.

    A mapping splices named arguments. An empty list removes the argument.
    Raises QuasiSpliceError if a matching marker is not directly an argument.
    """
    target = _marker_target(marker)
    items, item_names = as_node_sequence(replacement_list)
    count = 0

    def is_target(node: Node) -> bool:
        return isinstance(node, MARKERS) and node.expr == target

    def walk(node: Node) -> Node:
        nonlocal count
        if is_target(node):
            raise QuasiSpliceError(f"Cannot splice {node}: it is not an argument of a call", node.position)
        match node:
            case Unquote(expr=inner) | Splice(expr=inner):
                return _rewrite_marker(node, walk(inner))
            case Call():
                fn = walk(node.fn)
                args: list[Node] = []
                names: list[Optional[str]] = []
                for a, n in zip(node.args, node.arg_names()):
                    if is_target(a):
                        if n is not None:
                            raise QuasiSpliceError(f"Cannot splice into named argument '{n}'", a.position)
                        count += 1
                        args.extend(items)
                        names.extend(item_names)
                    else:
                        args.append(walk(a))
                        names.append(n)
                return _rebuild_call(node, fn, args, names)
        return node

    result = walk(tree)
    logger.debug("splice %s: %d site(s), %d element(s) each", target, count, len(items))
    return result


def interpolate(tree: Node, env: Environment, evaluate_fn: Optional[EvaluatorFn] = None) -> Node:
    """Resolve every marker in `tree` by evaluating its expression in `env`.

    Markers nested inside a marker's expression are resolved first.
    """
    if evaluate_fn is None:
        from quasi.evaluation.evaluator import evaluate as evaluate_fn

    def value_of(marker: Node) -> Value:
        return evaluate_fn(walk(marker.expr), env)

    def walk(node: Node) -> Node:
        match node:
            case Unquote():
                return as_node(value_of(node))
            case Splice():
                raise QuasiSpliceError(f"Cannot splice {node}: it is not an argument of a call", node.position)
            case Call():
                fn = walk(node.fn)
                args: list[Node] = []
                names: list[Optional[str]] = []
                for a, n in zip(node.args, node.arg_names()):
                    if isinstance(a, Splice):
                        if n is not None:
                            raise QuasiSpliceError(f"Cannot splice into named argument '{n}'", a.position)
                        items, item_names = as_node_sequence(value_of(a))
                        args.extend(items)
                        names.extend(item_names)
                    else:
                        args.append(walk(a))
                        names.append(n)
                return _rebuild_call(node, fn, args, names)
        return node

    return walk(tree)


def resolve_quosure(q: Quosure, env: Optional[Environment] = None,
                    evaluate_fn: Optional[Callable] = None) -> Quosure:
    """Interpolate a quosure's expression in its own environment (or `env`)."""
    where = q.env if q.env is not None else env
    if where is None or not q.expr.has_markers():
        return q
    return Quosure(interpolate(q.expr, where, evaluate_fn), q.env)
