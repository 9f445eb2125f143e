"""Core evaluator for quasi expression trees.

Identifiers resolve through the environment chain, literals evaluate to
themselves and calls evaluate the callee and then the arguments, left to
right. Lazy functions and closures are the exception: they receive their
arguments as unforced promises inside a CallFrame, which is what makes
argument capture possible. Reaching an unquote or splice marker is an error;
markers must be substituted before evaluation.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from quasi import Value
from quasi.errors import QuasiCallError, QuasiNameError, QuasiTypeError, QuasiUnresolvedUnquoteError
from quasi.runtime_context import push_frame, pop_frame
from quasi.types.closure import Closure
from quasi.types.environment import Environment
from quasi.types.nodes import Node, Identifier, Literal, Call, Unquote, Splice
from quasi.types.promise import CallFrame, LazyFunction, Promise
from quasi.types.quosure import Quosure

logger = logging.getLogger(__name__)


def evaluate(expr: Union[Node, Quosure], env: Optional[Environment] = None) -> Value:
    """Evaluate a tree in `env`.

    A quosure is evaluated in the environment it carries; `env` is only used
    for quosures captured without one.
    """
    if isinstance(expr, Quosure):
        if expr.env is not None:
            env = expr.env
        expr = expr.expr
    if env is None:
        raise QuasiTypeError(f"No environment to evaluate {expr} in")
    if not isinstance(expr, Node):
        raise QuasiTypeError(f"Cannot evaluate {type(expr).__name__}: expected an expression")
    return evaluate0(expr, env)


def evaluate0(node: Node, env: Environment) -> Value:
    """Single recursive step of evaluation."""
    match node:
        case Literal(value=value):
            return value
        case Identifier(name=name):
            frame = env.find(name)
            if frame is None:
                raise QuasiNameError(name, node.position)
            value = frame.vars[name]
            if isinstance(value, Promise):
                return value.force(evaluate0)
            return value
        case Call():
            return eval_call(node, env)
        case Unquote() | Splice():
            raise QuasiUnresolvedUnquoteError(
                f"Unresolved {'unquote' if isinstance(node, Unquote) else 'splice'} {node}: "
                "markers must be substituted before evaluation",
                node.position,
            )
    raise QuasiTypeError(f"Cannot evaluate {node!r}")


def callee_name(node: Call) -> str:
    return node.fn.name if isinstance(node.fn, Identifier) else str(node.fn)


def eval_call(node: Call, env: Environment) -> Value:
    fn = evaluate0(node.fn, env)

    if isinstance(fn, (LazyFunction, Closure)):
        name = callee_name(node)
        frame = CallFrame(name, [Promise(a, env) for a in node.args], node.arg_names(), env, evaluate0)
        logger.debug("lazy call %s", frame)
        push_frame(frame)
        try:
            if isinstance(fn, Closure):
                return evaluate0(fn.body, fn.bind(frame))
            return fn(frame)
        finally:
            pop_frame()

    if not callable(fn):
        raise QuasiCallError(
            f"'{callee_name(node)}' is not a function (it is {type(fn).__name__})",
            node.position,
        )

    args: list[Value] = []
    kwargs: dict[str, Value] = {}
    for a, n in zip(node.args, node.arg_names()):
        v = evaluate0(a, env)
        if n is None:
            args.append(v)
        else:
            kwargs[n] = v
    return fn(*args, **kwargs)
