from __future__ import annotations

from quasi import Value
from quasi.data.mask import data_mask
from quasi.errors import QuasiArityError
from quasi.types.nodes import Node
from quasi.types.promise import CallFrame, lazy
from quasi.types.quosure import Quosure


@lazy(name="eval")
def eval_form(frame: CallFrame) -> Value:
    """eval(x, data): evaluate an expression or quosure, optionally over data.

    Quosures are evaluated in their own environment. With `data`, columns are
    looked up first and the environment is consulted for everything else.
    """
    if not 1 <= len(frame) <= 2:
        raise QuasiArityError(f"{frame.name} expects an expression and optional data")
    x = frame.force(0)
    data = None
    if frame.has("data"):
        data = frame.force("data")
    elif len(frame) == 2:
        data = frame.force(1)

    if isinstance(x, Quosure):
        node, env = x.expr, (x.env if x.env is not None else frame.env)
    elif isinstance(x, Node):
        node, env = x, frame.env
    else:
        # already a value
        return x

    if data is not None:
        env = data_mask(data, env)
    return frame.evaluate_fn(node, env)
