from __future__ import annotations

from quasi.errors import QuasiArityError, QuasiTypeError
from quasi.types.closure import Closure
from quasi.types.nodes import Identifier
from quasi.types.promise import CallFrame, lazy


@lazy(name="function")
def function_form(frame: CallFrame) -> Closure:
    """function(x, y) body: every argument but the last names a parameter."""
    if not len(frame):
        raise QuasiArityError("function requires a body")
    exprs = [frame.capture(i).expr for i in range(len(frame))]
    params = []
    for p in exprs[:-1]:
        if not isinstance(p, Identifier):
            raise QuasiTypeError(f"Function parameters must be names, got {p}", p.position)
        if p.name in params:
            raise QuasiTypeError(f"Parameter '{p.name}' is repeated", p.position)
        params.append(p.name)
    return Closure(params, exprs[-1], frame.env)
