from __future__ import annotations

from quasi import Value
from quasi.errors import QuasiArityError, QuasiTypeError
from quasi.evaluation.substitute import interpolate
from quasi.types.closure import Closure
from quasi.types.nodes import Identifier, Literal, Unquote
from quasi.types.promise import CallFrame, lazy


@lazy(name="<-")
def assign_form(frame: CallFrame) -> Value:
    """name <- value: bind in the environment the assignment is evaluated in.

    The target may be unquoted, `!!name <- value`, to compute the name.
    """
    if len(frame) != 2:
        raise QuasiArityError(f"<- expects a name and a value, got {len(frame)} arguments")
    target = frame.capture(0).expr
    if isinstance(target, Unquote):
        target = interpolate(target, frame.env, frame.evaluate_fn)
    if isinstance(target, Identifier):
        name = target.name
    elif isinstance(target, Literal) and isinstance(target.value, str) and target.value:
        name = target.value
    else:
        raise QuasiTypeError(f"Cannot assign to {target}", target.position)
    value = frame.force(1)
    if isinstance(value, Closure) and value.name == "<anonymous>":
        value.name = name
    frame.env.define(name, value)
    return value
