"""User-defined functions: `function(x, y) body` evaluated in its defining environment."""

from __future__ import annotations

from io import StringIO

from quasi.errors import QuasiArityError
from quasi.types.environment import Environment
from quasi.types.nodes import Node
from quasi.types.promise import CallFrame


class Closure:
    """A function with formal parameters, a body, and the environment it closes over."""

    __slots__ = ("params", "body", "env", "name")

    def __init__(self, params: list[str], body: Node, env: Environment, name: str = "<anonymous>"):
        self.params: list[str] = params
        self.body: Node = body
        self.env: Environment = env
        self.name = name

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("function(")
            buffer.write(", ".join(self.params))
            buffer.write(") ")
            buffer.write(str(self.body))
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)

    def bind(self, frame: CallFrame) -> Environment:
        """Bind the frame's promises to the formals in a new local environment.

        Named arguments are matched first, the remaining positional arguments
        fill the other formals in order. The promises stay unforced, so the
        body can still capture them with enquo().
        """
        local = Environment(outer=self.env, label=self.name)
        named = {}
        positional = []
        for n, p in zip(frame.names, frame.promises):
            if n is None:
                positional.append(p)
            elif n not in self.params:
                raise QuasiArityError(f"{self.name}() got an unexpected argument '{n}'")
            elif n in named:
                raise QuasiArityError(f"{self.name}() got argument '{n}' more than once")
            else:
                named[n] = p
        free = [param for param in self.params if param not in named]
        if len(positional) > len(free):
            extra = ", ".join(str(p.expr) for p in positional[len(free):])
            raise QuasiArityError(f"Too many arguments to {self.name}(): {extra}")
        if len(positional) < len(free):
            missing = ", ".join(free[len(positional):])
            raise QuasiArityError(f"{self.name}() is missing argument(s): {missing}")
        local.update(named)
        local.update(dict(zip(free, positional)))
        return local
