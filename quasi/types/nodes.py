"""Expression nodes: quasi's representation of unevaluated code.

The variant set is closed: Identifier, Literal, Call, Unquote and Splice.
Nodes are frozen dataclasses, so a tree can be shared freely once built.
Equality is structural; source positions are carried along for error
reporting but never compared.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from quasi.errors import QuasiTypeError
from quasi.types.position import Position

LITERAL_TYPES = (bool, int, float, str, type(None))


@dataclass(frozen=True)
class Node:
    position: Optional[Position] = field(default=None, compare=False, repr=False, kw_only=True)

    def children(self) -> tuple[Node, ...]:
        return ()

    def walk(self) -> Iterator[Node]:
        """Yield this node and all of its descendants in depth-first pre-order."""
        stack: list[Node] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children()))

    def has_markers(self) -> bool:
        return any(isinstance(n, (Unquote, Splice)) for n in self.walk())

    def __str__(self) -> str:
        from quasi.printer import deparse
        return deparse(self)


@dataclass(frozen=True)
class Identifier(Node):
    name: str

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise QuasiTypeError(f"Identifier name must be a non-empty string, got {self.name!r}")


@dataclass(frozen=True, eq=False)
class Literal(Node):
    value: Union[bool, int, float, str, None]

    def __post_init__(self):
        if not isinstance(self.value, LITERAL_TYPES):
            raise QuasiTypeError(f"Cannot make a literal from {type(self.value).__name__}")

    def is_nan(self) -> bool:
        return isinstance(self.value, float) and math.isnan(self.value)

    # TRUE must not compare equal to 1, and NaN literals are all alike
    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Literal)
            and type(self.value) is type(other.value)
            and (self.value == other.value or (self.is_nan() and other.is_nan()))
        )

    def __hash__(self) -> int:
        return hash((Literal, type(self.value), "NaN" if self.is_nan() else self.value))


@dataclass(frozen=True)
class Call(Node):
    fn: Node
    args: tuple[Node, ...] = ()
    # Parallel to args; empty when every argument is positional.
    names: tuple[Optional[str], ...] = ()

    def __post_init__(self):
        args = tuple(self.args)
        names = tuple(self.names) if self.names else ()
        if names and len(names) != len(args):
            raise QuasiTypeError(f"Call has {len(args)} arguments but {len(names)} names")
        if all(n is None for n in names):
            names = ()
        for a in (self.fn, *args):
            if not isinstance(a, Node):
                raise QuasiTypeError(f"Call children must be nodes, got {a!r}")
        object.__setattr__(self, "args", args)
        object.__setattr__(self, "names", names)

    def children(self) -> tuple[Node, ...]:
        return (self.fn, *self.args)

    def arg_names(self) -> tuple[Optional[str], ...]:
        return self.names or (None,) * len(self.args)

    def with_args(self, args, names=()) -> Call:
        return Call(self.fn, tuple(args), tuple(names), position=self.position)


@dataclass(frozen=True)
class Unquote(Node):
    """`!!expr`: replaced by the value of `expr` before evaluation."""

    expr: Node

    def children(self) -> tuple[Node, ...]:
        return (self.expr,)


@dataclass(frozen=True)
class Splice(Node):
    """`!!!expr`: replaced by the elements of `expr`, flattened into the argument list."""

    expr: Node

    def children(self) -> tuple[Node, ...]:
        return (self.expr,)


MARKERS = (Unquote, Splice)


# --- Construction helpers ---

def sym(name: str) -> Identifier:
    return Identifier(name)


def lit(value) -> Literal:
    return Literal(value)


def _node(x) -> Node:
    if isinstance(x, Node):
        return x
    return Literal(x)


def call(fn: Union[str, Node], *args, **kwargs) -> Call:
    """Build a call node; strings name the callee, plain values become literals."""
    head = Identifier(fn) if isinstance(fn, str) else fn
    arg_nodes = [_node(a) for a in args] + [_node(v) for v in kwargs.values()]
    names = [None] * len(args) + list(kwargs)
    return Call(head, tuple(arg_nodes), tuple(names))
