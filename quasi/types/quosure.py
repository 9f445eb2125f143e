from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from quasi.errors import QuasiTypeError
from quasi.types.environment import Environment
from quasi.types.nodes import Node


@dataclass(frozen=True)
class Quosure:
    """A quoted expression, optionally bundled with the environment it was written in."""

    expr: Node
    env: Optional[Environment] = None

    def __post_init__(self):
        if not isinstance(self.expr, Node):
            raise QuasiTypeError(f"Quosure expression must be a node, got {self.expr!r}")

    def __str__(self) -> str:
        return f"^{self.expr}"

    def __repr__(self) -> str:
        where = "empty" if self.env is None else hex(id(self.env))
        return f"<quosure expr: {self.expr} env: {where}>"
