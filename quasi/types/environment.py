"""Runtime environment for quasi.

The Environment stores bindings of identifier names to evaluated values and
supports nested scopes via an `outer` link. A child frame shadows its parents;
lookups walk outward and never reach into sibling frames.
"""

from __future__ import annotations

from io import StringIO
from typing import Iterator, Mapping, Optional

from quasi import Value
from quasi.errors import QuasiNameError, QuasiTypeError


class Environment:
    """Hierarchical mapping from names to values."""

    __slots__ = ("vars", "outer", "label")

    def __init__(self, outer: Optional[Environment] = None, label: Optional[str] = None):
        self.vars: dict[str, Value] = {}
        self.outer: Environment | None = outer
        self.label = label

    @staticmethod
    def _check_name(name: str) -> str:
        if not isinstance(name, str) or not name:
            raise QuasiTypeError(f"Cannot bind {name!r}: names must be non-empty strings")
        return name

    def define(self, name: str, value: Value) -> None:
        """Bind `name` to `value` in this frame."""
        self.vars[self._check_name(name)] = value

    def update(self, mapping: Mapping[str, Value]) -> None:
        """Bulk-define a mapping of name -> value in the current frame."""
        for k, v in mapping.items():
            self.define(k, v)

    def find(self, name: str) -> Optional[Environment]:
        """Find the nearest environment in the chain that binds `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.outer
        return None

    def set(self, name: str, value: Value) -> None:
        """Update an existing binding for `name` in the environment chain.

        Raises QuasiNameError if the name is not bound anywhere.
        """
        env = self.find(name)
        if env is None:
            raise QuasiNameError(name)
        env.vars[name] = value

    def lookup(self, name: str) -> Value:
        env = self.find(name)
        if env is None:
            raise QuasiNameError(name)
        return env.vars[name]

    def is_bound(self, name: str) -> bool:
        return self.find(name) is not None

    def child(self, bindings: Optional[Mapping[str, Value]] = None, label: Optional[str] = None) -> Environment:
        env = Environment(outer=self, label=label)
        if bindings:
            env.update(bindings)
        return env

    def chain(self) -> Iterator[Environment]:
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.outer

    def _write_vars(self, buffer: StringIO) -> None:
        """Write this frame's variables into the buffer in a compact form."""
        buffer.write("{")
        buffer.write(", ".join(f"{k}: {v!r}" for k, v in self.vars.items()))
        buffer.write("}")

    def __contains__(self, name: str) -> bool:
        return self.is_bound(name)

    def __str__(self) -> str:
        """Human-readable single-frame view with an indicator for parent."""
        with StringIO() as buffer:
            if self.label:
                buffer.write(f"<{self.label}> ")
            self._write_vars(buffer)
            if self.outer is not None:
                buffer.write(" -> ...")
            return buffer.getvalue()

    def __repr__(self) -> str:
        """Detailed chain representation for debugging purposes."""
        frames = []
        for env in self.chain():
            with StringIO() as buffer:
                env._write_vars(buffer)
                frames.append(buffer.getvalue())
        return f"<Environment chain: {' -> '.join(frames)}>"
