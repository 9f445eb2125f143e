"""A small column-oriented table, the data the verbs in quasi.data.verbs work on.

Columns are one-dimensional numpy arrays of equal length, kept in insertion
order. A table may be grouped by some of its columns; grouping only changes
how the verbs evaluate their expressions.
"""

from __future__ import annotations

from io import StringIO
from typing import Iterable, Iterator, Mapping, Optional, Sequence

import numpy as np

from quasi import Value
from quasi.errors import QuasiNameError, QuasiTypeError


class Table:
    __slots__ = ("_columns", "_nrows", "groups")

    def __init__(self, columns: Optional[Mapping[str, Value]] = None, groups: Sequence[str] = ()):
        self._columns: dict[str, np.ndarray] = {}
        self._nrows = 0
        for i, (name, values) in enumerate((columns or {}).items()):
            arr = np.asarray(values)
            if arr.ndim != 1:
                raise QuasiTypeError(f"Column '{name}' must be one-dimensional, got shape {arr.shape}")
            if i == 0:
                self._nrows = len(arr)
            elif len(arr) != self._nrows:
                raise QuasiTypeError(f"Column '{name}' has {len(arr)} rows, expected {self._nrows}")
            self._columns[str(name)] = arr
        for g in groups:
            if g not in self._columns:
                raise QuasiNameError(g)
        self.groups: tuple[str, ...] = tuple(groups)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Value]]) -> Table:
        records = list(records)
        names: list[str] = []
        for r in records:
            names.extend(k for k in r if k not in names)
        return cls({n: [r.get(n) for r in records] for n in names})

    # --- shape and access ---
    @property
    def nrows(self) -> int:
        return self._nrows

    @property
    def column_names(self) -> list[str]:
        return list(self._columns)

    @property
    def columns(self) -> dict[str, np.ndarray]:
        return dict(self._columns)

    def __len__(self) -> int:
        return self._nrows

    def __contains__(self, name: str) -> bool:
        return name in self._columns

    def __getitem__(self, name: str) -> np.ndarray:
        try:
            return self._columns[name]
        except KeyError:
            raise QuasiNameError(name) from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    # --- construction of new tables ---
    def broadcast(self, values: Value, name: str = "value") -> np.ndarray:
        """Recycle a scalar (or length-one result) to the table's row count."""
        arr = np.asarray(values)
        if arr.ndim == 0:
            arr = arr[np.newaxis]
        if arr.ndim != 1:
            raise QuasiTypeError(f"'{name}' must be one-dimensional, got shape {arr.shape}")
        if len(arr) == self._nrows:
            return arr
        if len(arr) == 1:
            return np.repeat(arr, self._nrows)
        raise QuasiTypeError(f"'{name}' has {len(arr)} values, expected {self._nrows} or 1")

    def with_column(self, name: str, values: Value) -> Table:
        if not self._columns:
            cols = {name: np.atleast_1d(np.asarray(values))}
        else:
            cols = dict(self._columns)
            cols[name] = self.broadcast(values, name)
        return Table(cols, self.groups)

    def take(self, index: Value) -> Table:
        """Rows selected by a boolean mask or an array of positions."""
        index = np.asarray(index)
        return Table({k: v[index] for k, v in self._columns.items()}, self.groups)

    def select(self, names: Sequence[str], rename: Optional[Mapping[str, str]] = None) -> Table:
        rename = rename or {}
        cols = {rename.get(n, n): self[n] for n in names}
        groups = [rename.get(g, g) for g in self.groups if g in names]
        return Table(cols, groups)

    def group_by(self, names: Sequence[str]) -> Table:
        return Table(self._columns, names)

    def ungroup(self) -> Table:
        return Table(self._columns)

    def group_indices(self) -> list[tuple[tuple, np.ndarray]]:
        """Row positions of every group, ordered by group key."""
        if not self.groups:
            return [((), np.arange(self._nrows))]
        keys = list(zip(*(self._columns[g].tolist() for g in self.groups)))
        positions: dict[tuple, list[int]] = {}
        for i, key in enumerate(keys):
            positions.setdefault(key, []).append(i)
        return [(key, np.asarray(positions[key], dtype=int)) for key in sorted(positions)]

    # --- conversion ---
    def to_dict(self) -> dict[str, list]:
        return {k: v.tolist() for k, v in self._columns.items()}

    def records(self) -> list[dict[str, Value]]:
        cols = self.to_dict()
        return [{k: cols[k][i] for k in cols} for i in range(self._nrows)]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Table):
            return NotImplemented
        return (
            self.column_names == other.column_names
            and self.groups == other.groups
            and all(np.array_equal(self[k], other[k]) for k in self._columns)
        )

    __hash__ = None

    def __repr__(self) -> str:
        with StringIO() as buffer:
            buffer.write(f"<Table {self._nrows} x {len(self._columns)}")
            if self.groups:
                buffer.write(f" grouped by {', '.join(self.groups)}")
            buffer.write(">")
            if self._columns:
                cells = [[k] + [str(x) for x in v.tolist()] for k, v in self._columns.items()]
                widths = [max(len(c) for c in col) for col in cells]
                for row in range(self._nrows + 1):
                    buffer.write("\n")
                    buffer.write("  ".join(col[row].rjust(w) for col, w in zip(cells, widths)))
            return buffer.getvalue()
