from __future__ import annotations

from typing import Mapping

from quasi import Value
from quasi.errors import QuasiTypeError
from quasi.types.environment import Environment
from quasi.data.table import Table


def data_mask(data: Value, parent: Environment) -> Environment:
    """An environment binding the columns of `data` on top of `parent`.

    Column names shadow variables of the same name in `parent`. For tables,
    `n()` returns the number of rows being evaluated over.
    """
    mask = Environment(outer=parent, label="data mask")
    if isinstance(data, Table):
        rows = data.nrows
        mask.define("n", lambda: rows)
        mask.update(data.columns)
    elif isinstance(data, Mapping):
        mask.update({str(k): v for k, v in data.items()})
    else:
        raise QuasiTypeError(f"Cannot use a {type(data).__name__} as data")
    return mask
