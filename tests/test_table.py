import numpy as np
import pytest

from quasi.data.mask import data_mask
from quasi.data.table import Table
from quasi.errors import QuasiNameError, QuasiTypeError
from quasi.types.environment import Environment


def test_columns_and_shape(df):
    assert df.nrows == len(df) == 5
    assert df.column_names == ["g", "x", "y"]
    assert "x" in df and "z" not in df
    assert list(df) == ["g", "x", "y"]
    assert isinstance(df["y"], np.ndarray)
    with pytest.raises(QuasiNameError):
        df["z"]


def test_columns_must_line_up():
    with pytest.raises(QuasiTypeError, match="has 1 rows, expected 2"):
        Table({"a": [1, 2], "b": [1]})
    with pytest.raises(QuasiTypeError, match="one-dimensional"):
        Table({"a": [[1, 2], [3, 4]]})
    with pytest.raises(QuasiNameError):
        Table({"a": [1]}, groups=["b"])


def test_from_records():
    t = Table.from_records([{"a": 1, "b": "x"}, {"a": 2, "b": "y"}])
    assert t.to_dict() == {"a": [1, 2], "b": ["x", "y"]}
    assert t.records() == [{"a": 1, "b": "x"}, {"a": 2, "b": "y"}]


def test_broadcast(df):
    assert df.broadcast(7).tolist() == [7] * 5
    assert df.broadcast(np.array([1])).tolist() == [1] * 5
    assert df.broadcast([1, 2, 3, 4, 5]).tolist() == [1, 2, 3, 4, 5]
    with pytest.raises(QuasiTypeError):
        df.broadcast([1, 2])


def test_with_column_on_empty_table():
    t = Table().with_column("a", [1, 2, 3])
    assert t.nrows == 3


def test_take_and_select(df):
    assert df.take(np.array([4, 0])).to_dict()["x"] == [5, 1]
    assert df.take(df["x"] > 3).nrows == 2
    renamed = df.group_by(["g"]).select(["g", "x"], {"g": "group"})
    assert renamed.column_names == ["group", "x"]
    assert renamed.groups == ("group",)


def test_group_indices(df):
    groups = df.group_by(["g"]).group_indices()
    assert [k for k, _ in groups] == [("a",), ("b",)]
    assert [rows.tolist() for _, rows in groups] == [[0, 1], [2, 3, 4]]
    assert [rows.tolist() for _, rows in df.group_indices()] == [[0, 1, 2, 3, 4]]


def test_equality(df):
    assert df == Table(df.columns)
    assert df != df.group_by(["g"])
    assert df != df.take(np.array([0]))


def test_repr(df):
    text = repr(df.group_by(["g"]))
    assert text.splitlines()[0] == "<Table 5 x 3 grouped by g>"
    assert text.splitlines()[1].split() == ["g", "x", "y"]


def test_data_mask(df):
    parent = Environment()
    parent.define("x", "shadowed")
    parent.define("k", 3)
    mask = data_mask(df, parent)
    assert mask.lookup("x").tolist() == [1, 2, 3, 4, 5]
    assert mask.lookup("k") == 3
    assert mask.lookup("n")() == 5
    assert data_mask({"a": 1}, parent).lookup("a") == 1
    with pytest.raises(QuasiTypeError):
        data_mask(5, parent)
