import pytest

from quasi.builtin.env_builtin import register
from quasi.data.table import Table
from quasi.interpreter import Interpreter
from quasi.types.environment import Environment


@pytest.fixture
def env():
    """A fresh global environment on top of the builtins."""
    base = Environment(label="base")
    register(base)
    return base.child(label="global")


@pytest.fixture
def interp():
    return Interpreter()


@pytest.fixture
def df():
    return Table(
        {
            "g": ["a", "a", "b", "b", "b"],
            "x": [1, 2, 3, 4, 5],
            "y": [10.0, 20.0, 30.0, 40.0, 50.0],
        }
    )


@pytest.fixture
def data_interp(interp, df):
    interp.define("df", df)
    return interp
