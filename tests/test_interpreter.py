import logging
import math

import pytest

from quasi.errors import QuasiParseError
from quasi.interpreter import Interpreter
from quasi.types.nodes import sym


def test_empty_input(interp):
    assert interp.eval("") is None
    assert interp.eval("# nothing here") is None


def test_single_and_multiple_results(interp):
    assert interp.eval("1 + 1") == 2
    assert interp.eval("1; 2\n3") == [1, 2, 3]


def test_definitions_persist(interp):
    interp.eval("a <- 40")
    assert interp.eval("a + 2") == 42


def test_definitions_do_not_touch_builtins(interp):
    interp.eval("sum <- 1")
    assert interp.eval("sum") == 1
    assert callable(interp.base.lookup("sum"))


def test_define_from_python(interp):
    interp.define("answer", 42)
    assert interp.eval("answer") == 42


def test_prelude():
    interp = Interpreter(prelude="double <- function(v) v * 2")
    assert interp.eval("double(21)") == 42


def test_parse_errors_surface(interp):
    with pytest.raises(QuasiParseError):
        interp.eval("f(")
    with pytest.raises(QuasiParseError):
        interp.eval('"\\x"')


def test_long_sums(interp):
    assert interp.eval(" + ".join(["1"] * 50)) == 50
    with pytest.raises(QuasiParseError, match="nested deeper than"):
        interp.eval(" + ".join(["1"] * 3000))


def test_non_finite_numbers(interp):
    assert interp.eval("1e999") == math.inf
    assert interp.eval("-Inf < 0") is True
    assert math.isnan(interp.eval("NaN"))
    assert str(interp.eval("x <- 1e999; expr(f(!!x, -!!x))")[-1]) == "f(Inf, -(Inf))"


def test_helpers(interp):
    assert interp.eval('call2("f", 1, n = quote(x))') == interp.eval("quote(f(1, n = x))")
    assert interp.eval('syms(c("a", "b"))') == [sym("a"), sym("b")]
    assert interp.eval("expr_text(quote(a+b))") == "a + b"
    assert interp.eval("expr_text(quo(f( x )))") == "f(x)"
    assert interp.eval("n_distinct(c(1, 1, 2))") == 2


def test_debug_logging(interp, caplog):
    caplog.set_level(logging.DEBUG, logger="quasi")
    interp.eval("f <- function(x) enquo(x); f(a)")
    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("parsed 2 expression(s)") for m in messages)
    assert any(m.startswith("lazy call") for m in messages)
