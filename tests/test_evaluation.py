import numpy as np
import pytest
from hypothesis import given, strategies as st

from quasi.capture import quote, quo
from quasi.errors import (
    QuasiArityError, QuasiCallError, QuasiNameError, QuasiTypeError, QuasiUnresolvedUnquoteError,
)
from quasi.evaluation.evaluator import evaluate
from quasi.types.closure import Closure
from quasi.types.nodes import sym, lit
from quasi.types.promise import lazy
from quasi.types.quosure import Quosure

# -----------------------------------------------------
# Fixtures
# -----------------------------------------------------


@pytest.fixture
def values(env):
    env.define("x", 42)
    env.define("y", 100)
    return env


# -----------------------------------------------------
# Tests
# -----------------------------------------------------

def test_self_evaluating_literals(values):
    assert evaluate(lit(1), values) == 1
    assert evaluate(lit(3.14), values) == 3.14
    assert evaluate(lit("hello"), values) == "hello"
    assert evaluate(lit(None), values) is None
    assert evaluate(lit(True), values) is True


def test_identifier_lookup(values):
    assert evaluate(sym("x"), values) == 42
    assert evaluate(sym("y"), values) == 100


@pytest.mark.parametrize(
    "source, expected",
    [
        ("x + y", 142),
        ("x - 2 * 3", 36),
        ("(x - 2) / 4", 10.0),
        ("-x", -42),
        ("x > 10 & y < 10", False),
        ("!(x == 42)", False),
        ('paste("a", "b", sep = "-")', "a-b"),
        ("paste0(x, y)", "42100"),
        ("length(c(1, 2, 3))", 3),
        ("length(NULL)", 0),
        ("is.null(NULL)", True),
        ("sum(c(1, 2), 3)", 6),
        ("max(c(3, 9, 2))", 9),
        ("identity(y)", 100),
        ("(function(a, b) a - b)(10, 4)", 6),
    ]
)
def test_quote_then_evaluate_equals_direct_evaluation(values, source, expected):
    from quasi.reader.parser import parse
    assert evaluate(quote(source), values) == expected
    assert evaluate(parse(source), values) == expected


@given(st.lists(st.integers(min_value=-50, max_value=50), min_size=1, max_size=6))
def test_quoted_arithmetic(numbers):
    from quasi.builtin.env_builtin import register
    from quasi.types.environment import Environment
    env = Environment()
    register(env)
    source = " + ".join(str(n) for n in numbers)
    assert evaluate(quote(source), env) == sum(numbers)


def test_vectorised_operators(values):
    result = evaluate(quote("c(1, 2, 3) * 2"), values)
    assert isinstance(result, np.ndarray)
    assert result.tolist() == [2, 4, 6]
    assert evaluate(quote("c(1, 5) > 2 & TRUE"), values).tolist() == [False, True]


def test_unbound_identifier(values):
    with pytest.raises(QuasiNameError) as exc:
        evaluate(quote("x + nope"), values)
    assert exc.value.name == "nope"
    assert "nope" in str(exc.value)
    assert exc.value.position.column == 5


def test_call_of_non_function(values):
    with pytest.raises(QuasiCallError) as exc:
        evaluate(quote("x(1)"), values)
    assert "'x' is not a function" in str(exc.value)
    assert exc.value.position is not None


def test_unresolved_unquote(values):
    with pytest.raises(QuasiUnresolvedUnquoteError):
        evaluate(quote("!!x + 1"), values)
    with pytest.raises(QuasiUnresolvedUnquoteError):
        evaluate(quote("list(!!!xs)"), values)


def test_markers_are_fine_when_not_evaluated(values):
    assert evaluate(quote("quote(f(!!x))"), values) == quote("f(!!x)")


def test_callee_errors_propagate(values):
    def explode(_):
        raise ZeroDivisionError("inner")

    values.define("explode", explode)
    with pytest.raises(ZeroDivisionError, match="inner"):
        evaluate(quote("explode(1)"), values)


def test_numeric_type_errors(values):
    with pytest.raises(QuasiTypeError, match="must be numbers"):
        evaluate(quote('1 + "a"'), values)


def test_arguments_evaluated_left_to_right(values):
    seen = []

    def note(v):
        seen.append(v)
        return v

    values.define("note", note)
    evaluate(quote('paste(note("1"), sep = note("-"), note("3"))'), values)
    assert seen == ["1", "-", "3"]


def test_evaluate_quosure_uses_its_environment(values):
    other = values.child()
    other.define("x", -1)
    assert evaluate(quo("x", other), values) == -1
    assert evaluate(Quosure(sym("x")), values) == 42


def test_evaluate_requires_an_environment():
    with pytest.raises(QuasiTypeError):
        evaluate(sym("x"))
    with pytest.raises(QuasiTypeError):
        evaluate(42, None)


def test_lazy_functions_receive_promises(values):
    @lazy
    def count_args(frame):
        return len(frame)

    values.define("count_args", count_args)
    assert evaluate(quote("count_args(never_bound, also_not)"), values) == 2


def test_promises_are_forced_once(interp):
    calls = []
    interp.define("tick", lambda: calls.append(1) or 1)
    assert interp.eval("twice <- function(v) v + v; twice(tick())")[-1] == 2
    assert calls == [1]


def test_unused_arguments_are_never_evaluated(interp):
    assert interp.eval("first <- function(a, b) a; first(1, undefined_name)")[-1] == 1


def test_closures_are_lexically_scoped(interp):
    result = interp.eval("""
        k <- 1
        adder <- function(k) function(v) v + k
        add10 <- adder(10)
        add10(5)
    """)
    assert result[-1] == 15


def test_closure_named_arguments(interp):
    interp.eval("f <- function(a, b) a - b")
    assert interp.eval("f(b = 1, 10)") == 9
    assert interp.eval("f(b = 1, a = 3)") == 2


@pytest.mark.parametrize(
    "source, message",
    [
        ("f(1)", "missing argument"),
        ("f(1, 2, 3)", "Too many arguments"),
        ("f(1, c = 2)", "unexpected argument 'c'"),
        ("f(a = 1, a = 2)", "more than once"),
    ]
)
def test_closure_arity(interp, source, message):
    interp.eval("f <- function(a, b) a - b")
    with pytest.raises(QuasiArityError, match=message):
        interp.eval(source)


def test_closure_takes_its_name(interp):
    f = interp.eval("sq <- function(v) v * v")
    assert isinstance(f, Closure)
    assert f.name == "sq"
    assert str(f) == "function(v) v * v"
