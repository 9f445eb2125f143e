import pytest

from quasi.capture import quote
from quasi.errors import QuasiArityError, QuasiTypeError, QuasiSpliceError
from quasi.types.closure import Closure
from quasi.types.nodes import Call, Unquote, sym, lit, call
from quasi.types.quosure import Quosure


def test_quote_keeps_markers(interp):
    assert interp.eval("quote(f(!!x, !!!ys))") == quote("f(!!x, !!!ys)")


def test_quote_arity(interp):
    with pytest.raises(QuasiArityError):
        interp.eval("quote(a, b)")


def test_expr_resolves_markers(interp):
    interp.eval("x <- 1")
    assert interp.eval("expr(f(!!x, y))") == call("f", 1, sym("y"))


def test_expr_with_symbols(interp):
    interp.eval('v <- sym("a")')
    assert interp.eval("expr(!!v + 1)") == quote("a + 1")
    assert interp.eval("expr(!!(v) * 2)") == quote("a * 2")


def test_expr_nested_markers(interp):
    interp.eval('name <- "col"')
    assert interp.eval("expr(f(!!sym(!!name)))") == quote("f(col)")


def test_exprs_and_splice(interp):
    interp.eval("args <- exprs(a, b + 1)")
    assert interp.eval("args") == [sym("a"), quote("b + 1")]
    assert interp.eval("expr(f(x, !!!args))") == quote("f(x, a, b + 1)")
    assert interp.eval("expr(f(!!!exprs()))") == quote("f()")


def test_exprs_named(interp):
    assert interp.eval("exprs(x = a, b)") == {"x": sym("a"), "b": sym("b")}
    assert interp.eval("expr(f(!!!exprs(n = 1)))") == Call(sym("f"), (lit(1),), ("n",))


@pytest.mark.parametrize(
    "source",
    ["exprs(n = 1, b, b)", "exprs(b = 1, b)", "quos(a + 1, n = 2, a + 1)", "exprs(n = 1, n = 2)"]
)
def test_collected_names_must_be_unique(interp, source):
    with pytest.raises(QuasiArityError, match="more than one element named"):
        interp.eval(source)


def test_exprs_splices_inside(interp):
    interp.eval("xs <- list(1, 2)")
    assert interp.eval("exprs(a, !!!xs)") == [sym("a"), lit(1), lit(2)]


def test_splice_outside_arguments(interp):
    interp.eval("xs <- list(1, 2)")
    with pytest.raises(QuasiSpliceError):
        interp.eval("expr(!!!xs)")


def test_quo_captures_environment(interp):
    q = interp.eval("q <- quo(a + 1)")
    assert q == Quosure(quote("a + 1"), interp.env)
    assert interp.eval("a <- 2; eval(q)")[-1] == 3


def test_quos(interp):
    qs = interp.eval("quos(a, n = b)")
    assert qs == {"a": Quosure(sym("a"), interp.env), "n": Quosure(sym("b"), interp.env)}


def test_eval_of_expression_and_value(interp):
    interp.eval("a <- 5")
    assert interp.eval("eval(quote(a * 2))") == 10
    assert interp.eval("eval(3)") == 3


def test_eval_with_data(interp):
    interp.eval("a <- 5")
    assert interp.eval("eval(quote(a + b), list(b = 1))") == 6
    assert interp.eval("eval(quote(a + b), data = list(a = 1, b = 1))") == 2
    assert interp.eval("eval_tidy(quo(a), list(a = 0))") == 0


def test_quosure_is_hygienic(interp):
    result = interp.eval("""
        a <- 10
        f <- function(v, a) eval(enquo(v))
        f(a + 1, 100)
    """)
    assert result[-1] == 11


def test_enquo_then_unquote_in_nested_call(interp):
    interp.eval("""
        wrap <- function(v) expr(g(!!enquo(v)))
        outer <- function(w) wrap(w)
    """)
    assert interp.eval("wrap(x + y)") == quote("g(x + y)")
    assert interp.eval("outer(z)") == quote("g(w)")


def test_assignment(interp):
    assert interp.eval("a <- b <- 3") == 3
    assert interp.eval("a") == 3
    assert interp.eval("b") == 3


def test_assignment_with_unquoted_name(interp):
    interp.eval('nm <- "z"; !!nm <- 4')
    assert interp.eval("z") == 4
    interp.eval('target <- sym("w"); !!target <- 5')
    assert interp.eval("w") == 5


def test_assignment_targets(interp):
    with pytest.raises(QuasiTypeError):
        interp.eval("`<-`(f(x), 1)")
    with pytest.raises(QuasiArityError):
        interp.eval("`<-`(x)")


def test_assignment_in_closure_is_local(interp):
    interp.eval("a <- 1; f <- function() a <- 2; f()")
    assert interp.eval("a") == 1


def test_function_form(interp):
    f = interp.eval("function(x, y) x")
    assert isinstance(f, Closure)
    assert f.params == ["x", "y"]
    assert f.env is interp.env
    with pytest.raises(QuasiTypeError, match="repeated"):
        interp.eval("function(x, x) x")
    with pytest.raises(QuasiTypeError, match="must be names"):
        interp.eval("`function`(1, 2)")


def test_quoted_function_is_data(interp):
    node = interp.eval("quote(function(x) !!x)")
    assert node == call("function", sym("x"), Unquote(sym("x")))
