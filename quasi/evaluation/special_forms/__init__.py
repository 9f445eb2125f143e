"""Registry of special forms for the quasi evaluator.

Special forms are lazy functions: they receive their arguments unevaluated
and decide themselves what to quote, what to interpolate and what to force.
They are bound in the base environment like any other function.
"""

from quasi.evaluation.special_forms.quote_forms import (
    quote_form, expr_form, exprs_form, quo_form, quos_form, enquo_form, enexpr_form,
)
from quasi.evaluation.special_forms.eval_forms import eval_form
from quasi.evaluation.special_forms.function_form import function_form
from quasi.evaluation.special_forms.assign_form import assign_form

SPECIAL_FORMS = {
    "quote": quote_form,
    "expr": expr_form,
    "exprs": exprs_form,
    "quo": quo_form,
    "quos": quos_form,
    "enquo": enquo_form,
    "enexpr": enexpr_form,
    "eval": eval_form,
    "eval_tidy": eval_form,
    "function": function_form,
    "<-": assign_form,
}
