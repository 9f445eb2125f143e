# Core type aliases for quasi's data model.
# Code is represented by the immutable node classes in quasi.types.nodes,
# runtime values are plain Python objects (numbers, strings, numpy arrays,
# Tables, callables) and are never wrapped.
#
# Naming guidance:
# - Expression: a syntax tree node (code-as-data).
# - Value:      anything an evaluation can produce.

import logging
from typing import Any, Callable

Value = Any
Expression = Any

# Evaluator function type: (node, env) -> value
EvaluatorFn = Callable[..., Value]

logging.getLogger(__name__).addHandler(logging.NullHandler())

from quasi.types.nodes import Identifier, Literal, Call, Unquote, Splice, sym, lit, call  # noqa: E402
from quasi.types.environment import Environment  # noqa: E402
from quasi.types.quosure import Quosure  # noqa: E402
from quasi.types.promise import Promise, CallFrame, LazyFunction, lazy  # noqa: E402
from quasi.capture import quote, quo, capture_argument  # noqa: E402
from quasi.evaluation.substitute import unquote, splice, interpolate  # noqa: E402
from quasi.evaluation.evaluator import evaluate  # noqa: E402
from quasi.interpreter import Interpreter  # noqa: E402
