from __future__ import annotations

import logging
from typing import Optional

from quasi import Value
from quasi.builtin.env_builtin import register
from quasi.evaluation.evaluator import evaluate
from quasi.reader.parser import parse_all
from quasi.types.environment import Environment

logger = logging.getLogger(__name__)


class Interpreter:
    """
    Reads and evaluates quasi code.
    Builtins live in a base environment; definitions made through eval()
    go to a global environment on top of it and persist across calls.
    """

    def __init__(self, prelude: Optional[str] = None):
        self.base: Environment = Environment(label="base")
        register(self.base)
        self.env: Environment = self.base.child(label="global")
        if prelude:
            self.eval(prelude)

    def define(self, name: str, value: Value) -> None:
        self.env.define(name, value)

    def eval(self, code: str) -> Value:
        """Evaluate every expression in `code`.

        Returns the value of the only expression, a list of values when there
        are several, and None for empty input.
        """
        results: list[Value] = []
        for expr in parse_all(code):
            results.append(evaluate(expr, self.env))
        logger.debug("evaluated %d expression(s)", len(results))
        if not results:
            return None
        if len(results) == 1:
            return results[0]
        return results


if __name__ == "__main__":
    from quasi.config import configure_logging
    from quasi.data.table import Table

    configure_logging()
    interp = Interpreter()
    interp.define("df", Table({"g1": [1, 1, 2, 2], "a": [1.0, 2.0, 3.0, 4.0]}))
    interp.eval("""
        my_summarise <- function(df, group_var, summary_var)
          df |> group_by(!!enquo(group_var)) |> summarise(mean = mean(!!enquo(summary_var)))
    """)
    print(interp.eval("my_summarise(df, g1, a)"))
