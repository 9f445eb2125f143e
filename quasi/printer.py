"""Deparser: turns expression trees back into source text.

`deparse` output always reads back (through quasi.reader.parser.parse) as a
structurally equal tree. Operator calls are printed infix and parentheses
are added only where precedence requires them. `pretty` can additionally
colour unquote and splice markers for terminal display.
"""

from __future__ import annotations

import json
import math
import re
from typing import Callable, Optional

from quasi.config import use_color
from quasi.reader.parser import (
    ASSIGN, BINARY_PRECEDENCE, FUNCTION, KEYWORDS, PIPES, RIGHT_ASSOCIATIVE, UNARY_OPERATORS,
)
from quasi.types.nodes import Node, Identifier, Literal, Call, Unquote, Splice

# ----------------- ANSI colors -----------------
RESET = "\033[0m"
COLOR_UNQUOTE = "\033[91m"
COLOR_UNQUOTE_SPLICING = "\033[93m"
COLOR_LITERAL = "\033[92m"

FUNCTION_PREC = 1
UNARY_PREC = 8
ATOM_PREC = 9

_SYNTACTIC_NAME = re.compile(r"[A-Za-z_.][A-Za-z0-9_.]*\Z")

Painter = Callable[[Node, str], str]


def _plain(_: Node, text: str) -> str:
    return text


def _colorize(node: Node, text: str) -> str:
    if isinstance(node, Unquote):
        return f"{COLOR_UNQUOTE}{text}{RESET}"
    if isinstance(node, Splice):
        return f"{COLOR_UNQUOTE_SPLICING}{text}{RESET}"
    if isinstance(node, Literal):
        return f"{COLOR_LITERAL}{text}{RESET}"
    return text


def is_syntactic_name(name: str) -> bool:
    return (
        bool(_SYNTACTIC_NAME.match(name))
        and not re.match(r"\.\d", name)
        and name not in KEYWORDS
        and name != FUNCTION
    )


def format_name(name: str) -> str:
    return name if is_syntactic_name(name) else f"`{name}`"


def format_literal(value) -> str:
    if value is True:
        return "TRUE"
    if value is False:
        return "FALSE"
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Inf" if value > 0 else "-Inf"
        return repr(value)
    return str(value)


def _is_negative_number(node: Node) -> bool:
    return (
        isinstance(node, Literal)
        and isinstance(node.value, (int, float))
        and not isinstance(node.value, bool)
        and format_literal(node.value).startswith("-")
    )


def _operator(node: Call) -> Optional[str]:
    if not isinstance(node.fn, Identifier) or node.names:
        return None
    op = node.fn.name
    if len(node.args) == 2 and op in BINARY_PRECEDENCE and op not in PIPES:
        if op == ASSIGN and not isinstance(node.args[0], (Identifier, Unquote)):
            return None
        return op
    if len(node.args) == 1 and op in UNARY_OPERATORS:
        return op
    return None


def is_function_literal(node: Node) -> bool:
    return (
        isinstance(node, Call)
        and node.fn == Identifier(FUNCTION)
        and not node.names
        and len(node.args) >= 1
        and all(isinstance(p, Identifier) for p in node.args[:-1])
    )


def precedence(node: Node) -> int:
    if is_function_literal(node):
        return FUNCTION_PREC
    if isinstance(node, Call):
        op = _operator(node)
        if op is None:
            return ATOM_PREC
        return BINARY_PRECEDENCE[op] if len(node.args) == 2 else UNARY_PREC
    if isinstance(node, (Unquote, Splice)) or _is_negative_number(node):
        return UNARY_PREC
    return ATOM_PREC


def _wrap(node: Node, min_prec: int, paint: Painter) -> str:
    text = _deparse(node, paint)
    if precedence(node) < min_prec:
        return f"({text})"
    return text


def _deparse(node: Node, paint: Painter) -> str:
    match node:
        case Identifier(name=name):
            return paint(node, format_name(name))
        case Literal(value=value):
            return paint(node, format_literal(value))
        case Unquote(expr=inner):
            return paint(node, "!!") + _wrap(inner, ATOM_PREC, paint)
        case Splice(expr=inner):
            return paint(node, "!!!") + _wrap(inner, ATOM_PREC, paint)
        case Call() if is_function_literal(node):
            params = ", ".join(format_name(p.name) for p in node.args[:-1])
            return f"function({params}) {_deparse(node.args[-1], paint)}"
        case Call():
            op = _operator(node)
            if op is not None and len(node.args) == 2:
                prec = BINARY_PRECEDENCE[op]
                if op in RIGHT_ASSOCIATIVE:
                    left_min, right_min = prec + 1, prec
                else:
                    left_min, right_min = prec, prec + 1
                left = _wrap(node.args[0], left_min, paint)
                right = _wrap(node.args[1], right_min, paint)
                return f"{left} {op} {right}"
            if op is not None:
                return _deparse_unary(op, node.args[0], paint)
            head = _wrap(node.fn, ATOM_PREC, paint)
            args = ", ".join(
                _deparse(a, paint) if n is None else f"{format_name(n)} = {_deparse(a, paint)}"
                for a, n in zip(node.args, node.arg_names())
            )
            return f"{head}({args})"
    raise TypeError(f"Cannot deparse {node!r}")


def _deparse_unary(op: str, operand: Node, paint: Painter) -> str:
    text = _wrap(operand, UNARY_PREC, paint)
    # "-3" would read back as a negative literal and "!!x" as an unquote
    if op == "-" and isinstance(operand, Literal) and not text.startswith("("):
        text = f"({text})"
    elif op == "!" and text.startswith("!"):
        text = f"({text})"
    return f"{op}{text}"


def deparse(node: Node) -> str:
    """Render `node` as source text."""
    return _deparse(node, _plain)


def pretty(node: Node, color: Optional[bool] = None) -> str:
    """Like deparse, optionally colouring markers and literals for a terminal."""
    if color is None:
        color = use_color()
    return _deparse(node, _colorize if color else _plain)
