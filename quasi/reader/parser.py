"""
  Reader: lexer and parser for quasi's expression syntax.

- Emits immutable nodes from quasi.types.nodes, each tagged with its Position.
- Grammar (lowest to highest binding):

    expr     := binary
    binary   := unary (OP unary)*          precedence climbing
    unary    := '-' unary | '!' unary | '!!' unary | '!!!' unary | postfix
    postfix  := primary ('(' args ')')*
    primary  := NUMBER | STRING | IDENT | `quoted ident` | TRUE | FALSE | NULL
              | '(' expr ')' | 'function' '(' [IDENT (',' IDENT)*] ')' expr
    args     := [arg (',' arg)*]
    arg      := [name '='] expr

- `lhs |> f(a)` (or `%>%`) is rewritten at read time to `f(lhs, a)`.
- `name <- value` reads as the call `<-`(name, value); it is right associative.
- `function(x, y) body` reads as the call `function`(x, y, body).
- `!!` and `!!!` bind to the expression right after them: `!!x + y` unquotes
  `x` only. Use parentheses to unquote a larger expression.
- Top-level expressions are separated by ';' or simply follow each other.
"""

from __future__ import annotations

import ast
import logging
import math
import re
from typing import Iterator, NamedTuple, Optional

from quasi.config import get_max_depth
from quasi.errors import QuasiParseError
from quasi.types.nodes import Node, Identifier, Literal, Call, Unquote, Splice
from quasi.types.position import Position

logger = logging.getLogger(__name__)

SKIP_RE = re.compile(r"(?:\s+|#[^\n]*)+")

TOKEN_RE = re.compile(
    r"(?P<number>(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?)"
    r'|(?P<string>"(?:\\.|[^\\"])*")'
    r"|(?P<backtick>`[^`\n]+`)"
    r"|(?P<ident>[A-Za-z_.][A-Za-z0-9_.]*)"
    r"|(?P<splice>!!!)"
    r"|(?P<unquote>!!)"
    r"|(?P<op><-|\|>|%>%|==|!=|<=|>=|[<>!&|+\-*/])"
    r"|(?P<equals>=)"
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<comma>,)"
    r"|(?P<semicolon>;)"
)

# Binary operators and their binding power; higher binds tighter.
BINARY_PRECEDENCE: dict[str, int] = {
    "<-": 1,
    "|>": 2, "%>%": 2,
    "|": 3,
    "&": 4,
    "==": 5, "!=": 5, "<": 5, "<=": 5, ">": 5, ">=": 5,
    "+": 6, "-": 6,
    "*": 7, "/": 7,
}
RIGHT_ASSOCIATIVE = frozenset({"<-"})
PIPES = frozenset({"|>", "%>%"})
UNARY_OPERATORS = ("-", "!")
FUNCTION = "function"
ASSIGN = "<-"

KEYWORDS: dict[str, object] = {
    "TRUE": True, "FALSE": False, "NULL": None, "Inf": math.inf, "NaN": math.nan,
}
NON_FINITE = frozenset({"Inf", "NaN"})


class Token(NamedTuple):
    kind: str
    text: str
    offset: int


def lex(source: str) -> Iterator[Token]:
    """Token generator: yields Token(kind, text, offset) tuples."""
    pos = 0
    n = len(source)
    while pos < n:
        skip = SKIP_RE.match(source, pos)
        if skip:
            pos = skip.end()
            if pos >= n:
                break
        m = TOKEN_RE.match(source, pos)
        if not m:
            if source[pos] == '"':
                raise QuasiParseError("Unterminated string", Position.of(source, pos))
            if source[pos] == "`":
                raise QuasiParseError("Unterminated quoted identifier", Position.of(source, pos))
            raise QuasiParseError(f"Unexpected character {source[pos]!r}", Position.of(source, pos))
        yield Token(m.lastgroup, m.group(), pos)
        pos = m.end()


class TokenStream:
    def __init__(self, source: str, max_depth: Optional[int] = None):
        self.source = source
        self.tokens = lex(source)
        self.buffer: list[Token] = []
        self.max_depth = max_depth if max_depth is not None else get_max_depth()
        self.depth = 0

    # --- token access ---
    def peek(self, ahead: int = 0) -> Optional[Token]:
        while len(self.buffer) <= ahead:
            tok = next(self.tokens, None)
            if tok is None:
                return None
            self.buffer.append(tok)
        return self.buffer[ahead]

    def advance(self) -> Optional[Token]:
        if self.peek() is None:
            return None
        return self.buffer.pop(0)

    def at_end(self) -> bool:
        return self.peek() is None

    def position(self, tok: Optional[Token]) -> Position:
        return Position.of(self.source, len(self.source) if tok is None else tok.offset)

    def error(self, message: str, tok: Optional[Token] = None) -> QuasiParseError:
        return QuasiParseError(message, self.position(tok))

    def expect(self, kind: str, what: str) -> Token:
        tok = self.peek()
        if tok is None or tok.kind != kind:
            found = "end of input" if tok is None else repr(tok.text)
            raise self.error(f"Expected {what}, found {found}", tok)
        return self.advance()

    def _enter(self, tok: Optional[Token]) -> None:
        self.depth += 1
        if self.depth > self.max_depth:
            raise self.error(f"Expression nested deeper than {self.max_depth} levels", tok)

    # --- grammar ---
    def parse_expr(self, min_prec: int = 1) -> Node:
        self._enter(self.peek())
        # each operator in a flat chain nests the tree one level deeper
        chained = 0
        try:
            left = self.parse_unary()
            while True:
                tok = self.peek()
                if tok is None or tok.kind != "op" or tok.text not in BINARY_PRECEDENCE:
                    return left
                prec = BINARY_PRECEDENCE[tok.text]
                if prec < min_prec:
                    return left
                self.advance()
                chained += 1
                self._enter(tok)
                right = self.parse_expr(prec if tok.text in RIGHT_ASSOCIATIVE else prec + 1)
                if tok.text in PIPES:
                    left = self._pipe(left, right, tok)
                    continue
                if tok.text == ASSIGN and not isinstance(left, (Identifier, Unquote)):
                    raise self.error(f"Cannot assign to {left}", tok)
                left = Call(Identifier(tok.text, position=self.position(tok)), (left, right),
                            position=left.position)
        finally:
            self.depth -= 1 + chained

    def _pipe(self, lhs: Node, rhs: Node, tok: Token) -> Call:
        if not isinstance(rhs, Call) or rhs.fn == Identifier(FUNCTION):
            raise self.error(f"The right-hand side of {tok.text} must be a function call", tok)
        return Call(rhs.fn, (lhs, *rhs.args), (None, *rhs.arg_names()), position=lhs.position)

    def parse_unary(self) -> Node:
        tok = self.peek()
        if tok is None:
            raise self.error("Unexpected end of input")
        pos = self.position(tok)
        if tok.kind in ("unquote", "splice"):
            self.advance()
            self._enter(tok)
            try:
                operand = self.parse_unary()
            finally:
                self.depth -= 1
            return Unquote(operand, position=pos) if tok.kind == "unquote" else Splice(operand, position=pos)
        if tok.kind == "op" and tok.text in UNARY_OPERATORS:
            self.advance()
            nxt = self.peek()
            if tok.text == "-" and nxt is not None and nxt.kind == "number":
                self.advance()
                return Literal(-self._number(nxt.text), position=pos)
            if tok.text == "-" and nxt is not None and nxt.kind == "ident" and nxt.text in NON_FINITE:
                self.advance()
                return Literal(-KEYWORDS[nxt.text], position=pos)
            self._enter(tok)
            try:
                operand = self.parse_unary()
            finally:
                self.depth -= 1
            return Call(Identifier(tok.text, position=pos), (operand,), position=pos)
        return self.parse_postfix()

    def parse_postfix(self) -> Node:
        node = self.parse_primary()
        chained = 0
        try:
            while (tok := self.peek()) is not None and tok.kind == "lparen":
                self.advance()
                chained += 1
                self._enter(tok)
                args, names = self.parse_args()
                node = Call(node, tuple(args), tuple(names), position=node.position)
        finally:
            self.depth -= chained
        return node

    def parse_args(self) -> tuple[list[Node], list[Optional[str]]]:
        args: list[Node] = []
        names: list[Optional[str]] = []
        tok = self.peek()
        if tok is not None and tok.kind == "rparen":
            self.advance()
            return args, names
        while True:
            name = None
            tok, nxt = self.peek(), self.peek(1)
            if (tok is not None and tok.kind in ("ident", "backtick", "string")
                    and nxt is not None and nxt.kind == "equals"):
                name = self._name(tok)
                self.advance()
                self.advance()
            args.append(self.parse_expr())
            names.append(name)
            tok = self.advance()
            if tok is None:
                raise self.error("Unmatched '('")
            if tok.kind == "rparen":
                return args, names
            if tok.kind != "comma":
                raise self.error(f"Expected ',' or ')' in argument list, found {tok.text!r}", tok)

    def parse_function(self, tok: Token) -> Call:
        pos = self.position(tok)
        self.expect("lparen", "'(' after function")
        params: list[Node] = []
        if self.peek() is not None and self.peek().kind == "rparen":
            self.advance()
        else:
            while True:
                p = self.advance()
                if p is None or p.kind not in ("ident", "backtick") or p.text in KEYWORDS:
                    raise self.error("Expected a parameter name", p)
                params.append(Identifier(self._name(p), position=self.position(p)))
                sep = self.advance()
                if sep is not None and sep.kind == "rparen":
                    break
                if sep is None or sep.kind != "comma":
                    raise self.error("Expected ',' or ')' in parameter list", sep)
        body = self.parse_expr()
        return Call(Identifier(FUNCTION, position=pos), (*params, body), position=pos)

    def parse_primary(self) -> Node:
        tok = self.advance()
        if tok is None:
            raise self.error("Unexpected end of input")
        pos = self.position(tok)
        if tok.kind == "number":
            return Literal(self._number(tok.text), position=pos)
        if tok.kind == "string":
            return Literal(self._string(tok), position=pos)
        if tok.kind == "ident":
            if tok.text in KEYWORDS:
                return Literal(KEYWORDS[tok.text], position=pos)
            if tok.text == FUNCTION:
                return self.parse_function(tok)
            return Identifier(tok.text, position=pos)
        if tok.kind == "backtick":
            return Identifier(tok.text[1:-1], position=pos)
        if tok.kind == "lparen":
            inner = self.parse_expr()
            self.expect("rparen", "')'")
            return inner
        raise self.error(f"Unexpected {tok.text!r}", tok)

    @staticmethod
    def _number(text: str) -> int | float:
        if text.isdigit():
            return int(text)
        return float(text)

    def _string(self, tok: Token) -> str:
        try:
            return ast.literal_eval(tok.text)
        except (SyntaxError, ValueError) as e:
            raise self.error(f"Invalid string literal {tok.text}: {e.msg if isinstance(e, SyntaxError) else e}",
                             tok) from None

    def _name(self, tok: Token) -> str:
        if tok.kind == "backtick":
            return tok.text[1:-1]
        if tok.kind == "string":
            return self._string(tok)
        return tok.text

    def parse_all(self) -> Iterator[Node]:
        while True:
            while (tok := self.peek()) is not None and tok.kind == "semicolon":
                self.advance()
            if self.at_end():
                break
            yield self.parse_expr()
            tok = self.peek()
            if tok is not None and tok.kind in ("rparen", "comma", "equals"):
                raise self.error(f"Unexpected {tok.text!r}", tok)


def parse_all(source: str) -> list[Node]:
    nodes = list(TokenStream(source).parse_all())
    logger.debug("parsed %d expression(s) from %r", len(nodes), source)
    return nodes


def parse(source: str) -> Node:
    """Parse exactly one expression."""
    nodes = parse_all(source)
    if not nodes:
        raise QuasiParseError("Expected an expression, found end of input", Position.of(source, len(source)))
    if len(nodes) > 1:
        raise QuasiParseError("Expected a single expression", nodes[1].position)
    return nodes[0]
