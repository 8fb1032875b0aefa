"""
Restricted arithmetic evaluator for user-defined P/L formulas.

Grammar (left-associative, usual precedence)::

    expr    := term (("+" | "-") term)*
    term    := unary (("*" | "/") unary)*
    unary   := ("+" | "-") unary | primary
    primary := NUMBER | NAME | "(" expr ")"

NAME must be one of the bound variables. There are no calls, attribute
lookups, assignments or loops, and source length, node count and nesting
depth are capped, so evaluation always terminates in bounded time.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Mapping, NamedTuple, Optional, Union

from investment_tracker.config.constants import EXPRESSION_VARIABLES
from investment_tracker.config.settings import ExpressionSettings, get_settings


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed or evaluated to a finite number."""


class Token(NamedTuple):
    kind: str  # NUMBER, NAME, OP, LPAREN, RPAREN, END
    text: str
    pos: int


_TOKEN_RE = re.compile(
    r"\s*(?:"
    r"(?P<NUMBER>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)"
    r"|(?P<NAME>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<OP>[-+*/])"
    r"|(?P<LPAREN>\()"
    r"|(?P<RPAREN>\))"
    r")"
)


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Name:
    name: str


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"


@dataclass(frozen=True)
class BinOp:
    op: str
    left: "Node"
    right: "Node"


Node = Union[Number, Name, UnaryOp, BinOp]


def tokenize(source: str) -> List[Token]:
    tokens: List[Token] = []
    pos = 0
    end = len(source.rstrip())
    while pos < end:
        match = _TOKEN_RE.match(source, pos)
        if not match:
            bad = len(source) - len(source[pos:].lstrip())
            raise ExpressionError(f"Unexpected character {source[bad]!r} at position {bad}")
        kind = match.lastgroup
        tokens.append(Token(kind, match.group(kind), match.start(kind)))
        pos = match.end()
    tokens.append(Token("END", "", end))
    return tokens


class _Parser:
    def __init__(self, tokens: List[Token], allowed: frozenset, limits: ExpressionSettings):
        self.tokens = tokens
        self.index = 0
        self.allowed = allowed
        self.limits = limits
        self.nodes = 0
        self.depth = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def make(self, node: Node) -> Node:
        self.nodes += 1
        if self.nodes > self.limits.max_nodes:
            raise ExpressionError(f"Expression exceeds {self.limits.max_nodes} nodes")
        return node

    def enter(self) -> None:
        self.depth += 1
        if self.depth > self.limits.max_depth:
            raise ExpressionError(f"Expression nesting exceeds depth {self.limits.max_depth}")

    def leave(self) -> None:
        self.depth -= 1

    def parse(self) -> Node:
        if self.current.kind == "END":
            raise ExpressionError("Expression is empty")
        node = self.expr()
        if self.current.kind != "END":
            tok = self.current
            raise ExpressionError(f"Unexpected {tok.text!r} at position {tok.pos}")
        return node

    def expr(self) -> Node:
        node = self.term()
        while self.current.kind == "OP" and self.current.text in "+-":
            op = self.advance().text
            node = self.make(BinOp(op, node, self.term()))
        return node

    def term(self) -> Node:
        node = self.unary()
        while self.current.kind == "OP" and self.current.text in "*/":
            op = self.advance().text
            node = self.make(BinOp(op, node, self.unary()))
        return node

    def unary(self) -> Node:
        if self.current.kind == "OP" and self.current.text in "+-":
            op = self.advance().text
            self.enter()
            try:
                operand = self.unary()
            finally:
                self.leave()
            return self.make(UnaryOp(op, operand))
        return self.primary()

    def primary(self) -> Node:
        tok = self.advance()
        if tok.kind == "NUMBER":
            return self.make(Number(float(tok.text)))
        if tok.kind == "NAME":
            if tok.text not in self.allowed:
                raise ExpressionError(f"Unknown variable {tok.text!r}")
            return self.make(Name(tok.text))
        if tok.kind == "LPAREN":
            self.enter()
            try:
                node = self.expr()
            finally:
                self.leave()
            if self.current.kind != "RPAREN":
                raise ExpressionError(f"Expected ')' at position {self.current.pos}")
            self.advance()
            return node
        if tok.kind == "END":
            raise ExpressionError("Unexpected end of expression")
        raise ExpressionError(f"Unexpected {tok.text!r} at position {tok.pos}")


def parse_expression(
    source: str,
    variables: Iterable[str] = EXPRESSION_VARIABLES,
    limits: Optional[ExpressionSettings] = None,
) -> Node:
    """Parse source into an expression tree, enforcing the configured ceilings."""
    limits = limits or get_settings().expression
    if not isinstance(source, str):
        raise ExpressionError("Expression must be a string")
    if len(source) > limits.max_length:
        raise ExpressionError(f"Expression exceeds {limits.max_length} characters")
    return _Parser(tokenize(source), frozenset(variables), limits).parse()


def evaluate_node(node: Node, variables: Mapping[str, float]) -> float:
    if isinstance(node, Number):
        return node.value
    if isinstance(node, Name):
        return float(variables[node.name])
    if isinstance(node, UnaryOp):
        value = evaluate_node(node.operand, variables)
        return -value if node.op == "-" else value
    if isinstance(node, BinOp):
        left = evaluate_node(node.left, variables)
        right = evaluate_node(node.right, variables)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise ExpressionError("Division by zero")
        return left / right
    raise ExpressionError(f"Unsupported node {type(node).__name__}")


def evaluate_expression(
    source: str,
    variables: Mapping[str, float],
    limits: Optional[ExpressionSettings] = None,
) -> float:
    """
    Parse and evaluate source against the bound variables.

    Raises:
        ExpressionError: on a parse failure, a limit breach, division by zero
            or a non-finite result.
    """
    node = parse_expression(source, tuple(variables), limits)
    result = evaluate_node(node, variables)
    if not math.isfinite(result):
        raise ExpressionError("Expression must evaluate to a finite number")
    return result
