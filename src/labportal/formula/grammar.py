"""Lark grammar for substituted arithmetic expressions.

Once variable names have been replaced by numbers, the remaining text may
only contain numeric literals, ``+ - * /`` and parentheses. Anything else
fails to parse, so expression text is never executed as code.

Binary operators share one precedence level and associate left to right;
parentheses are the only way to group::

    2 + 3 * 4    ->  (2 + 3) * 4  = 20
    2 + (3 * 4)  ->               = 14
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from lark import Lark, Transformer, v_args

ARITHMETIC_GRAMMAR = r"""
    ?start: expression

    ?expression: operand
        | expression "+" operand -> add
        | expression "-" operand -> sub
        | expression "*" operand -> mul
        | expression "/" operand -> div

    ?operand: NUMBER -> number
        | "-" operand -> neg
        | "+" operand
        | "(" expression ")"

    // Integer or decimal, optional exponent; sign is a unary operator
    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""


# AST Node types
@dataclass(frozen=True)
class NumberNode:
    value: float


@dataclass(frozen=True)
class BinaryOpNode:
    operator: str
    left: "Node"
    right: "Node"


@dataclass(frozen=True)
class NegateNode:
    operand: "Node"


Node = Union[NumberNode, BinaryOpNode, NegateNode]


class ArithmeticTransformer(Transformer):
    """Transform the Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def number(self, token):
        return NumberNode(float(token))

    @v_args(inline=True)
    def add(self, left, right):
        return BinaryOpNode("+", left, right)

    @v_args(inline=True)
    def sub(self, left, right):
        return BinaryOpNode("-", left, right)

    @v_args(inline=True)
    def mul(self, left, right):
        return BinaryOpNode("*", left, right)

    @v_args(inline=True)
    def div(self, left, right):
        return BinaryOpNode("/", left, right)

    @v_args(inline=True)
    def neg(self, operand):
        return NegateNode(operand)


@lru_cache(maxsize=None)
def arithmetic_parser() -> Lark:
    """
    Build the arithmetic parser once per process.

    The transformer is stateless, so the instance can be shared by
    concurrent evaluation calls.
    """
    return Lark(
        ARITHMETIC_GRAMMAR,
        parser="lalr",
        transformer=ArithmeticTransformer(),
    )
