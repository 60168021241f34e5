"""Arithmetic evaluator for formula expressions.

Evaluation happens in two steps. Variable references are first replaced
by their values from a :class:`VariableMap`; the resulting text is then
parsed by the restricted arithmetic grammar and the AST is walked. Only
numbers, ``+ - * /`` and parentheses survive the grammar.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass

from lark.exceptions import LarkError

from labportal.core.exceptions import (
    MalformedFormulaError,
    NonNumericResultError,
    UnresolvedVariableError,
)
from labportal.formula.grammar import (
    BinaryOpNode,
    NegateNode,
    Node,
    NumberNode,
    arithmetic_parser,
)
from labportal.formula.names import (
    BRACKET_REF_RE,
    bare_references,
    extract_variables,
    name_pattern,
)
from labportal.formula.resolver import VariableMap


@dataclass(frozen=True)
class EvaluatedExpression:
    """Value of an expression plus the variable-map keys it consumed."""

    value: float
    variables_used: tuple[str, ...]
    substituted: str


def format_number(value: float) -> str:
    """Literal for a substituted value. Negatives are parenthesized so
    ``5 - [A]`` with ``A = -3`` becomes ``5 - (-3.0)``."""
    text = repr(float(value))
    return f"({text})" if value < 0 else text


class ArithmeticEvaluator:
    """
    Evaluates arithmetic expressions against a column's variable map.

    Stateless; one instance can serve concurrent evaluation passes.
    """

    def __init__(self) -> None:
        self._parser = arithmetic_parser()

    def evaluate(self, expression: str, variables: Mapping[str, float]) -> float:
        """
        Evaluate an expression to a number.

        Args:
            expression: Expression text, e.g. ``"([A] + Toplam Fosfor) * 2"``
            variables: Values for the current value column

        Returns:
            Finite float result

        Raises:
            UnresolvedVariableError: If a referenced variable has no value
            NonNumericResultError: If the result is not a finite number
            MalformedFormulaError: If the expression uses unsupported syntax
        """
        return self.evaluate_with_trace(expression, variables).value

    def evaluate_with_trace(
        self,
        expression: str,
        variables: Mapping[str, float],
    ) -> EvaluatedExpression:
        """Like :meth:`evaluate`, also reporting which variables were used."""
        if not isinstance(variables, VariableMap):
            variables = VariableMap(variables)

        substituted, used = self.substitute(expression, variables)

        leftover = extract_variables(substituted)
        if leftover:
            raise UnresolvedVariableError(leftover)

        try:
            ast = self._parser.parse(substituted)
        except LarkError as e:
            raise MalformedFormulaError(
                expression, f"unsupported arithmetic syntax ({type(e).__name__})"
            ) from e

        try:
            value = self._eval(ast)
        except (ZeroDivisionError, OverflowError) as e:
            raise NonNumericResultError(expression, e) from e

        if not math.isfinite(value):
            raise NonNumericResultError(expression, value)

        return EvaluatedExpression(value=value, variables_used=tuple(used), substituted=substituted)

    def substitute(self, expression: str, variables: VariableMap) -> tuple[str, list[str]]:
        """
        Replace variable references with their values.

        Bracketed references are looked up directly. Each bare token is
        resolved as a whole name, so "Toplam Fosfor" is either a variable of
        its own or unresolved; it is never split into "Toplam" and "Fosfor".
        Tokens are replaced longest first.

        Returns:
            Tuple of (substituted text, variable-map keys used)

        Raises:
            UnresolvedVariableError: If a reference has no value
        """
        used: dict[str, None] = {}
        missing: list[str] = []

        def replace_bracket(match) -> str:
            name = match.group(1)
            key = variables.resolve(name)
            if key is None:
                missing.append(name.strip())
                return match.group(0)
            used[key] = None
            return format_number(variables[key])

        text = BRACKET_REF_RE.sub(replace_bracket, expression)
        if missing:
            raise UnresolvedVariableError(missing)

        resolved: dict[str, str] = {}
        for token in bare_references(text):
            if token in resolved:
                continue
            key = variables.resolve(token)
            if key is None:
                key = variables.resolve(" ".join(token.split()))
            if key is None:
                missing.append(token)
            else:
                resolved[token] = key
        if missing:
            raise UnresolvedVariableError(missing)

        for token in sorted(resolved, key=len, reverse=True):
            key = resolved[token]
            text = name_pattern(token).sub(format_number(variables[key]), text)
            used[key] = None

        return text, list(used)

    def _eval(self, node: Node) -> float:
        """Recursively evaluate an AST node."""
        if isinstance(node, NumberNode):
            return node.value

        if isinstance(node, NegateNode):
            return -self._eval(node.operand)

        if isinstance(node, BinaryOpNode):
            left = self._eval(node.left)
            right = self._eval(node.right)
            if node.operator == "+":
                return left + right
            if node.operator == "-":
                return left - right
            if node.operator == "*":
                return left * right
            if node.operator == "/":
                return left / right
            raise ValueError(f"Unknown operator: {node.operator}")

        raise ValueError(f"Unknown node type: {type(node).__name__}")


def evaluate_expression(expression: str, variables: Mapping[str, float]) -> float:
    """
    Convenience function to evaluate one expression.

    Args:
        expression: Expression text
        variables: Variable values

    Returns:
        Evaluation result
    """
    return ArithmeticEvaluator().evaluate(expression, variables)
