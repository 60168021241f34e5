"""Build formula strings from the formula editor's term lists.

The editor represents each side of a comparison as alternating terms and
arithmetic operators. Variables are always emitted in brackets so the
result parses back to the same structure regardless of variable names.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from labportal.formula.parser import COMPARISON_OPERATORS

ARITHMETIC_OPERATORS = ("+", "-", "*", "/")


@dataclass(frozen=True)
class FormulaTerm:
    """A variable name or a numeric literal."""

    value: str
    is_variable: bool = False

    def render(self) -> str:
        return f"[{self.value.strip()}]" if self.is_variable else self.value.strip()


@dataclass(frozen=True)
class FormulaExpression:
    """Terms joined by ``len(terms) - 1`` arithmetic operators."""

    terms: Sequence[FormulaTerm]
    operators: Sequence[str] = field(default_factory=tuple)

    def render(self) -> str:
        """
        Render the expression, parenthesized when it has more than one term.

        Raises:
            ValueError: If the expression is empty, operators do not line up
                with terms, or a term is blank
        """
        if not self.terms:
            raise ValueError("Expression has no terms")
        if len(self.operators) != len(self.terms) - 1:
            raise ValueError(
                f"Expected {len(self.terms) - 1} operators for {len(self.terms)} terms, "
                f"got {len(self.operators)}"
            )
        for op in self.operators:
            if op not in ARITHMETIC_OPERATORS:
                raise ValueError(f"Invalid arithmetic operator: {op}")

        parts = []
        for i, term in enumerate(self.terms):
            if not term.value or not term.value.strip():
                raise ValueError("Expression contains an empty term")
            if not term.is_variable and any(c in term.value for c in "[]<>=!"):
                raise ValueError(f"Invalid literal term: {term.value}")
            parts.append(term.render())
            if i < len(self.operators):
                parts.append(self.operators[i])

        text = " ".join(parts)
        return f"({text})" if len(self.terms) > 1 else text


def build_formula(left: FormulaExpression, operator: str, right: FormulaExpression) -> str:
    """
    Build a formula string such as ``([A] + [B]) > 2``.

    Args:
        left: Left-hand expression
        operator: One of ``>``, ``<``, ``>=``, ``<=``, ``==``, ``!=``
        right: Right-hand expression

    Returns:
        Formula string accepted by :func:`~labportal.formula.parser.parse_formula`

    Raises:
        ValueError: If the operator or either expression is invalid
    """
    if operator not in COMPARISON_OPERATORS:
        raise ValueError(f"Invalid comparison operator: {operator}")
    return f"{left.render()} {operator} {right.render()}"
