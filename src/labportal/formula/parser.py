"""Formula parser for lab validation rules.

Splits a formula string such as ``"([Toplam Fosfor] + 1) >= [Orto Fosfat]"``
into a left expression, one comparison operator and a right expression,
and extracts the variables each side references.
"""

import re
from dataclasses import dataclass

from labportal.core.exceptions import MalformedFormulaError
from labportal.formula.names import BRACKET_REF_RE, extract_variables

COMPARISON_OPERATORS = (">", "<", ">=", "<=", "==", "!=")

# Spellings accepted from hand-written formulas, mapped to the canonical operator
_OPERATOR_ALIASES = {"=": "==", "<>": "!="}

# Bracket references are matched first so operators inside "[A>B]" are skipped
_OPERATOR_SCAN_RE = re.compile(r"\[[^\[\]]*\]|>=|<=|==|!=|<>|>|<|=|!")


@dataclass(frozen=True)
class ParsedFormula:
    """Structure of one comparison formula. Immutable so it can be cached."""

    left_expression: str
    operator: str
    right_expression: str
    variables: tuple[str, ...]
    left_variables: tuple[str, ...] = ()
    right_variables: tuple[str, ...] = ()

    def as_formula(self) -> str:
        """Reassemble the formula with single spaces around the operator."""
        return f"{self.left_expression} {self.operator} {self.right_expression}"


def _check_balanced(formula: str, expression: str, side: str) -> None:
    without_refs = BRACKET_REF_RE.sub("0", expression)
    if "[" in without_refs or "]" in without_refs:
        raise MalformedFormulaError(formula, f"unbalanced brackets in {side} expression")

    depth = 0
    for char in without_refs:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                break
    if depth != 0:
        raise MalformedFormulaError(formula, f"unbalanced parentheses in {side} expression")


def parse_formula(formula: str) -> ParsedFormula:
    """
    Parse a formula string into its comparison structure.

    Args:
        formula: Raw formula string

    Returns:
        ParsedFormula

    Raises:
        MalformedFormulaError: If the string does not contain exactly one
            top-level comparison operator, or a side is empty or unbalanced
    """
    if not isinstance(formula, str) or not formula.strip():
        raise MalformedFormulaError(str(formula or ""), "formula is empty")

    operators = [
        match
        for match in _OPERATOR_SCAN_RE.finditer(formula)
        if not match.group(0).startswith("[")
    ]
    if not operators:
        raise MalformedFormulaError(formula, "no comparison operator found")
    if len(operators) > 1:
        found = ", ".join(m.group(0) for m in operators)
        raise MalformedFormulaError(
            formula, f"expected exactly one comparison operator, found {len(operators)} ({found})"
        )

    match = operators[0]
    token = match.group(0)
    if token == "!":
        raise MalformedFormulaError(formula, "'!' is not a comparison operator")
    operator = _OPERATOR_ALIASES.get(token, token)

    left = formula[: match.start()].strip()
    right = formula[match.end() :].strip()
    if not left:
        raise MalformedFormulaError(formula, "missing left-hand expression")
    if not right:
        raise MalformedFormulaError(formula, "missing right-hand expression")

    _check_balanced(formula, left, "left")
    _check_balanced(formula, right, "right")

    left_variables = extract_variables(left)
    right_variables = extract_variables(right)

    variables: dict[str, str] = {}
    for name in left_variables + right_variables:
        variables.setdefault(name.casefold(), name)

    return ParsedFormula(
        left_expression=left,
        operator=operator,
        right_expression=right,
        variables=tuple(variables.values()),
        left_variables=tuple(left_variables),
        right_variables=tuple(right_variables),
    )


class FormulaParser:
    """
    Parser for comparison formulas.

    Parsing is a pure function of the input string; use
    :class:`~labportal.formula.cache.FormulaCache` to memoize it.
    """

    def parse(self, formula: str) -> ParsedFormula:
        """
        Parse a formula string.

        Raises:
            MalformedFormulaError: If formula syntax is invalid
        """
        return parse_formula(formula)

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula structure without evaluating it.

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except MalformedFormulaError as e:
            return False, e.message

    def get_variable_references(self, formula: str) -> list[str]:
        """List the variables referenced anywhere in a formula."""
        return list(self.parse(formula).variables)
