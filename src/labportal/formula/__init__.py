"""Formula engine for lab measurement tables.

Formulas are single comparisons between two arithmetic expressions over
variable names, e.g. ``[İletkenlik] > [Alkalinite Tayini] * 2``. The
engine evaluates them per sampling-date column and reports which cells
should be highlighted:

- Parsing into a left expression, operator and right expression
- Variable resolution from the pivoted table, per value column
- Safe arithmetic evaluation (+, -, *, /, parentheses) via a Lark grammar
- Tolerant comparison and color blending for overlapping matches
"""

from labportal.formula.builder import FormulaExpression, FormulaTerm, build_formula
from labportal.formula.cache import FormulaCache
from labportal.formula.colors import blend_colors, parse_hex_color
from labportal.formula.comparator import compare
from labportal.formula.evaluator import ArithmeticEvaluator, evaluate_expression
from labportal.formula.highlighter import (
    FormulaHighlighter,
    applicable_formulas,
    evaluate_formulas,
)
from labportal.formula.names import extract_variables, normalize_name
from labportal.formula.parser import FormulaParser, ParsedFormula, parse_formula
from labportal.formula.resolver import (
    VariableMap,
    VariableResolver,
    get_cell_value,
    resolve_variables,
)
from labportal.formula.validation import validate_formula, validate_unidirectional_formula

__all__ = [
    "ArithmeticEvaluator",
    "FormulaCache",
    "FormulaExpression",
    "FormulaHighlighter",
    "FormulaParser",
    "FormulaTerm",
    "ParsedFormula",
    "VariableMap",
    "VariableResolver",
    "applicable_formulas",
    "blend_colors",
    "build_formula",
    "compare",
    "evaluate_expression",
    "evaluate_formulas",
    "extract_variables",
    "get_cell_value",
    "normalize_name",
    "parse_formula",
    "parse_hex_color",
    "resolve_variables",
    "validate_formula",
    "validate_unidirectional_formula",
]
