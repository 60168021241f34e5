"""Formula validation against a table's known variables.

Used by the formula editor before a formula is saved: the formula must
parse, every variable it references must exist, and it must evaluate
when each variable has a value.
"""

from collections.abc import Iterable

from labportal.core.exceptions import (
    MalformedFormulaError,
    NonNumericResultError,
    UnresolvedVariableError,
)
from labportal.formula.cache import FormulaCache
from labportal.formula.evaluator import ArithmeticEvaluator
from labportal.formula.names import BRACKET_REF_RE, name_key, normalize_name
from labportal.formula.parser import ParsedFormula, parse_formula
from labportal.formula.resolver import VariableMap
from labportal.schemas.formula import FormulaValidationResult


def _parse(raw: str, cache: FormulaCache | None) -> ParsedFormula:
    if cache is not None:
        return cache.get_or_parse(raw)
    return parse_formula(raw)


def _dummy_values(parsed: ParsedFormula) -> VariableMap:
    # Distinct non-zero values so "[A] / ([B] - [C])" is not a false failure
    return VariableMap({name: float(i + 1) for i, name in enumerate(parsed.variables)})


def validate_formula(
    raw: str,
    available_variables: Iterable[str],
    cache: FormulaCache | None = None,
) -> FormulaValidationResult:
    """
    Validate a formula before it is saved.

    Args:
        raw: Formula string
        available_variables: Variable names present in the target table
        cache: Optional parsed-formula cache

    Returns:
        FormulaValidationResult; ``is_valid`` is False when the formula does
        not parse, references unknown variables, or uses unsupported syntax
    """
    try:
        parsed = _parse(raw, cache)
    except MalformedFormulaError as e:
        return FormulaValidationResult(is_valid=False, error=e.message)

    known = {name_key(name) for name in available_variables if normalize_name(name)}
    missing = [name for name in parsed.variables if name_key(name) not in known]
    if missing:
        return FormulaValidationResult(
            is_valid=False,
            error=f"Unknown variables: {', '.join(missing)}",
            missing_variables=missing,
            left_variables=list(parsed.left_variables),
            right_variables=list(parsed.right_variables),
        )

    evaluator = ArithmeticEvaluator()
    values = _dummy_values(parsed)
    try:
        evaluator.evaluate(parsed.left_expression, values)
        evaluator.evaluate(parsed.right_expression, values)
    except MalformedFormulaError as e:
        return FormulaValidationResult(
            is_valid=False,
            error=e.message,
            left_variables=list(parsed.left_variables),
            right_variables=list(parsed.right_variables),
        )
    except UnresolvedVariableError as e:
        return FormulaValidationResult(
            is_valid=False,
            error=e.message,
            missing_variables=e.names,
            left_variables=list(parsed.left_variables),
            right_variables=list(parsed.right_variables),
        )
    except NonNumericResultError:
        # Division by zero for these particular values; the formula itself is fine
        pass

    return FormulaValidationResult(
        is_valid=True,
        left_variables=list(parsed.left_variables),
        right_variables=list(parsed.right_variables),
    )


def _single_reference(expression: str) -> str | None:
    """Name in ``expression`` when it is exactly one ``[Name]``, else None."""
    match = BRACKET_REF_RE.fullmatch(expression.strip())
    if match:
        return normalize_name(match.group(1)) or None
    return None


def validate_unidirectional_formula(
    raw: str,
    available_variables: Iterable[str],
    cache: FormulaCache | None = None,
) -> FormulaValidationResult:
    """
    Validate a table-view formula that assigns its verdict to one variable.

    The left side must be a single variable with no arithmetic; that
    variable is the one highlighted and is reported as ``target_variable``.
    The right side must not reference it.
    """
    available_variables = list(available_variables)
    result = validate_formula(raw, available_variables, cache)
    if not result.is_valid:
        return result

    parsed = _parse(raw, cache)
    left = parsed.left_expression.strip()
    target = _single_reference(left)
    if target is None and len(parsed.left_variables) == 1:
        candidate = parsed.left_variables[0]
        if " ".join(left.split()).casefold() == " ".join(candidate.split()).casefold():
            target = candidate

    if target is None:
        return result.model_copy(
            update={
                "is_valid": False,
                "error": "Left side must be a single variable without arithmetic",
            }
        )

    if name_key(target) in {name_key(name) for name in parsed.right_variables}:
        return result.model_copy(
            update={
                "is_valid": False,
                "error": f"Right side must not reference the target variable '{target}'",
                "target_variable": target,
            }
        )

    return result.model_copy(update={"target_variable": target})
