"""Comparison of evaluated formula sides."""

import math

from labportal.formula.parser import COMPARISON_OPERATORS

DEFAULT_EPSILON = 1e-10


def is_close(left: float, right: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    """Equality within ``epsilon``, absolute for small values and relative for large ones."""
    return math.isclose(left, right, rel_tol=epsilon, abs_tol=epsilon)


def compare(left: float, operator: str, right: float, epsilon: float = DEFAULT_EPSILON) -> bool:
    """
    Apply a comparison operator with floating-point tolerance.

    Values within ``epsilon`` of each other are equal for every operator,
    so ``0.1 + 0.2 == 0.3`` holds and ``0.1 + 0.2 > 0.3`` does not. A NaN
    operand makes every comparison false, ``!=`` included.

    Raises:
        ValueError: If the operator is not a comparison operator
    """
    if operator not in COMPARISON_OPERATORS:
        raise ValueError(f"Unknown comparison operator: {operator}")

    if math.isnan(left) or math.isnan(right):
        return False

    close = is_close(left, right, epsilon)

    if operator == "==":
        return close
    if operator == "!=":
        return not close
    if operator == ">":
        return left > right and not close
    if operator == "<":
        return left < right and not close
    if operator == ">=":
        return left > right or close
    return left < right or close
