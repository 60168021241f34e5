"""
Formula endpoints.

Evaluates formulas against a measurement table, validates and parses
formulas for the editor, and manages the parsed-formula cache.
"""

import asyncio

from fastapi import APIRouter, status

from labportal.api.deps import Highlighter, SharedFormulaCache
from labportal.core.config import settings
from labportal.core.exceptions import PayloadTooLargeError
from labportal.core.logging import get_logger
from labportal.formula.highlighter import applicable_formulas
from labportal.formula.validation import validate_formula, validate_unidirectional_formula
from labportal.schemas.formula import (
    EvaluateFormulasRequest,
    EvaluationReport,
    FormulaValidationResult,
    ParsedFormulaResponse,
    ParseFormulaRequest,
    ValidateFormulaRequest,
)

logger = get_logger(__name__)

router = APIRouter()


def _check_request_size(request: EvaluateFormulasRequest) -> None:
    """Reject tables and formula lists larger than the configured limits."""
    if len(request.formulas) > settings.max_formulas:
        raise PayloadTooLargeError("formulas", settings.max_formulas, len(request.formulas))
    if len(request.table.columns) > settings.max_table_columns:
        raise PayloadTooLargeError(
            "table columns", settings.max_table_columns, len(request.table.columns)
        )
    if len(request.table.data) > settings.max_table_rows:
        raise PayloadTooLargeError("table rows", settings.max_table_rows, len(request.table.data))


# =============================================================================
# Evaluation
# =============================================================================


@router.post(
    "/evaluate",
    response_model=EvaluationReport,
    response_model_by_alias=True,
)
async def evaluate(
    request: EvaluateFormulasRequest,
    highlighter: Highlighter,
) -> EvaluationReport:
    """
    Evaluate formulas against a measurement table.

    Only active formulas that are workspace-wide or scoped to ``tableId``
    are applied. Returns the highlighted cells plus any formulas that
    could not be parsed.
    """
    _check_request_size(request)

    formulas = applicable_formulas(request.formulas, request.table_id)
    logger.debug(
        "Evaluating formulas",
        extra={
            "table_id": request.table_id,
            "received": len(request.formulas),
            "applicable": len(formulas),
        },
    )
    # Evaluation is CPU-bound; keep it off the event loop
    return await asyncio.to_thread(highlighter.evaluate, formulas, request.table)


# =============================================================================
# Editor Support
# =============================================================================


@router.post(
    "/validate",
    response_model=FormulaValidationResult,
    response_model_by_alias=True,
)
async def validate(
    request: ValidateFormulaRequest,
    cache: SharedFormulaCache,
) -> FormulaValidationResult:
    """
    Validate a formula against the variables of a table.

    With ``unidirectional`` set, the left side must be a single variable
    that the right side does not reference.
    """
    if request.unidirectional:
        check = validate_unidirectional_formula
    else:
        check = validate_formula
    return await asyncio.to_thread(check, request.formula, request.variables, cache)


@router.post(
    "/parse",
    response_model=ParsedFormulaResponse,
    response_model_by_alias=True,
)
async def parse(
    request: ParseFormulaRequest,
    cache: SharedFormulaCache,
) -> ParsedFormulaResponse:
    """
    Parse a formula into its comparison structure.

    Malformed formulas produce a 400 MALFORMED_FORMULA error.
    """
    parsed = cache.get_or_parse(request.formula)
    return ParsedFormulaResponse(
        left_expression=parsed.left_expression,
        operator=parsed.operator,
        right_expression=parsed.right_expression,
        variables=list(parsed.variables),
        left_variables=list(parsed.left_variables),
        right_variables=list(parsed.right_variables),
    )


# =============================================================================
# Cache
# =============================================================================


@router.get("/cache")
async def cache_stats(cache: SharedFormulaCache) -> dict[str, int]:
    """Parsed-formula cache statistics."""
    return cache.stats()


@router.delete("/cache", status_code=status.HTTP_200_OK)
async def clear_cache(cache: SharedFormulaCache) -> dict[str, int]:
    """
    Clear the parsed-formula cache.

    Returns the number of entries removed.
    """
    return {"cleared": cache.clear()}
