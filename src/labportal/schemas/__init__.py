"""Pydantic schemas for the lab portal API."""

from labportal.schemas.formula import (
    DataTable,
    EvaluateFormulasRequest,
    EvaluationReport,
    Formula,
    FormulaDetail,
    FormulaIssue,
    FormulaType,
    FormulaValidationResult,
    HighlightedCell,
    ParsedFormulaResponse,
    ParseFormulaRequest,
    ValidateFormulaRequest,
)

__all__ = [
    "DataTable",
    "EvaluateFormulasRequest",
    "EvaluationReport",
    "Formula",
    "FormulaDetail",
    "FormulaIssue",
    "FormulaType",
    "FormulaValidationResult",
    "HighlightedCell",
    "ParsedFormulaResponse",
    "ParseFormulaRequest",
    "ValidateFormulaRequest",
]
