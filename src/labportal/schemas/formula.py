"""Formula and measurement table schemas.

These models are both the engine's input/output types and the API's
request/response bodies. JSON uses camelCase (``formulaIds``,
``leftResult``) to match the table UI and the PDF exporter; Python code
uses the snake_case attribute names.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

CellValue = Union[str, int, float, None]

_camel_config = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class FormulaType(str, Enum):
    """How the portal applies a formula."""

    CELL_VALIDATION = "CELL_VALIDATION"
    RELATIONAL = "RELATIONAL"


class Formula(BaseModel):
    """A user-authored validation rule. Lifecycle is owned by the CRUD layer."""

    id: str = Field(..., min_length=1, description="Formula ID")
    name: str = Field(..., min_length=1, max_length=255, description="Formula name")
    description: Optional[str] = Field(None, max_length=2000, description="Formula description")
    formula: str = Field(..., description="Comparison expression, e.g. '[İletkenlik] > 320'")
    color: str = Field(default="#ffeb3b", description="Highlight color (hex)")
    type: FormulaType = Field(default=FormulaType.CELL_VALIDATION, description="Formula type")
    table_id: Optional[str] = Field(None, description="Owning table; null = workspace-wide")
    workspace_id: Optional[str] = Field(None, description="Owning workspace")
    active: bool = Field(default=True, description="Whether the formula is applied")

    model_config = _camel_config


class DataTable(BaseModel):
    """
    Pivoted measurement table.

    One column holds variable names; the others are metadata columns
    (Unit, Method, LOQ, ...) or sampling-date value columns. Each row is a
    positional list aligned to ``columns``.
    """

    columns: list[str] = Field(..., description="Ordered column names")
    data: list[list[CellValue]] = Field(default_factory=list, description="Rows")

    model_config = _camel_config


class FormulaDetail(BaseModel):
    """One formula's contribution to a highlighted cell."""

    id: str
    name: str
    formula: str
    color: str
    left_result: Optional[float] = None
    right_result: Optional[float] = None

    model_config = _camel_config


class HighlightedCell(BaseModel):
    """A (row, column) cell matched by one or more formulas."""

    row: str = Field(..., description="Row key, 'row-{1-based index}'")
    col: str = Field(..., description="Column name")
    color: str = Field(..., description="Formula color, blended when several match")
    message: str = Field(..., description="Matching formula names, comma separated")
    formula_ids: list[str] = Field(default_factory=list)
    formula_details: list[FormulaDetail] = Field(default_factory=list)

    model_config = _camel_config


class FormulaIssue(BaseModel):
    """A formula that was excluded from an evaluation pass."""

    formula_id: str
    name: str
    formula: str
    code: str
    message: str
    color: Optional[str] = Field(None, description="Color used to flag the formula in the UI")

    model_config = _camel_config


class EvaluationReport(BaseModel):
    """Result of evaluating formulas against a table."""

    highlighted_cells: list[HighlightedCell] = Field(default_factory=list)
    errors: list[FormulaIssue] = Field(default_factory=list)

    model_config = _camel_config


class ParsedFormulaResponse(BaseModel):
    """Structure of a parsed formula."""

    left_expression: str
    operator: str
    right_expression: str
    variables: list[str]
    left_variables: list[str] = Field(default_factory=list)
    right_variables: list[str] = Field(default_factory=list)

    model_config = _camel_config


class FormulaValidationResult(BaseModel):
    """Outcome of validating a formula against known variable names."""

    is_valid: bool
    error: Optional[str] = None
    missing_variables: list[str] = Field(default_factory=list)
    left_variables: list[str] = Field(default_factory=list)
    right_variables: list[str] = Field(default_factory=list)
    target_variable: Optional[str] = None

    model_config = _camel_config


# =============================================================================
# Requests
# =============================================================================


class EvaluateFormulasRequest(BaseModel):
    """Schema for evaluating formulas against a table."""

    formulas: list[Formula] = Field(default_factory=list)
    table: DataTable
    table_id: Optional[str] = Field(
        None, description="Apply table-scoped formulas for this table as well"
    )

    model_config = _camel_config


class ParseFormulaRequest(BaseModel):
    """Schema for parsing a formula."""

    formula: str

    model_config = _camel_config


class ValidateFormulaRequest(BaseModel):
    """Schema for validating a formula."""

    formula: str
    variables: list[str] = Field(default_factory=list, description="Known variable names")
    unidirectional: bool = Field(
        default=False, description="Require a single variable on the left side"
    )

    model_config = _camel_config
