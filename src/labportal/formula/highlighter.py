"""Cell highlighting: evaluate formulas against a measurement table.

For every value column the highlighter builds the column's variable map,
evaluates each parsed formula once against it and, when the comparison
holds, highlights the rows of the variables the formula used. Several
formulas matching the same cell are merged into one record whose color
is the average of their colors.

Failures are isolated per formula: a malformed formula is reported once
and skipped, a formula whose variables are missing from a column is a
silent non-match for that column. Only a table without a variable column
aborts the pass.
"""

import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from labportal.core.exceptions import (
    MalformedFormulaError,
    NonNumericResultError,
    UnresolvedVariableError,
)
from labportal.core.logging import get_logger
from labportal.formula.cache import FormulaCache
from labportal.formula.colors import blend_colors
from labportal.formula.comparator import DEFAULT_EPSILON, compare
from labportal.formula.evaluator import ArithmeticEvaluator
from labportal.formula.names import name_key, normalize_name
from labportal.formula.parser import ParsedFormula
from labportal.formula.resolver import (
    DEFAULT_VARIABLE_COLUMN,
    VariableResolver,
    find_variable_column,
    to_number,
)
from labportal.metrics import formula_evaluation_counter, formula_evaluation_histogram
from labportal.schemas.formula import (
    DataTable,
    EvaluationReport,
    Formula,
    FormulaDetail,
    FormulaIssue,
    HighlightedCell,
)

logger = get_logger(__name__)

DEFAULT_METADATA_COLUMNS = ("id", "Variable", "Data Source", "Method", "Unit", "LOQ")


@dataclass(frozen=True)
class _PreparedFormula:
    formula: Formula
    parsed: ParsedFormula


@dataclass(frozen=True)
class _Match:
    row: str
    col: str
    formula: Formula
    left_result: float
    right_result: float


@dataclass
class _ColumnResult:
    matches: list[_Match] = field(default_factory=list)
    issues: list[FormulaIssue] = field(default_factory=list)


@dataclass
class _CellAccumulator:
    row: str
    col: str
    matches: list[_Match] = field(default_factory=list)

    def add(self, match: _Match) -> None:
        if any(m.formula.id == match.formula.id for m in self.matches):
            return
        self.matches.append(match)


def applicable_formulas(formulas: Iterable[Formula], table_id: str | None = None) -> list[Formula]:
    """
    Select the formulas that apply to a table.

    Inactive formulas never apply. Workspace-wide formulas (no table id)
    always apply; table-scoped formulas apply only to their own table.
    """
    return [
        f
        for f in formulas
        if f.active and (f.table_id is None or (table_id is not None and f.table_id == table_id))
    ]


def _issue(formula: Formula, error: MalformedFormulaError, color: str | None) -> FormulaIssue:
    return FormulaIssue(
        formula_id=formula.id,
        name=formula.name,
        formula=formula.formula,
        code=error.code,
        message=error.message,
        color=color,
    )


class FormulaHighlighter:
    """
    Evaluates formulas against a table and produces highlighted cells.

    The parsed-formula cache is injected and shared across calls; all other
    state lives inside a single :meth:`evaluate` call.
    """

    def __init__(
        self,
        cache: FormulaCache | None = None,
        evaluator: ArithmeticEvaluator | None = None,
        variable_column: str = DEFAULT_VARIABLE_COLUMN,
        metadata_columns: Sequence[str] = DEFAULT_METADATA_COLUMNS,
        epsilon: float = DEFAULT_EPSILON,
        max_workers: int = 1,
        fallback_color: str = "#ffeb3b",
        error_color: str | None = "#ff6b6b",
    ) -> None:
        self.cache = cache if cache is not None else FormulaCache()
        self.evaluator = evaluator or ArithmeticEvaluator()
        self.resolver = VariableResolver(variable_column)
        self.variable_column = variable_column
        self.metadata_columns = frozenset(metadata_columns) | {variable_column}
        self.epsilon = epsilon
        self.max_workers = max(1, max_workers)
        self.fallback_color = fallback_color
        self.error_color = error_color

    def value_column_indices(self, table: DataTable) -> list[int]:
        """Indices of the sampling-date columns of a table."""
        return [i for i, col in enumerate(table.columns) if col not in self.metadata_columns]

    def evaluate(self, formulas: Sequence[Formula], table: DataTable) -> EvaluationReport:
        """
        Evaluate formulas against a table.

        Args:
            formulas: Formulas to apply; inactive ones are skipped
            table: Measurement table

        Returns:
            EvaluationReport with highlighted cells and per-formula errors

        Raises:
            InvalidTableShapeError: If the table has no variable column
        """
        variable_index = find_variable_column(table, self.variable_column)

        with formula_evaluation_histogram.time():
            started = time.perf_counter()
            prepared, issues = self._prepare(formulas)
            columns = self.value_column_indices(table)

            results: list[_ColumnResult] = []
            if prepared and table.data:
                if self.max_workers > 1 and len(columns) > 1:
                    with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                        results = list(
                            executor.map(
                                lambda idx: self._evaluate_column(table, idx, variable_index, prepared),
                                columns,
                            )
                        )
                else:
                    results = [
                        self._evaluate_column(table, idx, variable_index, prepared) for idx in columns
                    ]

            # Merge on the calling thread, in column order
            cells: dict[tuple[str, str], _CellAccumulator] = {}
            reported = {issue.formula_id for issue in issues}
            for result in results:
                for match in result.matches:
                    key = (match.row, match.col)
                    if key not in cells:
                        cells[key] = _CellAccumulator(row=match.row, col=match.col)
                    cells[key].add(match)
                for issue in result.issues:
                    if issue.formula_id not in reported:
                        reported.add(issue.formula_id)
                        issues.append(issue)

            highlighted = [self._finalize(acc) for acc in cells.values()]

        logger.debug(
            "Formula evaluation pass complete",
            extra={
                "formulas": len(prepared),
                "value_columns": len(columns),
                "rows": len(table.data),
                "highlighted_cells": len(highlighted),
                "errors": len(issues),
                "duration_ms": round((time.perf_counter() - started) * 1000, 3),
            },
        )
        return EvaluationReport(highlighted_cells=highlighted, errors=issues)

    def _prepare(self, formulas: Sequence[Formula]) -> tuple[list[_PreparedFormula], list[FormulaIssue]]:
        prepared: list[_PreparedFormula] = []
        issues: list[FormulaIssue] = []
        for formula in formulas:
            if not formula.active:
                continue
            try:
                parsed = self.cache.get_or_parse(formula.formula)
            except MalformedFormulaError as e:
                logger.warning(
                    f"Skipping malformed formula '{formula.name}': {e.reason}",
                    extra={"formula_id": formula.id},
                )
                formula_evaluation_counter.labels(outcome="malformed").inc()
                issues.append(_issue(formula, e, self.error_color))
                continue
            prepared.append(_PreparedFormula(formula=formula, parsed=parsed))
        return prepared, issues

    def _evaluate_column(
        self,
        table: DataTable,
        column_index: int,
        variable_index: int,
        prepared: Sequence[_PreparedFormula],
    ) -> _ColumnResult:
        result = _ColumnResult()
        column = table.columns[column_index]
        variables = self.resolver.resolve(table, column_index)
        if not variables:
            return result

        # Row keys for rows that have a numeric value in this column
        row_keys: list[tuple[str, set[str]]] = []
        for position, row in enumerate(table.data, start=1):
            raw_name = row[variable_index] if variable_index < len(row) else None
            cell = row[column_index] if column_index < len(row) else None
            if raw_name is None or to_number(cell) is None:
                continue
            trimmed = str(raw_name).strip()
            if not normalize_name(trimmed):
                continue
            row_keys.append((f"row-{position}", {name_key(trimmed), trimmed.casefold()}))

        for item in prepared:
            formula, parsed = item.formula, item.parsed
            try:
                left = self.evaluator.evaluate_with_trace(parsed.left_expression, variables)
                right = self.evaluator.evaluate_with_trace(parsed.right_expression, variables)
            except UnresolvedVariableError as e:
                formula_evaluation_counter.labels(outcome="unresolved").inc()
                logger.debug(
                    f"Formula '{formula.name}' not applicable to column '{column}'",
                    extra={"formula_id": formula.id, "missing": e.names},
                )
                continue
            except NonNumericResultError as e:
                formula_evaluation_counter.labels(outcome="non_numeric").inc()
                logger.debug(
                    f"Formula '{formula.name}' gave no number in column '{column}': {e.message}",
                    extra={"formula_id": formula.id},
                )
                continue
            except MalformedFormulaError as e:
                formula_evaluation_counter.labels(outcome="malformed").inc()
                result.issues.append(_issue(formula, e, self.error_color))
                continue

            if not compare(left.value, parsed.operator, right.value, self.epsilon):
                formula_evaluation_counter.labels(outcome="no_match").inc()
                continue
            formula_evaluation_counter.labels(outcome="match").inc()

            targets = {key.casefold() for key in left.variables_used + right.variables_used}
            for row_id, keys in row_keys:
                if keys & targets:
                    result.matches.append(
                        _Match(
                            row=row_id,
                            col=column,
                            formula=formula,
                            left_result=left.value,
                            right_result=right.value,
                        )
                    )

        return result

    def _finalize(self, acc: _CellAccumulator) -> HighlightedCell:
        formulas = [m.formula for m in acc.matches]
        names = list(dict.fromkeys(f.name for f in formulas))
        return HighlightedCell(
            row=acc.row,
            col=acc.col,
            color=blend_colors([f.color for f in formulas], fallback=self.fallback_color),
            message=", ".join(names),
            formula_ids=[f.id for f in formulas],
            formula_details=[
                FormulaDetail(
                    id=m.formula.id,
                    name=m.formula.name,
                    formula=m.formula.formula,
                    color=m.formula.color,
                    left_result=m.left_result,
                    right_result=m.right_result,
                )
                for m in acc.matches
            ],
        )


def evaluate_formulas(
    formulas: Sequence[Formula],
    table: DataTable,
    cache: FormulaCache | None = None,
) -> list[HighlightedCell]:
    """
    Convenience function returning only the highlighted cells.

    Args:
        formulas: Active formulas
        table: Measurement table
        cache: Shared parsed-formula cache; a private one is used if omitted

    Returns:
        Highlighted cells, one per matched (row, column)
    """
    return FormulaHighlighter(cache=cache).evaluate(formulas, table).highlighted_cells
