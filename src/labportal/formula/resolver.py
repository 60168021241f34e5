"""Variable resolution for one value column of a measurement table.

A measurement table is pivoted: each row is one variable's time series,
each non-metadata column is one sampling date. For a chosen date column
the resolver builds a ``name -> number`` map from every row.
"""

import math
import re
from collections.abc import Iterator, Mapping
from typing import Any

from labportal.core.exceptions import InvalidTableShapeError
from labportal.formula.names import name_key, normalize_name
from labportal.schemas.formula import DataTable

DEFAULT_VARIABLE_COLUMN = "Variable"

# Signed decimal literal with optional exponent; no thousands separators
_NUMERIC_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def to_number(value: Any) -> float | None:
    """
    Convert a table cell to a finite float.

    Returns None for null cells, blank strings, non-numeric text such as
    "<LOQ" and non-finite values; those cells are simply absent from the
    variable map.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_RE.fullmatch(text):
            return None
        number = float(text)
    else:
        return None
    return number if math.isfinite(number) else None


class VariableMap(Mapping[str, float]):
    """
    Mapping of variable name to value with fuzzy lookup.

    Lookup tries the exact key, then the normalized spelling, then a
    case-insensitive match.
    """

    def __init__(self, values: Mapping[str, float] | None = None) -> None:
        self._values: dict[str, float] = {}
        self._folded: dict[str, str] = {}
        for name, value in (values or {}).items():
            self.set(name, value)

    def set(self, name: str, value: float) -> None:
        self._values[name] = value
        self._folded[name.casefold()] = name

    def resolve(self, name: str) -> str | None:
        """Return the stored key ``name`` refers to, or None."""
        if name in self._values:
            return name
        normalized = normalize_name(name)
        if normalized in self._values:
            return normalized
        return self._folded.get(normalized.casefold())

    def __getitem__(self, name: str) -> float:
        key = self.resolve(name)
        if key is None:
            raise KeyError(name)
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableMap({self._values!r})"


def find_variable_column(table: DataTable, variable_column: str = DEFAULT_VARIABLE_COLUMN) -> int:
    """
    Index of the variable-name column.

    Raises:
        InvalidTableShapeError: If the table has no such column
    """
    try:
        return table.columns.index(variable_column)
    except ValueError:
        raise InvalidTableShapeError(
            f"Table has no '{variable_column}' column",
            missing_column=variable_column,
        ) from None


def _cell(row: list[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


class VariableResolver:
    """Builds per-column variable maps from a measurement table."""

    def __init__(self, variable_column: str = DEFAULT_VARIABLE_COLUMN) -> None:
        self.variable_column = variable_column

    def resolve(self, table: DataTable, value_column_index: int) -> VariableMap:
        """
        Build the variable map for one value column.

        Rows with an empty variable name or a null/non-numeric cell are
        skipped. Each value is stored under the normalized name and, when it
        differs, under the trimmed original spelling too.

        Raises:
            InvalidTableShapeError: If the table has no variable column
        """
        variable_index = find_variable_column(table, self.variable_column)
        variables = VariableMap()

        for row in table.data:
            raw_name = _cell(row, variable_index)
            if raw_name is None:
                continue
            trimmed = str(raw_name).strip()
            normalized = normalize_name(trimmed)
            if not normalized:
                continue

            value = to_number(_cell(row, value_column_index))
            if value is None:
                continue

            variables.set(normalized, value)
            if trimmed != normalized:
                variables.set(trimmed, value)

        return variables


def resolve_variables(
    table: DataTable,
    value_column_index: int,
    variable_column: str = DEFAULT_VARIABLE_COLUMN,
) -> VariableMap:
    """Convenience function to build one column's variable map."""
    return VariableResolver(variable_column).resolve(table, value_column_index)


def get_cell_value(
    table: DataTable,
    variable: str,
    column: str,
    variable_column: str = DEFAULT_VARIABLE_COLUMN,
) -> float | None:
    """
    Numeric value of ``variable`` in ``column``, or None when absent.

    Variable names are compared with the same normalization as formulas.
    """
    variable_index = find_variable_column(table, variable_column)
    try:
        column_index = table.columns.index(column)
    except ValueError:
        return None

    wanted = name_key(variable)
    for row in table.data:
        raw_name = _cell(row, variable_index)
        if raw_name is not None and name_key(str(raw_name)) == wanted:
            return to_number(_cell(row, column_index))
    return None
