"""
FastAPI dependency injection functions.

Provides the shared formula cache and a configured highlighter.
"""

from typing import Annotated

from fastapi import Depends, Request

from labportal.core.config import settings
from labportal.formula.cache import FormulaCache
from labportal.formula.highlighter import FormulaHighlighter


def get_formula_cache(request: Request) -> FormulaCache:
    """
    Get the process-wide parsed-formula cache.

    The cache is created by the application factory and stored on
    ``app.state``.
    """
    return request.app.state.formula_cache


def get_highlighter(
    cache: Annotated[FormulaCache, Depends(get_formula_cache)],
) -> FormulaHighlighter:
    """Get a highlighter configured from settings and bound to the shared cache."""
    return FormulaHighlighter(
        cache=cache,
        variable_column=settings.variable_column,
        metadata_columns=settings.metadata_columns,
        epsilon=settings.comparison_epsilon,
        max_workers=settings.formula_column_workers,
        fallback_color=settings.default_highlight_color,
        error_color=settings.error_highlight_color,
    )


# Type aliases for cleaner dependency injection
SharedFormulaCache = Annotated[FormulaCache, Depends(get_formula_cache)]
Highlighter = Annotated[FormulaHighlighter, Depends(get_highlighter)]
