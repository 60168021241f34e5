"""In-process cache of parsed formulas.

One instance is constructed per process (see ``labportal.main``) and
shared by every evaluation request. Entries are keyed by the exact raw
formula string, whitespace included, and hold immutable
:class:`ParsedFormula` values.

Two threads that miss on the same new key may both parse it. Parsing is
deterministic, the first stored entry wins and the second result is
dropped, so the race only costs a redundant parse.
"""

import threading

from labportal.core.logging import get_logger
from labportal.formula.parser import FormulaParser, ParsedFormula
from labportal.metrics import formula_cache_counter

logger = get_logger(__name__)


class FormulaCache:
    """Thread-safe memoization of :meth:`FormulaParser.parse`.

    No eviction: entries are small and bounded by the number of distinct
    formula strings seen by the process.
    """

    def __init__(self, parser: FormulaParser | None = None) -> None:
        self._parser = parser or FormulaParser()
        self._entries: dict[str, ParsedFormula] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get_or_parse(self, formula: str) -> ParsedFormula:
        """
        Return the cached structure for ``formula``, parsing it on first use.

        Failed parses are not cached; MalformedFormulaError propagates to
        the caller every time.
        """
        cached = self._entries.get(formula)
        if cached is not None:
            with self._lock:
                self._hits += 1
            formula_cache_counter.labels(operation="get", status="hit").inc()
            return cached

        parsed = self._parser.parse(formula)

        with self._lock:
            self._misses += 1
            stored = self._entries.setdefault(formula, parsed)
        formula_cache_counter.labels(operation="get", status="miss").inc()
        return stored

    def clear(self) -> int:
        """Drop every entry. Returns the number of entries removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        formula_cache_counter.labels(operation="clear", status="ok").inc()
        logger.info("Formula cache cleared", extra={"entries": removed})
        return removed

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
            }

    def __contains__(self, formula: object) -> bool:
        return formula in self._entries

    def __len__(self) -> int:
        return len(self._entries)
