"""Unit tests for the parsed-formula cache."""

import threading

import pytest

from labportal.core.exceptions import MalformedFormulaError
from labportal.formula.cache import FormulaCache
from labportal.formula.parser import FormulaParser


class CountingParser(FormulaParser):
    def __init__(self):
        self.calls = 0

    def parse(self, formula):
        self.calls += 1
        return super().parse(formula)


class TestFormulaCache:
    """Tests for FormulaCache class."""

    def test_parse_once(self):
        """Repeated lookups return the cached structure."""
        parser = CountingParser()
        cache = FormulaCache(parser)

        first = cache.get_or_parse("[A] > [B]")
        second = cache.get_or_parse("[A] > [B]")

        assert first is second
        assert parser.calls == 1
        assert cache.stats() == {"entries": 1, "hits": 1, "misses": 1}

    def test_keyed_by_exact_string(self):
        """Whitespace differences are distinct keys."""
        cache = FormulaCache()
        cache.get_or_parse("[A] > [B]")
        cache.get_or_parse("[A]  >  [B]")
        assert len(cache) == 2
        assert "[A] > [B]" in cache

    def test_failed_parse_not_cached(self, formula_cache):
        """Malformed formulas raise every time and leave no entry."""
        for _ in range(2):
            with pytest.raises(MalformedFormulaError):
                formula_cache.get_or_parse("[A] + [B]")
        assert "[A] + [B]" not in formula_cache
        assert len(formula_cache) == 0

    def test_clear(self, formula_cache):
        """clear() drops all entries and resets the counters."""
        formula_cache.get_or_parse("[A] > 1")
        formula_cache.get_or_parse("[B] < 2")

        assert formula_cache.clear() == 2
        assert len(formula_cache) == 0
        assert formula_cache.stats() == {"entries": 0, "hits": 0, "misses": 0}

    def test_cached_value_is_immutable(self, formula_cache):
        """Cached structures cannot be modified by a caller."""
        parsed = formula_cache.get_or_parse("[A] > 1")
        with pytest.raises(AttributeError):
            parsed.operator = "<"

    def test_concurrent_first_use(self):
        """
        Threads racing on a new key may each parse it; every caller still
        gets an equal result and exactly one entry is stored.
        """
        parser = CountingParser()
        cache = FormulaCache(parser)
        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            parsed = cache.get_or_parse("(İletkenlik + 1) >= Alkalinite Tayini")
            with lock:
                results.append(parsed)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(r == results[0] for r in results)
        assert len(cache) == 1
        # Redundant parses are allowed, but never more than one per caller
        assert 1 <= parser.calls <= 8
