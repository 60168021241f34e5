"""Unit tests for the formula parser and variable name grammar."""

import pytest

from labportal.core.exceptions import MalformedFormulaError
from labportal.formula.names import extract_variables, name_key, normalize_name
from labportal.formula.parser import FormulaParser, parse_formula


class TestFormulaParser:
    """Tests for splitting a formula into its comparison."""

    @pytest.mark.parametrize("operator", [">", "<", ">=", "<=", "==", "!="])
    def test_parse_each_operator(self, operator):
        """Each comparison operator is recognized as a single token."""
        parsed = parse_formula(f"[A] {operator} [B]")
        assert parsed.operator == operator
        assert parsed.left_expression == "[A]"
        assert parsed.right_expression == "[B]"

    def test_parse_trims_sides(self):
        """Both sides are trimmed."""
        parsed = parse_formula("   [A] + 1   >=   2  ")
        assert parsed.left_expression == "[A] + 1"
        assert parsed.right_expression == "2"

    def test_parse_without_spaces(self):
        """Operators need no surrounding whitespace."""
        parsed = parse_formula("[A]<=[B]*2")
        assert parsed.operator == "<="
        assert parsed.left_expression == "[A]"
        assert parsed.right_expression == "[B]*2"

    def test_parse_operator_aliases(self):
        """'=' and '<>' are accepted as spellings of '==' and '!='."""
        assert parse_formula("[A] = 5").operator == "=="
        assert parse_formula("[A] <> 5").operator == "!="

    def test_parse_bare_names(self):
        """Bare multi-word names are extracted as variables."""
        parsed = parse_formula("Toplam Fosfor > Orto Fosfat")
        assert parsed.left_variables == ("Toplam Fosfor",)
        assert parsed.right_variables == ("Orto Fosfat",)
        assert parsed.variables == ("Toplam Fosfor", "Orto Fosfat")

    def test_parse_composite_formula(self):
        """Variables from both sides are collected in order."""
        parsed = parse_formula(
            "(İletkenlik + Toplam Fosfor) > (Orto Fosfat * 2 + Alkalinite Tayini)"
        )
        assert parsed.operator == ">"
        assert parsed.variables == (
            "İletkenlik",
            "Toplam Fosfor",
            "Orto Fosfat",
            "Alkalinite Tayini",
        )

    def test_variables_deduplicated_case_insensitively(self):
        """The same variable in different cases is listed once."""
        parsed = parse_formula("[pH] + PH > [ph]")
        assert parsed.variables == ("pH",)

    def test_operator_inside_brackets_ignored(self):
        """Comparison characters inside a bracketed name are part of the name."""
        parsed = parse_formula("[Oran <5] > 2")
        assert parsed.operator == ">"
        assert parsed.left_variables == ("Oran <5",)

    def test_literals_are_not_variables(self):
        """Numbers, exponents and keywords are not variables."""
        parsed = parse_formula("1e5 + 2.5 > true")
        assert parsed.variables == ()

    def test_as_formula_round_trip(self):
        """Reassembling a parsed formula gives back the normalized string."""
        raw = "([A] + [B]) >= [C] * 2"
        assert parse_formula(raw).as_formula() == raw

    @pytest.mark.parametrize(
        "formula, reason",
        [
            ("", "empty"),
            ("   ", "empty"),
            ("[A] + [B]", "no comparison operator"),
            ("[A] > [B] > [C]", "exactly one comparison operator"),
            ("[A] >= 1 && [B] < 2", "exactly one comparison operator"),
            ("> 5", "missing left-hand"),
            ("[A] >", "missing right-hand"),
            ("[A] ! [B]", "not a comparison operator"),
            ("([A] > 1", "unbalanced parentheses"),
            ("[A > 1", "unbalanced brackets"),
        ],
    )
    def test_malformed_formulas(self, formula, reason):
        """Malformed formulas raise MalformedFormulaError with a reason."""
        with pytest.raises(MalformedFormulaError) as exc_info:
            parse_formula(formula)
        assert reason in exc_info.value.reason
        assert exc_info.value.code == "MALFORMED_FORMULA"

    def test_validate(self):
        """validate() reports errors instead of raising."""
        parser = FormulaParser()
        assert parser.validate("[A] > 1") == (True, None)

        is_valid, error = parser.validate("[A] + 1")
        assert is_valid is False
        assert "no comparison operator" in error

    def test_get_variable_references(self):
        """Test listing referenced variables."""
        parser = FormulaParser()
        assert parser.get_variable_references("[A] * 2 < B") == ["A", "B"]


class TestVariableNames:
    """Tests for name normalization and extraction."""

    def test_normalize_strips_whitespace_and_trailing_commas(self):
        """Surrounding whitespace and trailing commas are removed."""
        assert normalize_name("  İletkenlik,, ") == "İletkenlik"
        assert normalize_name("Toplam Fosfor ,") == "Toplam Fosfor"

    def test_normalize_keeps_inner_commas(self):
        """Commas inside a name are kept."""
        assert normalize_name("Fe, çözünmüş") == "Fe, çözünmüş"

    def test_name_key_is_case_insensitive(self):
        """Spellings differing in case and trailing commas share a key."""
        assert name_key("Toplam Fosfor,") == name_key("TOPLAM FOSFOR")

    def test_extract_mixed_references(self):
        """Bracketed references come first, then bare names."""
        assert extract_variables("(Toplam Fosfor + [A]) * 2") == ["A", "Toplam Fosfor"]

    def test_extract_ignores_numbers(self):
        """Numbers and exponents are not variables."""
        assert extract_variables("2.5 * 1e-3 + .5") == []
