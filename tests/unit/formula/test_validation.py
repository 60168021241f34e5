"""Unit tests for formula validation."""

from labportal.formula.validation import validate_formula, validate_unidirectional_formula

VARIABLES = ["İletkenlik", "Alkalinite Tayini", "Toplam Fosfor", "Orto Fosfat"]


class TestValidateFormula:
    """Tests for validate_formula()."""

    def test_valid(self):
        """A well-formed formula over known variables is valid."""
        result = validate_formula("[İletkenlik] > [Alkalinite Tayini] * 2", VARIABLES)
        assert result.is_valid is True
        assert result.error is None
        assert result.left_variables == ["İletkenlik"]
        assert result.right_variables == ["Alkalinite Tayini"]

    def test_bare_and_case_insensitive_names(self):
        """Bare names match known variables regardless of case."""
        result = validate_formula("toplam fosfor >= Orto Fosfat", VARIABLES)
        assert result.is_valid is True

    def test_unknown_variable(self):
        """Unknown variables are listed and the formula is invalid."""
        result = validate_formula("[İletkenlik] > [Bulanıklık]", VARIABLES)
        assert result.is_valid is False
        assert result.missing_variables == ["Bulanıklık"]
        assert "Bulanıklık" in result.error

    def test_malformed(self):
        """A formula without a comparison is invalid."""
        result = validate_formula("[İletkenlik] + 1", VARIABLES)
        assert result.is_valid is False
        assert "no comparison operator" in result.error

    def test_unsupported_syntax(self):
        """Unsupported arithmetic is caught by the dry run."""
        result = validate_formula("[İletkenlik] % 2 > 0", VARIABLES)
        assert result.is_valid is False
        assert result.error is not None

    def test_division_by_zero_with_dummy_values_is_valid(self):
        """Only syntax is checked; arithmetic outcomes depend on real data."""
        result = validate_formula("[İletkenlik] / ([Orto Fosfat] - [Orto Fosfat]) > 1", VARIABLES)
        assert result.is_valid is True

    def test_uses_cache(self, formula_cache):
        """Validation parses through the shared cache."""
        validate_formula("[İletkenlik] > 1", VARIABLES, formula_cache)
        assert "[İletkenlik] > 1" in formula_cache


class TestValidateUnidirectionalFormula:
    """Tests for validate_unidirectional_formula()."""

    def test_bracketed_target(self):
        """A bracketed left-hand variable is the target."""
        result = validate_unidirectional_formula(
            "[İletkenlik] > [Alkalinite Tayini] + 100", VARIABLES
        )
        assert result.is_valid is True
        assert result.target_variable == "İletkenlik"

    def test_bare_target(self):
        """A bare left-hand variable is the target."""
        result = validate_unidirectional_formula("Toplam Fosfor > Orto Fosfat", VARIABLES)
        assert result.is_valid is True
        assert result.target_variable == "Toplam Fosfor"

    def test_arithmetic_on_left_rejected(self):
        """The left side must be a single variable."""
        result = validate_unidirectional_formula("[Toplam Fosfor] * 2 > [Orto Fosfat]", VARIABLES)
        assert result.is_valid is False
        assert result.target_variable is None

    def test_constant_on_left_rejected(self):
        """A constant cannot be the target."""
        result = validate_unidirectional_formula("100 < [İletkenlik]", VARIABLES)
        assert result.is_valid is False

    def test_target_on_right_rejected(self):
        """The target may not appear on the right side."""
        result = validate_unidirectional_formula(
            "[İletkenlik] > [İletkenlik] * 0.5 + [Orto Fosfat]", VARIABLES
        )
        assert result.is_valid is False
        assert result.target_variable == "İletkenlik"
        assert "target variable" in result.error

    def test_general_errors_propagate(self):
        """General validation failures apply to the unidirectional check."""
        result = validate_unidirectional_formula("[Bulanıklık] > 1", VARIABLES)
        assert result.is_valid is False
        assert result.missing_variables == ["Bulanıklık"]
