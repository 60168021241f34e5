"""Unit tests for color blending."""

from labportal.formula.colors import blend_colors, parse_hex_color, to_hex


class TestParseHexColor:
    """Tests for parse_hex_color()."""

    def test_six_digit(self):
        """Six-digit colors parse with or without the hash."""
        assert parse_hex_color("#ff9900") == (255, 153, 0)
        assert parse_hex_color("00CC99") == (0, 204, 153)

    def test_three_digit(self):
        """Short-form colors expand each digit."""
        assert parse_hex_color("#f90") == (255, 153, 0)

    def test_invalid(self):
        """Anything that is not a hex color gives None."""
        assert parse_hex_color("red") is None
        assert parse_hex_color("#12345") is None
        assert parse_hex_color("") is None
        assert parse_hex_color(None) is None

    def test_to_hex(self):
        """RGB triples render as lowercase #rrggbb."""
        assert to_hex((255, 153, 0)) == "#ff9900"


class TestBlendColors:
    """Tests for blend_colors()."""

    def test_single_color_unchanged(self):
        """A lone color is returned exactly as given."""
        assert blend_colors(["#FF9900"]) == "#FF9900"

    def test_two_colors_average(self):
        """Channels are averaged and halves round up."""
        # (255+204)/2 = 229.5 -> 230, 153/2 = 76.5 -> 77, 255/2 = 127.5 -> 128
        assert blend_colors(["#ff9900", "#cc00ff"]) == "#e64d80"

    def test_order_independent(self):
        """The blend does not depend on color order."""
        colors = ["#ff9900", "#00cc99", "#cc00ff"]
        assert blend_colors(colors) == blend_colors(list(reversed(colors)))
        assert blend_colors(colors) == blend_colors(colors[1:] + colors[:1])

    def test_single_pass_average(self):
        """Three colors are averaged together, not pairwise."""
        assert blend_colors(["#000000", "#000000", "#ffffff"]) == "#555555"

    def test_unparsable_colors_ignored(self):
        """Invalid entries are left out of the average."""
        assert blend_colors(["#ff0000", "not-a-color"]) == "#ff0000"

    def test_fallback(self):
        """The fallback is used when nothing parses."""
        assert blend_colors([]) == "#ffeb3b"
        assert blend_colors(["x", "y"], fallback="#ff6b6b") == "#ff6b6b"
