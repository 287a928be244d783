"""Tests for frontmatter value coercion."""

import pytest

from flowguard.utils.values import int_value, templatable_int

pytestmark = pytest.mark.unit


class TestIntValue:
    """Tests for int_value."""

    @pytest.mark.parametrize("raw,expected", [(4, 4), (4.0, 4), (-2.9, -2), (0, 0)])
    def test_numbers(self, raw, expected):
        assert int_value(raw) == expected

    @pytest.mark.parametrize(
        "raw", [float("inf"), float("-inf"), float("nan"), True, "4", None, [4]]
    )
    def test_rejected(self, raw):
        assert int_value(raw) is None


class TestTemplatableInt:
    """Tests for templatable_int."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("12", "12"), ("-3", "-3"), ("007", "7"), (5, "5"), ("${{ inputs.n }}", "${{ inputs.n }}")],
    )
    def test_accepted(self, raw, expected):
        assert templatable_int(raw) == expected

    @pytest.mark.parametrize("raw", ["²", "--5", "1.5", " 3", "", "three", float("inf"), float("nan")])
    def test_rejected(self, raw):
        assert templatable_int(raw) is None
