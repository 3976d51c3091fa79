# Overview: Pytest coverage for request value coercion: finite numbers, strict integers and dates.

from datetime import date

import pytest

from brewplan.errors import ValidationError
from brewplan.validation import parse_date, parse_int, parse_non_negative_int, parse_number


class TestParseNumber:
    @pytest.mark.parametrize("value,expected", [(3, 3.0), ("2.5", 2.5), (" 7 ", 7.0), (-1.25, -1.25)])
    def test_accepts_numbers_and_numeric_strings(self, value, expected):
        assert parse_number(value, field="quantity") == expected

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-Infinity", float("nan"), float("inf")])
    def test_rejects_non_finite(self, value):
        with pytest.raises(ValidationError) as exc:
            parse_number(value, field="quantity")
        assert "finite" in str(exc.value)

    @pytest.mark.parametrize("value", ["abc", [1], {"a": 1}, True])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValidationError) as exc:
            parse_number(value, field="quantity")
        assert "quantity" in str(exc.value)

    def test_missing(self):
        assert parse_number(None, field="ph", required=False) is None
        assert parse_number("", field="ph", required=False) is None
        with pytest.raises(ValidationError):
            parse_number(None, field="ph")


class TestParseInt:
    @pytest.mark.parametrize("value,expected", [(12, 12), ("12", 12), ("-3", -3), (2.0, 2)])
    def test_accepts_whole_numbers(self, value, expected):
        assert parse_int(value, field="quantity") == expected

    @pytest.mark.parametrize("value", ["1.5", 1.5, "1e3", "abc", True, float("inf"), float("nan")])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValidationError):
            parse_int(value, field="quantity")

    def test_non_negative(self):
        assert parse_non_negative_int("0", field="lead_time_days") == 0
        assert parse_non_negative_int(None, field="lead_time_days", required=False) is None
        with pytest.raises(ValidationError) as exc:
            parse_non_negative_int(-1, field="lead_time_days")
        assert ">= 0" in str(exc.value)


class TestParseDate:
    def test_parses_iso_dates(self):
        assert parse_date("2030-06-01", field="delivery_date") == date(2030, 6, 1)
        assert parse_date(None, field="delivery_date") is None

    @pytest.mark.parametrize("value", ["01/06/2030", "2030-13-01", 20300601])
    def test_rejects_other_shapes(self, value):
        with pytest.raises(ValidationError) as exc:
            parse_date(value, field="delivery_date")
        assert "YYYY-MM-DD" in str(exc.value)
