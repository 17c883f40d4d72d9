"""Tests for calendar-month arithmetic."""

from datetime import date

import pytest

from resume_tailor_api.calendar_math import (
    DateParseError,
    Ordering,
    ParseError,
    YearMonth,
    add_months,
    compare,
    current_year_month,
    format_year_month,
    is_present_marker,
    months_between,
    parse_year_month,
)


class TestYearMonth:
    """Tests for the YearMonth value type."""

    def test_rejects_invalid_month(self) -> None:
        with pytest.raises(ValueError):
            YearMonth(2020, 0)
        with pytest.raises(ValueError):
            YearMonth(2020, 13)

    def test_ordering(self) -> None:
        assert YearMonth(2019, 12) < YearMonth(2020, 1)
        assert YearMonth(2020, 3) > YearMonth(2020, 2)
        assert YearMonth(2020, 3) == YearMonth(2020, 3)

    def test_str(self) -> None:
        assert str(YearMonth(2021, 4)) == "2021-04"


class TestArithmetic:
    """Tests for months_between / add_months / compare."""

    def test_months_between(self) -> None:
        assert months_between(YearMonth(2022, 1), YearMonth(2024, 4)) == 27
        assert months_between(YearMonth(2024, 4), YearMonth(2022, 1)) == -27
        assert months_between(YearMonth(2020, 5), YearMonth(2020, 5)) == 0

    def test_add_months_across_year_boundary(self) -> None:
        assert add_months(YearMonth(2022, 1), -1) == YearMonth(2021, 12)
        assert add_months(YearMonth(2021, 12), 1) == YearMonth(2022, 1)
        assert add_months(YearMonth(2021, 12), -36) == YearMonth(2018, 12)
        assert add_months(YearMonth(2020, 6), 0) == YearMonth(2020, 6)

    def test_add_months_inverse_of_months_between(self) -> None:
        a = YearMonth(2015, 7)
        for n in (-50, -13, -1, 0, 1, 11, 12, 100):
            assert months_between(a, add_months(a, n)) == n

    def test_compare(self) -> None:
        assert compare(YearMonth(2020, 1), YearMonth(2020, 2)) is Ordering.BEFORE
        assert compare(YearMonth(2020, 2), YearMonth(2020, 2)) is Ordering.EQUAL
        assert compare(YearMonth(2021, 1), YearMonth(2020, 2)) is Ordering.AFTER

    def test_current_year_month(self) -> None:
        assert current_year_month(date(2024, 4, 30)) == YearMonth(2024, 4)


class TestParsing:
    """Tests for boundary parsing and formatting."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2022-01", YearMonth(2022, 1)),
            ("2022-1", YearMonth(2022, 1)),
            ("2022/11", YearMonth(2022, 11)),
            ("2022.03", YearMonth(2022, 3)),
            ("2022-03-15", YearMonth(2022, 3)),
            (" 2019-07 ", YearMonth(2019, 7)),
        ],
    )
    def test_parse_valid(self, text: str, expected: YearMonth) -> None:
        assert parse_year_month(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "2022", "2022-13", "22-01"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(DateParseError):
            parse_year_month(text)

    def test_date_parse_error_is_parse_error(self) -> None:
        assert issubclass(DateParseError, ParseError)

    def test_present_markers(self) -> None:
        assert is_present_marker("至今")
        assert is_present_marker("Present")
        assert is_present_marker(" now ")
        assert not is_present_marker("2022-01")
        assert not is_present_marker(None)

    def test_format(self) -> None:
        assert format_year_month(YearMonth(987, 3)) == "0987-03"
