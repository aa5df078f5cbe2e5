"""Tests for the Gregorian to Ethiopian calendar converter."""

from __future__ import annotations

from datetime import date, timedelta
from unittest.mock import patch

import pytest

from nesha.ethiopian import (
    MONTHS_AM,
    MONTHS_EN,
    format_ethiopian,
    new_year_anchor,
    new_year_day,
    to_ethiopian,
    today_label,
    weekday_name,
)
from nesha.models import EthiopianDate, Language


class TestNewYearDay:
    @pytest.mark.parametrize("year", [2019, 2023, 2027, 2031])
    def test_year_before_leap_year(self, year: int) -> None:
        assert new_year_day(year) == 12

    @pytest.mark.parametrize("year", [2020, 2021, 2022, 2024, 2025, 2026])
    def test_other_years(self, year: int) -> None:
        assert new_year_day(year) == 11

    def test_anchor(self) -> None:
        assert new_year_anchor(2023) == date(2023, 9, 12)
        assert new_year_anchor(2024) == date(2024, 9, 11)


class TestKnownDates:
    def test_new_year_2016(self) -> None:
        eth = to_ethiopian(date(2023, 9, 12))
        assert (eth.year, eth.month, eth.date) == (2016, 0, 1)
        assert eth.month_name == "Meskerem"
        assert eth.day_name == "Tuesday"

    def test_pagume_6_in_leap_year(self) -> None:
        eth = to_ethiopian(date(2023, 9, 11))
        assert (eth.year, eth.month, eth.date) == (2015, 12, 6)
        assert eth.month_name == "Pagume"

    def test_pagume_5_in_common_year(self) -> None:
        eth = to_ethiopian(date(2024, 9, 10))
        assert (eth.year, eth.month, eth.date) == (2016, 12, 5)

    def test_genna_after_leap_year(self) -> None:
        eth = to_ethiopian(date(2024, 1, 7))
        assert (eth.year, eth.month, eth.date) == (2016, 3, 28)
        assert eth.month_name == "Tahsas"
        assert eth.day_name == "Sunday"

    def test_genna_common_year(self) -> None:
        eth = to_ethiopian(date(2025, 1, 7))
        assert (eth.year, eth.month, eth.date) == (2017, 3, 29)

    def test_end_of_gregorian_year(self) -> None:
        eth = to_ethiopian(date(2024, 12, 31))
        assert (eth.year, eth.month, eth.date) == (2017, 3, 22)

    def test_defaults_to_today(self) -> None:
        with patch("nesha.ethiopian.date") as mock_date:
            mock_date.today.return_value = date(2024, 9, 11)
            mock_date.side_effect = lambda *a, **kw: date(*a, **kw)
            eth = to_ethiopian()
        assert (eth.year, eth.month, eth.date) == (2017, 0, 1)


class TestBoundaries:
    @pytest.mark.parametrize("year", range(2015, 2031))
    def test_new_year_boundary(self, year: int) -> None:
        anchor = date(year, 9, new_year_day(year))
        eth = to_ethiopian(anchor)
        assert (eth.year, eth.month, eth.date) == (year - 8 + 1, 0, 1)

        before = to_ethiopian(anchor - timedelta(days=1))
        assert before.year == year - 8
        assert before.month == 12
        assert before.date in (5, 6)

    def test_ranges_over_several_years(self) -> None:
        day = date(2018, 1, 1)
        while day <= date(2029, 12, 31):
            eth = to_ethiopian(day)
            assert 0 <= eth.month <= 12
            if eth.month == 12:
                assert 1 <= eth.date <= 6
            else:
                assert 1 <= eth.date <= 30
            day += timedelta(days=1)

    def test_consecutive_days_advance_by_one(self) -> None:
        prev = to_ethiopian(date(2022, 1, 1))
        day = date(2022, 1, 2)
        while day <= date(2026, 1, 1):
            cur = to_ethiopian(day)
            if cur.month == prev.month:
                assert cur.date == prev.date + 1
            else:
                assert cur.date == 1
            prev = cur
            day += timedelta(days=1)


class TestWeekday:
    def test_sunday_first(self) -> None:
        assert weekday_name(date(2024, 1, 7)) == "Sunday"
        assert weekday_name(date(2024, 1, 13)) == "Saturday"


class TestFormat:
    def test_english(self) -> None:
        eth = to_ethiopian(date(2023, 9, 12))
        assert format_ethiopian(eth, Language.ENGLISH) == "Meskerem 1, 2016"

    def test_amharic(self) -> None:
        eth = to_ethiopian(date(2023, 9, 12))
        assert format_ethiopian(eth, "am") == f"{MONTHS_AM[0]} 1, 2016"

    def test_pagume_amharic(self) -> None:
        eth = to_ethiopian(date(2023, 9, 11))
        assert format_ethiopian(eth, "am") == f"{MONTHS_AM[12]} 6, 2015"

    def test_tables_have_thirteen_months(self) -> None:
        assert len(MONTHS_EN) == 13
        assert len(MONTHS_AM) == 13

    def test_today_label(self) -> None:
        assert today_label("en", date(2024, 9, 11)) == "Meskerem 1, 2017"

    def test_unknown_month_renders_empty_name(self) -> None:
        eth = EthiopianDate.model_construct(year=2016, month=13, date=1, day_name="Monday", month_name="")
        assert format_ethiopian(eth, "en") == " 1, 2016"
