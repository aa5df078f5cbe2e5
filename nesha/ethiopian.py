"""Gregorian to Ethiopian calendar conversion.

The Ethiopian year has twelve 30-day months followed by Pagume, a short
thirteenth month of 5 days (6 in a leap year). Its new year (1 Meskerem)
falls on Gregorian September 11, or September 12 in a Gregorian year that
immediately precedes a Gregorian leap year.

A date is converted by finding the most recent 1 Meskerem on or before it
and dividing the days elapsed since then into 30-day months.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from nesha.models import EthiopianDate, Language

MONTHS_EN: tuple[str, ...] = (
    "Meskerem",
    "Tikimt",
    "Hidar",
    "Tahsas",
    "Tir",
    "Yekatit",
    "Megabit",
    "Miazia",
    "Genbot",
    "Sene",
    "Hamle",
    "Nehase",
    "Pagume",
)

MONTHS_AM: tuple[str, ...] = (
    "መስከረም",
    "ጥቅምት",
    "ኅዳር",
    "ታኅሣሥ",
    "ጥር",
    "የካቲት",
    "መጋቢት",
    "ሚያዝያ",
    "ግንቦት",
    "ሰኔ",
    "ሐምሌ",
    "ነሐሴ",
    "ጳጉሜ",
)

# Sunday first, indexed like JavaScript's Date.getDay()
WEEKDAYS: tuple[str, ...] = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)

PAGUME = 12


def new_year_day(gregorian_year: int) -> int:
    """Day of September on which the Ethiopian year starts."""
    return 12 if gregorian_year % 4 == 3 else 11


def new_year_anchor(gregorian_year: int) -> date:
    """Gregorian date of 1 Meskerem within ``gregorian_year``."""
    return date(gregorian_year, 9, new_year_day(gregorian_year))


def weekday_name(day: date) -> str:
    # date.weekday() is Monday=0; shift to Sunday=0
    return WEEKDAYS[(day.weekday() + 1) % 7]


def _month_name(month: int, table: tuple[str, ...]) -> str:
    if 0 <= month < len(table):
        return table[month]
    return ""


def to_ethiopian(day: Optional[date] = None) -> EthiopianDate:
    """Convert a Gregorian date (default: today) to an Ethiopian date."""
    if day is None:
        day = date.today()

    anchor = new_year_anchor(day.year)
    if day < anchor:
        anchor = new_year_anchor(day.year - 1)

    offset = (day - anchor).days
    month = min(offset // 30, PAGUME)
    return EthiopianDate(
        year=anchor.year - 7,
        month=month,
        date=offset % 30 + 1,
        day_name=weekday_name(day),
        month_name=_month_name(month, MONTHS_EN),
    )


def format_ethiopian(eth_date: EthiopianDate, language: Language | str) -> str:
    """Render as ``"<month name> <day>, <year>"`` in the given language."""
    table = MONTHS_AM if Language(language) is Language.AMHARIC else MONTHS_EN
    return f"{_month_name(eth_date.month, table)} {eth_date.date}, {eth_date.year}"


def today_label(language: Language | str, today: Optional[date] = None) -> str:
    """Formatted Ethiopian date for ``today``."""
    return format_ethiopian(to_ethiopian(today), language)
