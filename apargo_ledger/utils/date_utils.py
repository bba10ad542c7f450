"""Month-year manipulation utilities"""

import re
from datetime import date
from typing import List, Tuple

from apargo_ledger.domain.exceptions import InvalidMonthYearError

MONTH_YEAR_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def month_year_from_date(value: date) -> str:
    """Truncate a date to its YYYY-MM key"""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month_year(month_year: str) -> Tuple[int, int]:
    """Split YYYY-MM into (year, month), validating the format"""
    if not isinstance(month_year, str) or not MONTH_YEAR_PATTERN.match(month_year):
        raise InvalidMonthYearError(f"Invalid month_year format: {month_year!r}. Expected YYYY-MM")

    year, month = (int(part) for part in month_year.split("-"))
    if not 1 <= month <= 12:
        raise InvalidMonthYearError(f"Invalid month in month_year: {month_year!r}")
    return year, month


def shift_month_year(month_year: str, months: int) -> str:
    """Move a YYYY-MM key forward (or back) by a number of months"""
    year, month = parse_month_year(month_year)
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def generate_month_range(start: str, end: str) -> List[str]:
    """Generate list of YYYY-MM keys from start to end (inclusive)"""
    start_year, start_month = parse_month_year(start)
    end_year, end_month = parse_month_year(end)
    count = (end_year * 12 + end_month) - (start_year * 12 + start_month) + 1
    return [shift_month_year(start, i) for i in range(max(count, 0))]


def next_day_of_month(today: date, day_of_month: int) -> date:
    """Next date on or after today falling on day_of_month (1-28)"""
    if today.day <= day_of_month:
        return today.replace(day=day_of_month)

    year, month = parse_month_year(shift_month_year(month_year_from_date(today), 1))
    return date(year, month, day_of_month)
