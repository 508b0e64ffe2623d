from __future__ import annotations

import calendar
import re
from datetime import date
from typing import Iterable

__all__ = [
    "format_order_number",
    "next_order_number",
    "generate_lot_number",
    "calculate_expiration_date",
    "add_months",
]

_SEQUENCE_RE = re.compile(r"-(\d+)$")


def format_order_number(prefix: str, year: int, sequence: int) -> str:
    """
    Format a manufacture order number.

    Format: {PREFIX}-{YEAR}-{SEQUENCE}
    - PREFIX: configured prefix, uppercased (``MO`` by default)
    - YEAR: four-digit year the order was created in
    - SEQUENCE: at least 3 digits, zero-padded, restarting every year
    """
    return f"{prefix.upper()}-{year}-{sequence:03d}"


def next_order_number(prefix: str, year: int, existing: Iterable[str]) -> str:
    """Return the number following the highest persisted one for the year."""
    year_prefix = f"{prefix.upper()}-{year}-"
    highest = 0
    for number in existing:
        if not number or not number.startswith(year_prefix):
            continue
        match = _SEQUENCE_RE.search(number)
        if match:
            highest = max(highest, int(match.group(1)))
    return format_order_number(prefix, year, highest + 1)


def generate_lot_number(production_date: date) -> str:
    """
    Lot number for a production date.

    Format: WWYYYYMM
    - WW: ISO week number, zero-padded
    - YYYY: calendar year of the date
    - MM: calendar month of the date
    """
    iso_week = production_date.isocalendar()[1]
    return f"{iso_week:02d}{production_date.year:04d}{production_date.month:02d}"


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def calculate_expiration_date(production_date: date, expiration_months: int) -> date:
    """Last day of the month ``expiration_months`` after production."""
    shifted = add_months(production_date, expiration_months)
    return date(shifted.year, shifted.month, calendar.monthrange(shifted.year, shifted.month)[1])
