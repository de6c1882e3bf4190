"""Cell level text helpers for spreadsheet exports.

The retail application exports every cell as display text, so numbers arrive
in whatever format the exporting machine used: ``5,800`` may be five thousand
eight hundred while ``12,5`` is twelve and a half.  The helpers below turn such
cells into :class:`~decimal.Decimal` and :class:`~datetime.date` values without
relying on the locale of the machine running the import.
"""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from .models import ReportPeriod

_WHITESPACE = re.compile(r"\s+")
_COMMA_GROUPED = re.compile(r"^\d{1,3}(,\d{3})+$")
_DOT_GROUPED = re.compile(r"^\d{1,3}(\.\d{3})+$")
_PLAIN_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_PERIOD_PHRASE = re.compile(
    r"Periode\s+(\d{1,2}/\d{1,2}/\d{4})\s+Sampai\s+(\d{1,2}/\d{1,2}/\d{4})",
    re.IGNORECASE,
)


def normalize_text(value: object) -> str:
    """Return the trimmed text of a cell; empty cells become ``""``.

    Typed cells are rendered the way the report displays them: dates as
    ``DD/MM/YYYY`` and whole floats without a fractional part.
    """

    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return f"{value.day:02d}/{value.month:02d}/{value.year}"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        text = repr(value)
        # A trailing zero keeps 1.234 from reading as thousands grouping.
        return text + "0" if _DOT_GROUPED.match(text) else text
    return str(value).strip()


def parse_smart_number(value: object) -> Optional[Decimal]:
    """Parse a number whose thousands and decimal separators are ambiguous.

    * With both ``,`` and ``.`` present, the separator appearing last is the
      decimal point and the other one is grouping: ``107,000.00`` and
      ``1.384,92``.
    * With only ``,``, strict three-digit grouping (``5,800``) is thousands,
      anything else (``12,5``) is a decimal comma.
    * With only ``.``, strict three-digit grouping (``1.234``) is thousands,
      anything else is a regular decimal point.

    Returns ``None`` for empty or unparsable cells, never zero.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return _finite(Decimal(str(value)))

    text = _WHITESPACE.sub("", str(value))
    if not text:
        return None

    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        if text.rfind(".") > text.rfind(","):
            text = text.replace(",", "")
        else:
            text = text.replace(".", "").replace(",", ".")
    elif has_comma:
        if _COMMA_GROUPED.match(text):
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
    elif has_dot and _DOT_GROUPED.match(text):
        text = text.replace(".", "")

    if not _PLAIN_NUMBER.match(text):
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return _finite(number)


def _finite(number: Decimal) -> Optional[Decimal]:
    """Return ``number`` unless it is NaN, infinite or beyond the float range."""

    if not number.is_finite() or math.isinf(float(number)):
        return None
    return number


def parse_day_month_year(value: object) -> Optional[date]:
    """Parse ``D/M/YYYY`` or ``D-M-YYYY`` text into a calendar date."""

    match = _DAY_MONTH_YEAR.match(normalize_text(value))
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    if not 1 <= day <= 31 or not 1 <= month <= 12:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        # Day in range but not in this month, e.g. 31/02.
        return None


def parse_period(raw: str) -> ReportPeriod:
    """Extract the from/to range of a ``Periode .. Sampai ..`` phrase."""

    match = _PERIOD_PHRASE.search(raw)
    if not match:
        return ReportPeriod(raw=raw)
    return ReportPeriod(
        raw=raw,
        date_from=parse_day_month_year(match.group(1)),
        date_to=parse_day_month_year(match.group(2)),
    )


__all__ = [
    "normalize_text",
    "parse_smart_number",
    "parse_day_month_year",
    "parse_period",
]
