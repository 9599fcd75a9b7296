"""Parser for the daily watermelon market report emails.

A report body has a fixed line layout (blank lines ignored):

    7月14日出荷
    <8 category price lines: s4, s5, sl, sm, y4, y5, yl, ym>
    平均単価
    <average price line>
    出荷箱数
    <quantity line>

The body never states a year, so it is taken from the time the mail was
received.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional

from market_sync.text import LineCursor

logger = logging.getLogger(__name__)

SHIPMENT_PATTERN = re.compile(r"(\d{1,2})\s*月\s*(\d{1,2})\s*日\s*出荷")
NUMBER_PATTERN = re.compile(r"\d+")

CATEGORY_FIELDS = ("s4", "s5", "sl", "sm", "y4", "y5", "yl", "ym")


@dataclass(frozen=True)
class PriceFields:
    s4: Optional[int] = None
    s5: Optional[int] = None
    sl: Optional[int] = None
    sm: Optional[int] = None
    y4: Optional[int] = None
    y5: Optional[int] = None
    yl: Optional[int] = None
    ym: Optional[int] = None
    average: Optional[int] = None

    def categories(self) -> tuple[Optional[int], ...]:
        """Category prices in column order (average excluded)."""
        return tuple(getattr(self, name) for name in CATEGORY_FIELDS)


@dataclass(frozen=True)
class MarketReport:
    received_at: datetime
    target_date: date
    quantity: Optional[int] = None
    price: PriceFields = field(default_factory=PriceFields)


def format_number(s: str) -> Optional[int]:
    """Return the first run of digits in s as an int, or None if there is none.

    >>> format_number("@2500円")
    2500
    >>> format_number("123箱")
    123
    """
    match = NUMBER_PATTERN.search(s)
    if not match:
        return None
    try:
        return int(match.group())
    except ValueError:
        # digit run longer than sys.get_int_max_str_digits()
        return None


def resolve_year(month: int, received_at: datetime) -> int:
    """Year a shipment month refers to, given when its report arrived.

    A December shipment reported in January belongs to the previous year.
    """
    year = received_at.year
    if month == 12 and received_at.month == 1:
        year -= 1
    return year


def parse_report(body: str, received_at: datetime) -> Optional[MarketReport]:
    """Parse a report body into a MarketReport.

    Returns None when the first line is not a shipment-date line, which is
    the normal outcome for unrelated mail under the same label.
    """
    cursor = LineCursor(body)

    header = cursor.read()
    match = SHIPMENT_PATTERN.search(header)
    if not match:
        return None

    categories = [cursor.read() for _ in CATEGORY_FIELDS]
    cursor.read()  # 平均単価
    average_line = cursor.read()
    cursor.read()  # 出荷箱数
    quantity_line = cursor.read()

    month, day = int(match.group(1)), int(match.group(2))
    year = resolve_year(month, received_at)
    try:
        target_date = date(year, month, day)
    except ValueError:
        logger.warning("Invalid shipment date %r in report received %s", header, received_at)
        return None

    price = PriceFields(
        average=format_number(average_line),
        **{name: format_number(line) for name, line in zip(CATEGORY_FIELDS, categories)},
    )
    return MarketReport(
        received_at=received_at,
        target_date=target_date,
        quantity=format_number(quantity_line),
        price=price,
    )
