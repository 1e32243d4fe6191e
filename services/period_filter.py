# billing/services/period_filter.py

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from domain.errors import ValidationError
from domain.models import Bill, PeriodResult

logger = logging.getLogger(__name__)

PERIODS = ("all", "day", "week", "month", "year")

ALL_TIME_LABEL = "All Time"


def parse_issue_date(value) -> Optional[date]:
    """
    Parse a stored bill date. Accepts "YYYY-MM-DD" and full ISO timestamps.
    Returns None when the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def period_bounds(period: str, reference_date: date) -> Optional[Tuple[date, date]]:
    """
    Closed [start, end] interval for `period` around `reference_date`.
    None for "all". Weeks start on Monday.
    """
    if period == "all":
        return None
    if period == "day":
        return reference_date, reference_date
    if period == "week":
        start = reference_date - timedelta(days=reference_date.weekday())
        return start, start + timedelta(days=6)
    if period == "month":
        start = reference_date.replace(day=1)
        next_month = date(start.year + (start.month == 12), (start.month % 12) + 1, 1)
        return start, next_month - timedelta(days=1)
    if period == "year":
        return date(reference_date.year, 1, 1), date(reference_date.year, 12, 31)

    raise ValidationError(f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}")


def period_label(period: str, reference_date: date) -> str:
    bounds = period_bounds(period, reference_date)
    if bounds is None:
        return ALL_TIME_LABEL

    start, end = bounds
    if period == "day":
        return start.strftime("%d %b %Y")
    if period == "week":
        return f"{start.strftime('%d %b')} - {end.strftime('%d %b %Y')}"
    if period == "month":
        return start.strftime("%B %Y")
    return start.strftime("%Y")


def filter_by_period(
        bills: Iterable[Bill],
        period: str,
        reference_date: date,
        strict: bool = False,
) -> PeriodResult:
    """
    Keep the bills whose issue date falls inside the period containing
    `reference_date` (both ends inclusive) and label that period.

    Bills with an unparsable date are left out of every period except "all".
    With strict=True they raise ValidationError instead.
    """
    bills = list(bills)
    bounds = period_bounds(period, reference_date)
    label = period_label(period, reference_date)

    if bounds is None:
        if strict:
            for bill in bills:
                _require_date(bill)
        return PeriodResult(filtered=bills, label=label)

    start, end = bounds
    filtered: List[Bill] = []

    for bill in bills:
        issued = _require_date(bill) if strict else parse_issue_date(bill.issue_date)
        if issued is None:
            logger.warning(
                'Bill %s has unparsable date "%s"; excluded from %s report',
                bill.bill_number,
                bill.issue_date,
                period,
            )
            continue
        if start <= issued <= end:
            filtered.append(bill)

    return PeriodResult(filtered=filtered, label=label)


def _require_date(bill: Bill) -> date:
    issued = parse_issue_date(bill.issue_date)
    if issued is None:
        raise ValidationError(
            f'Bill {bill.bill_number} has an invalid date "{bill.issue_date}"'
        )
    return issued
