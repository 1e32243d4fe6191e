# billing/utils/formatting.py

from services.period_filter import parse_issue_date


def format_currency(amount: float, symbol: str = "₹") -> str:
    """
    Two decimals with thousands separators.
    Example: 1234.5 -> "₹1,234.50"
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_quantity(qty: float) -> str:
    return str(int(qty)) if float(qty).is_integer() else f"{qty:g}"


def format_bill_date(value: str, pattern: str = "%d %b %Y") -> str:
    """Stored "YYYY-MM-DD" -> "10 Mar 2024". Unparsable values are shown as-is."""
    parsed = parse_issue_date(value)
    if parsed is None:
        return value or "-"
    return parsed.strftime(pattern)
