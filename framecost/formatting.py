"""
Display formatting for estimates — currency and fabrication time.

Used by the text/PDF exporters and the API's "formatted" block.
Amounts and minutes are never changed here, only rendered.
"""

import math

from .config import settings


def _group_indian(digits: str) -> str:
    """12345678 → 1,23,45,678 (last three digits, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount, symbol: str = None, grouping: str = None) -> str:
    """
    Format an amount with two decimals and a thousands separator.

    grouping="indian" → ₹1,23,456.70, grouping="western" → ₹123,456.70.
    Defaults come from settings.
    """
    if symbol is None:
        symbol = settings.CURRENCY_SYMBOL
    if grouping is None:
        grouping = settings.CURRENCY_GROUPING
    try:
        value = float(amount)
    except (ValueError, TypeError):
        return "%s0.00" % symbol
    if not math.isfinite(value):
        return "%s0.00" % symbol

    sign = "-" if value < 0 else ""
    text = f"{abs(value):.2f}"
    whole, cents = text.split(".")
    if grouping == "indian":
        whole = _group_indian(whole)
    else:
        whole = f"{int(whole):,}"
    return f"{sign}{symbol}{whole}.{cents}"


def format_duration(minutes) -> str:
    """
    Render fabrication time by magnitude, rounded to whole minutes.

    <60 min → "45min"; <1 day → "1h 35m"; otherwise "1d 1h 5m".
    Zero hour/minute segments are left out: 120 → "2h", 1440 → "1d".
    """
    try:
        total = int(math.floor(float(minutes) + 0.5))
    except (ValueError, TypeError, OverflowError):
        return "0min"
    total = max(total, 0)

    if total < 60:
        return f"{total}min"

    days, rest = divmod(total, 1440)
    hours, mins = divmod(rest, 60)
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if mins:
        parts.append(f"{mins}m")
    return " ".join(parts)


def format_hours(hours) -> str:
    """Format hours as X.X"""
    try:
        return f"{float(hours):.1f}"
    except (ValueError, TypeError):
        return "0.0"


def frames_label(count: int) -> str:
    return "frame" if count == 1 else "frames"
