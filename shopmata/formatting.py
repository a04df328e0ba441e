"""Helpers for the pre-formatted strings that accompany raw numbers in tool results."""

from datetime import datetime
from typing import Optional


def format_money(amount: Optional[float], decimals: int = 0, signed: bool = False) -> str:
    """
    Format an amount as dollars with thousands separators.

    Args:
        amount: Amount in dollars (None is treated as 0)
        decimals: Number of decimal places
        signed: Prefix non-negative amounts with ``+``

    Returns:
        e.g. ``$1,235``, ``$150.00``, ``+$20``, ``-$5``
    """
    value = float(amount or 0)
    text = f"${abs(value):,.{decimals}f}"
    if value < 0 and round(abs(value), decimals) != 0:
        return "-" + text
    if signed:
        return "+" + text
    return text


def percent_change(previous: float, current: float) -> float:
    """Percent change from previous to current; 100 when growing from zero."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def share(part: float, total: float, decimals: int = 1) -> float:
    """Percentage of ``total`` made up by ``part``, 0 when total is 0."""
    if not total:
        return 0
    return round(part / total * 100, decimals)


def pluralize(count: int, word: str) -> str:
    """``1 return`` / ``3 returns``."""
    return f"{count} {word}{'' if count == 1 else 's'}"


def time_ago(moment: datetime, now: datetime) -> str:
    """Coarse relative time, e.g. ``3 days ago``."""
    seconds = max(int((now - moment).total_seconds()), 0)
    for unit, size in (("year", 31536000), ("month", 2592000), ("week", 604800),
                       ("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            return f"{pluralize(seconds // size, unit)} ago"
    return "just now"
