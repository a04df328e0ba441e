"""Query fragments shared by the reporting tools."""

from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import func

from ..db import Order
from ..periods import DateRange


def in_range(column, date_range: DateRange) -> list:
    """Filter clauses keeping ``column`` inside ``date_range``."""
    clauses = [column <= date_range.end]
    if date_range.start is not None:
        clauses.append(column >= date_range.start)
    return clauses


def paid_orders(store_id: int, date_range: Optional[DateRange] = None) -> list:
    """Clauses selecting a store's paid, non-deleted orders."""
    clauses = [
        Order.store_id == store_id,
        Order.status.in_(Order.PAID_STATUSES),
        Order.deleted_at.is_(None),
    ]
    if date_range is not None:
        clauses.extend(in_range(Order.created_at, date_range))
    return clauses


def day_of(column):
    return func.date(column)


def as_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    """Normalize the result of ``func.date`` across backends."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())

