"""
Table widgets.

A table declares its columns with :meth:`Table.fields`, builds a store-scoped
query from a filter dict, and renders each row as a mapping of column key to
cell. :meth:`Table.config` bundles rows, column headers, display options and
pagination into one payload for a data grid.

Filter keys understood by every table:

    store_id        required
    page, per_page  pagination (defaults 1 and 15)
    show_all        return every row on one page
    sort_by         a sortable column key, else ``id``
    sort_direction  ``asc`` or ``desc`` (default)
"""

import math
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import Select, func, select
from sqlalchemy.orm import sessionmaker

from ..db import session_scope

Field = Union[str, Dict[str, Any]]
Filter = Optional[Mapping[str, Any]]

DEFAULT_PER_PAGE = 15


def headline(key: str) -> str:
    """``created_at`` -> ``Created At``."""
    return " ".join(part.capitalize() for part in key.replace("-", "_").split("_") if part)


def parse_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}, expected YYYY-MM-DD") from None


def _int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class Table:
    title = "Table Widget"
    component = "Table"
    model: Any = None
    no_data_message = "You do not have any data."

    striped = True
    hover = True
    responsive = True
    sticky_header = True
    allow_show_all = True
    has_checkbox = False
    is_searchable = False
    show_pagination = True

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self._pagination: Optional[Dict[str, Any]] = None

    def fields(self) -> List[Field]:
        return []

    def query(self, filter: Mapping[str, Any]) -> Select:
        raise NotImplementedError

    def row(self, obj: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def table_filter(self, filter: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
        """Options for the filter controls above the table."""
        return None

    def sortable_keys(self) -> List[str]:
        return [f["key"] for f in self.fields() if isinstance(f, dict) and f.get("sortable")]

    def sort_expression(self, key: str) -> Any:
        return getattr(self.model, key)

    def store_id(self, filter: Filter) -> int:
        store_id = (filter or {}).get("store_id")
        if not store_id:
            raise ValueError(f"{type(self).__name__} requires a store_id filter")
        return int(store_id)

    def data(self, filter: Filter) -> Dict[str, Any]:
        """Run the query for one page and format its rows."""
        filter = dict(filter or {})
        self.store_id(filter)
        stmt = self.query(filter)

        sort_by = filter.get("sort_by") or "id"
        if sort_by != "id" and sort_by not in self.sortable_keys():
            sort_by = "id"
        direction = "asc" if str(filter.get("sort_direction", "desc")).lower() == "asc" else "desc"
        column = self.sort_expression(sort_by)
        stmt = stmt.order_by(column.asc() if direction == "asc" else column.desc())
        if sort_by != "id":
            stmt = stmt.order_by(self.model.id.desc())

        with session_scope(self.session_factory) as session:
            total = session.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0

            show_all = bool(filter.get("show_all")) and self.allow_show_all
            if show_all:
                page, per_page = 1, max(total, 1)
            else:
                page = max(_int(filter.get("page"), 1), 1)
                per_page = max(_int(filter.get("per_page"), DEFAULT_PER_PAGE), 1)
                stmt = stmt.limit(per_page).offset((page - 1) * per_page)

            objects = session.scalars(stmt).unique().all()
            items = [self.row(obj) for obj in objects]

        self._pagination = self._build_pagination(total, page, per_page, len(items))
        return {"count": len(items), "total": total, "items": items}

    def pagination(self) -> Dict[str, Any]:
        if self._pagination is None:
            return self._build_pagination(0, 1, DEFAULT_PER_PAGE, 0)
        return self._pagination

    def _build_pagination(self, total: int, page: int, per_page: int, count: int) -> Dict[str, Any]:
        start = (page - 1) * per_page + 1 if count else 0
        return {
            "total": total,
            "per_page": per_page,
            "current_page": page,
            "last_page": max(math.ceil(total / per_page), 1),
            "from": start,
            "to": start + count - 1 if count else 0,
            "show_pagination": self.show_pagination,
        }

    def field_tuples(self) -> List[Tuple[str, str, bool]]:
        """Columns as ``(key, label, sortable)``."""
        tuples = []
        for field in self.fields():
            if isinstance(field, str):
                tuples.append((field, headline(field), False))
            else:
                key = field["key"]
                tuples.append((key, field.get("label", headline(key)), bool(field.get("sortable", False))))
        return tuples

    def field_widths(self) -> Dict[str, str]:
        return {
            f["key"]: f["width"]
            for f in self.fields()
            if isinstance(f, dict) and f.get("width")
        }

    def options(self, filter: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            "striped": self.striped,
            "hover": self.hover,
            "responsive": self.responsive,
            "sticky_header": self.sticky_header,
            "field_widths": self.field_widths(),
            "per_page": _int(filter.get("per_page"), DEFAULT_PER_PAGE),
            "allow_show_all": self.allow_show_all,
            "has_checkbox": self.has_checkbox,
        }

    def config(self, filter: Filter) -> Dict[str, Any]:
        """Everything a data grid needs to render the current page."""
        filter = dict(filter or {})
        data = self.data(filter)
        return {
            "title": self.title,
            "component": self.component,
            "data": {
                "fields": self.fields(),
                "options": self.options(filter),
                "items": data["items"],
            },
            "fields": self.field_tuples(),
            "has_checkbox": self.has_checkbox,
            "is_searchable": self.is_searchable,
            "pagination": self.pagination(),
            "no_data": self.no_data_message,
            "filter": self.table_filter(filter),
        }


def status_options(labels: Mapping[str, str], keys: Sequence[str]) -> List[Dict[str, str]]:
    return [{"value": key, "label": labels.get(key, headline(key))} for key in keys]
