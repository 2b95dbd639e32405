"""Flatten borrowing records (or book rows) into report rows, one layout per report type."""

import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Callable

from .durations import SECONDS_PER_DAY, to_timestamp
from .models import ReportType

REPORT_COLUMNS: dict[ReportType, list[str]] = {
    ReportType.BORROWING: [
        "book_title", "author", "isbn", "borrower_name",
        "checkout_date", "return_date", "status",
    ],
    ReportType.OVERDUE: [
        "book_title", "author", "isbn", "borrower_name",
        "checkout_date", "due_date", "days_overdue",
    ],
    ReportType.INVENTORY: [
        "book_title", "author", "isbn",
        "available_quantity", "shelf_location", "availability",
    ],
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def book_of(record: Mapping) -> Mapping:
    book = record.get("book")
    return book if isinstance(book, Mapping) else {}


def borrower_of(record: Mapping) -> Mapping:
    borrower = record.get("borrower")
    return borrower if isinstance(borrower, Mapping) else {}


def date_str(value: Any) -> str:
    """Render a date-ish value as YYYY-MM-DD."""
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat()[:10]
    return str(value)[:10]


def days_overdue(due_date: Any, now: datetime | None = None) -> int | None:
    """Whole days elapsed since the due date (floored). None if the due date is unreadable."""
    due = to_timestamp(due_date)
    if due is None:
        return None
    current = to_timestamp(now) if now is not None else utc_now()
    return math.floor((current - due).total_seconds() / SECONDS_PER_DAY)


def report_columns(report_type: "str | ReportType") -> list[str]:
    return list(REPORT_COLUMNS[ReportType.parse(report_type).base])


def _identity_fields(record: Mapping) -> dict:
    book = book_of(record)
    return {
        "book_title": book.get("title") or "",
        "author": book.get("author") or "",
        "isbn": book.get("isbn") or "",
        "borrower_name": borrower_of(record).get("name") or "",
    }


def _format_borrowing(record: Mapping, now: datetime | None) -> dict:
    row = _identity_fields(record)
    row["checkout_date"] = date_str(record.get("checkout_date"))
    row["return_date"] = date_str(record.get("return_date"))
    # is_returned drives the displayed status, even when returned_date disagrees
    row["status"] = "Returned" if record.get("is_returned") else "Not Returned"
    return row


def _format_overdue(record: Mapping, now: datetime | None) -> dict:
    row = _identity_fields(record)
    row["checkout_date"] = date_str(record.get("checkout_date"))
    row["due_date"] = date_str(record.get("return_date"))
    row["days_overdue"] = days_overdue(record.get("return_date"), now)
    return row


def _format_inventory(record: Mapping, now: datetime | None) -> dict:
    book = book_of(record) or record
    try:
        quantity = int(book.get("available_quantity") or 0)
    except (TypeError, ValueError):
        quantity = 0
    return {
        "book_title": book.get("title") or "",
        "author": book.get("author") or "",
        "isbn": book.get("isbn") or "",
        "available_quantity": quantity,
        "shelf_location": book.get("shelf_location") or "",
        "availability": "Available" if quantity > 0 else "Unavailable",
    }


_FORMATTERS: dict[ReportType, Callable[[Mapping, datetime | None], dict]] = {
    ReportType.BORROWING: _format_borrowing,
    ReportType.OVERDUE: _format_overdue,
    ReportType.INVENTORY: _format_inventory,
}


def format_row(record: Mapping, report_type: "str | ReportType", now: datetime | None = None) -> dict:
    """Map one record to a flat report row for the given report type."""
    formatter = _FORMATTERS[ReportType.parse(report_type).base]
    return formatter(record, now)


def format_report_data(data: Any, report_type: "str | ReportType", now: datetime | None = None) -> list[dict]:
    """Bulk version of format_row. Anything other than a list/tuple of mappings yields []."""
    if not isinstance(data, (list, tuple)):
        return []
    formatter = _FORMATTERS[ReportType.parse(report_type).base]
    return [formatter(record, now) for record in data if isinstance(record, Mapping)]
