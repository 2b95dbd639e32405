"""Summary statistics and leaderboards over a set of borrowing records."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from .config import NO_ENTRY
from .durations import calculate_average_duration, loan_status, to_timestamp
from .formatters import book_of, borrower_of, utc_now
from .models import DateRange
from . import ranking
from .ranking import most_frequent


def _records(data: Any) -> list[Mapping]:
    if not isinstance(data, (list, tuple)):
        return []
    return [r for r in data if isinstance(r, Mapping)]


def _book_key(record: Mapping):
    book = book_of(record)
    if book.get("id") is not None:
        return ("id", book["id"])
    if book.get("isbn"):
        return ("isbn", book["isbn"])
    if book.get("title"):
        return ("title", book.get("title"), book.get("author"))
    return None


def _borrower_key(record: Mapping):
    borrower = borrower_of(record)
    for field in ("id", "email", "name"):
        if borrower.get(field) not in (None, ""):
            return (field, borrower[field])
    return None


def _book_label(record: Mapping) -> str | None:
    book = book_of(record)
    if not book.get("title"):
        return None
    return f"{book['title']} by {book.get('author') or 'Unknown'}"


def get_most_borrowed_book(records: Any) -> str:
    return most_frequent((book_of(r).get("title") or None for r in _records(records)), NO_ENTRY)


def get_most_active_borrower(records: Any) -> str:
    return most_frequent((borrower_of(r).get("name") or None for r in _records(records)), NO_ENTRY)


def get_top_books(records: Any, n: int) -> list[dict]:
    ranked = ranking.top_n((_book_label(r) for r in _records(records)), n)
    return [{"book": label, "count": count} for label, count in ranked]


def get_top_borrowers(records: Any, n: int) -> list[dict]:
    ranked = ranking.top_n((borrower_of(r).get("name") or None for r in _records(records)), n)
    return [{"borrower": name, "count": count} for name, count in ranked]


def generate_analytics(records: Any, top_n: int | None = None) -> dict:
    """Totals, unique counts, average loan duration and the most frequent book/borrower.

    With top_n, the book and borrower leaderboards are included as well.
    """
    records = _records(records)
    summary = {
        "total_records": len(records),
        "unique_borrowers": len({k for k in map(_borrower_key, records) if k is not None}),
        "unique_books": len({k for k in map(_book_key, records) if k is not None}),
        "average_borrowing_duration": calculate_average_duration(records),
        "most_borrowed_book": get_most_borrowed_book(records),
        "most_active_borrower": get_most_active_borrower(records),
    }
    if top_n is not None:
        summary["top_books"] = get_top_books(records, top_n)
        summary["top_borrowers"] = get_top_borrowers(records, top_n)
    return summary


def is_overdue(record: Mapping, now: datetime | None = None) -> bool:
    """Open and past due at `now`, or returned strictly after the due date."""
    due = to_timestamp(record.get("return_date"))
    if due is None:
        return False
    status = loan_status(record)
    if status.is_open:
        return due < (to_timestamp(now) if now is not None else utc_now())
    return status.returned_at > due


def generate_period_analytics(
    records: Any,
    date_range: DateRange,
    now: datetime | None = None,
    top_n: int | None = None,
) -> dict:
    records = _records(records)
    analytics = generate_analytics(records, top_n=top_n)
    analytics["total_borrowings"] = len(records)
    analytics["total_returns"] = sum(1 for r in records if r.get("is_returned"))
    analytics["overdue_count"] = sum(1 for r in records if is_overdue(r, now))
    return {"period": date_range.as_dict(), "analytics": analytics}
