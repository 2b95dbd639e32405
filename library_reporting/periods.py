"""Period selection: explicit and last-month date ranges, and borrower scoping of record fetches."""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Any

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from .errors import ReportAccessError, ReportValidationError
from .models import DateRange

_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_date(value: Any, field: str = "date") -> datetime:
    """Accept a datetime, a date or an ISO-8601 string; anything else is a validation error."""
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and value.strip():
        try:
            return _naive_utc(isoparse(value.strip()))
        except (ValueError, OverflowError):
            raise ReportValidationError(f"Invalid {field}: {value}") from None
    raise ReportValidationError(f"{field} is required")


def _is_date_only(value: Any) -> bool:
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and _DATE_ONLY.fullmatch(value.strip()) is not None


def resolve_date_range(start_date: Any, end_date: Any) -> DateRange:
    """Caller-supplied boundaries. A bare end date covers that whole day; start must not be after end."""
    end = parse_date(end_date, "end_date")
    if _is_date_only(end_date):
        end = end.replace(hour=23, minute=59, second=59)
    return DateRange(parse_date(start_date, "start_date"), end)


def last_month_range(now: datetime) -> DateRange:
    """First instant to last second of the calendar month before `now`.

    March 2024 -> [2024-02-01T00:00:00, 2024-02-29T23:59:59].
    """
    month_start = _naive_utc(now).replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return DateRange(
        month_start - relativedelta(months=1),
        month_start - relativedelta(seconds=1),
    )


def scope_borrower_id(user: Mapping | None) -> int | None:
    """Administrators see every record; anyone else only their own."""
    if user and user.get("is_admin"):
        return None
    borrower_id = user.get("borrower_id") if user else None
    if borrower_id is None:
        raise ReportAccessError("No borrower to scope records to")
    return borrower_id


@dataclass(frozen=True)
class RecordFilter:
    """What the storage layer should fetch for a report."""

    date_column: str
    date_range: DateRange
    borrower_id: int | None = None
    # Only loans still outstanding or returned after their due date
    overdue_only: bool = False


def borrowing_filter(date_range: DateRange, borrower_id: int | None = None) -> RecordFilter:
    return RecordFilter("checkout_date", date_range, borrower_id)


def overdue_filter(date_range: DateRange, borrower_id: int | None = None) -> RecordFilter:
    return RecordFilter("return_date", date_range, borrower_id, overdue_only=True)
