"""Report orchestrator: resolve the period, fetch records, format rows, encode the file.

Also serves the JSON statistics and period analytics built from the same records.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from .analytics import generate_analytics, generate_period_analytics
from .config import DATE_FORMAT, DEFAULT_FORMAT, DEFAULT_TOP_N
from .db import (
    get_db, fetch_borrowing_records, fetch_all_records, fetch_inventory, count_library_totals,
)
from .export import encode_rows
from .formatters import format_report_data, report_columns, utc_now
from .models import DateRange, ExportFormat, GeneratedReport, ReportType
from .periods import (
    borrowing_filter, overdue_filter, last_month_range, parse_date, resolve_date_range,
)

logger = logging.getLogger(__name__)


def _fetch_borrowing(conn: sqlite3.Connection, date_range: DateRange | None, borrower_id: int | None) -> list[dict]:
    return fetch_borrowing_records(conn, borrowing_filter(date_range, borrower_id))


def _fetch_overdue(conn: sqlite3.Connection, date_range: DateRange | None, borrower_id: int | None) -> list[dict]:
    return fetch_borrowing_records(conn, overdue_filter(date_range, borrower_id))


def _fetch_inventory(conn: sqlite3.Connection, date_range: DateRange | None, borrower_id: int | None) -> list[dict]:
    # Inventory is a snapshot of the catalogue, not of anyone's borrowing history
    return fetch_inventory(conn)


_FETCHERS: dict[ReportType, Callable[[sqlite3.Connection, DateRange | None, int | None], list[dict]]] = {
    ReportType.BORROWING: _fetch_borrowing,
    ReportType.OVERDUE: _fetch_overdue,
    ReportType.INVENTORY: _fetch_inventory,
}


def _resolve_period(report_type: ReportType, start_date: Any, end_date: Any,
                    now: datetime) -> tuple[DateRange | None, datetime]:
    """Date range to query, and the date stamped into the filename."""
    if report_type.is_last_month:
        return last_month_range(now), now
    if report_type is ReportType.INVENTORY:
        if start_date is None and end_date is None:
            return None, now
        date_range = resolve_date_range(start_date, end_date)
        return date_range, date_range.start_date
    date_range = resolve_date_range(start_date, end_date)
    return date_range, date_range.start_date


def report_filename(report_type: ReportType, export_format: ExportFormat, file_date: datetime) -> str:
    return f"{report_type.value}-report-{file_date.strftime(DATE_FORMAT)}.{export_format.extension}"


def generate_report(
    start_date: Any = None,
    end_date: Any = None,
    report_type: str | ReportType = ReportType.BORROWING,
    fmt: str | ExportFormat = DEFAULT_FORMAT,
    borrower_id: int | None = None,
    db_path: Path | str | None = None,
    now: datetime | None = None,
) -> GeneratedReport:
    """Build a report file.

    report_type: borrowing, overdue, inventory, last_month_borrowing or last_month_overdue.
    Last-month types ignore start_date/end_date and use the calendar month before `now`.
    borrower_id: restrict to one borrower's records (None = all borrowers).
    Raises ReportValidationError for an unknown type or format, or bad dates.
    """
    rt = ReportType.parse(report_type)
    export_format = ExportFormat.parse(fmt)
    now = parse_date(now) if now is not None else utc_now()
    date_range, file_date = _resolve_period(rt, start_date, end_date, now)

    with get_db(db_path) as conn:
        records = _FETCHERS[rt.base](conn, date_range, borrower_id)

    rows = format_report_data(records, rt, now=now)
    content = encode_rows(rows, export_format, columns=report_columns(rt))
    filename = report_filename(rt, export_format, file_date)
    logger.info("Generated %s report (%s): %d rows", rt.value, export_format.value, len(rows))
    return GeneratedReport(
        content=content,
        media_type=export_format.media_type,
        filename=filename,
        row_count=len(rows),
    )


def export_last_month_overdue(fmt: str | ExportFormat = DEFAULT_FORMAT,
                              db_path: Path | str | None = None,
                              now: datetime | None = None) -> GeneratedReport:
    """Loans due last month that are still out or came back late."""
    return generate_report(report_type=ReportType.LAST_MONTH_OVERDUE, fmt=fmt, db_path=db_path, now=now)


def export_last_month_borrowing(fmt: str | ExportFormat = DEFAULT_FORMAT,
                                db_path: Path | str | None = None,
                                now: datetime | None = None) -> GeneratedReport:
    """Loans checked out last month."""
    return generate_report(report_type=ReportType.LAST_MONTH_BORROWING, fmt=fmt, db_path=db_path, now=now)


def get_statistics(borrower_id: int | None = None, db_path: Path | str | None = None,
                   now: datetime | None = None, top_n: int = DEFAULT_TOP_N) -> dict:
    """Library totals plus all-time analytics over the (optionally borrower-scoped) history."""
    with get_db(db_path) as conn:
        stats = count_library_totals(conn, borrower_id=borrower_id, now=now)
        records = fetch_all_records(conn, borrower_id=borrower_id)
    stats["analytics"] = generate_analytics(records, top_n=top_n)
    return stats


def get_period_analytics(start_date: Any, end_date: Any, borrower_id: int | None = None,
                         db_path: Path | str | None = None, now: datetime | None = None,
                         top_n: int = DEFAULT_TOP_N) -> dict:
    """Analytics over loans checked out within [start_date, end_date]."""
    date_range = resolve_date_range(start_date, end_date)
    with get_db(db_path) as conn:
        records = fetch_borrowing_records(conn, borrowing_filter(date_range, borrower_id))
    return generate_period_analytics(records, date_range, now=now, top_n=top_n)
