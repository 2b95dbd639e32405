"""Loan duration statistics. Only closed loans (returned_date present) contribute."""

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

import pandas as pd

from .models import LoanStatus

SECONDS_PER_DAY = 24 * 60 * 60


def to_timestamp(value: Any) -> datetime | None:
    """Coerce an ISO string / date / datetime to a naive UTC datetime. Unparseable -> None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        ts = pd.to_datetime(value, errors="coerce", utc=True)
    except (TypeError, ValueError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    return ts.tz_convert(None).to_pydatetime()


def round_half_up(value: float) -> int:
    """2.5 -> 3, unlike round() which rounds half to even."""
    return int(math.floor(value + 0.5))


def loan_status(record: Mapping) -> LoanStatus:
    return LoanStatus(returned_at=to_timestamp(record.get("returned_date")))


def loan_duration_days(record: Any) -> int | None:
    """Whole days between checkout and return, or None when the loan is still open."""
    if not isinstance(record, Mapping):
        return None
    status = loan_status(record)
    if status.is_open:
        return None
    checkout = to_timestamp(record.get("checkout_date"))
    if checkout is None:
        return None
    elapsed = (status.returned_at - checkout).total_seconds() / SECONDS_PER_DAY
    return round_half_up(elapsed)


def calculate_average_duration(records: Any) -> int:
    """Mean loan duration in days over returned loans; 0 when there are none."""
    if not isinstance(records, (list, tuple)):
        return 0
    durations = pd.Series(
        [d for d in (loan_duration_days(r) for r in records) if d is not None],
        dtype="float64",
    )
    if durations.empty:
        return 0
    return round_half_up(float(durations.mean()))
