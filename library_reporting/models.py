"""Value types shared by the reporting engine: report types, export formats, periods."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import ReportValidationError


class ReportType(str, Enum):
    BORROWING = "borrowing"
    OVERDUE = "overdue"
    INVENTORY = "inventory"
    LAST_MONTH_BORROWING = "last_month_borrowing"
    LAST_MONTH_OVERDUE = "last_month_overdue"

    @classmethod
    def parse(cls, value: "str | ReportType | None") -> "ReportType":
        """Resolve a caller-supplied tag; unknown tags are a validation error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ReportValidationError(f"Invalid report type: {value}") from None

    @property
    def is_last_month(self) -> bool:
        return self in (ReportType.LAST_MONTH_BORROWING, ReportType.LAST_MONTH_OVERDUE)

    @property
    def base(self) -> "ReportType":
        """Row layout used by this type (last-month variants share their base layout)."""
        if self is ReportType.LAST_MONTH_BORROWING:
            return ReportType.BORROWING
        if self is ReportType.LAST_MONTH_OVERDUE:
            return ReportType.OVERDUE
        return self


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    CSV = "csv"

    @classmethod
    def parse(cls, value: "str | ExportFormat | None") -> "ExportFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise ReportValidationError(f"Unsupported format: {value}") from None

    @property
    def media_type(self) -> str:
        if self is ExportFormat.CSV:
            return "text/csv"
        return "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    @property
    def extension(self) -> str:
        return self.value


@dataclass(frozen=True)
class LoanStatus:
    """Open loan (returned_at is None) or a loan closed at returned_at."""

    returned_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.returned_at is None


@dataclass(frozen=True)
class DateRange:
    """Inclusive [start_date, end_date] window."""

    start_date: datetime
    end_date: datetime

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ReportValidationError("start_date must be on or before end_date")

    def as_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


@dataclass(frozen=True)
class GeneratedReport:
    content: bytes
    media_type: str
    filename: str
    row_count: int = 0
