"""Exceptions raised by the reporting engine."""


class ReportError(Exception):
    """Base class for reporting failures."""

    status_code = 500


class ReportValidationError(ReportError):
    """Caller supplied a report request that cannot be served (bad type, format or dates)."""

    status_code = 400


class ReportAccessError(ReportError):
    """The caller has no borrower identity to scope records to."""

    status_code = 403
