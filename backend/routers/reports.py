"""Reports API: report file generation, last-month exports, statistics and period analytics."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from library_reporting import config
from library_reporting.errors import ReportError
from library_reporting.models import GeneratedReport
from library_reporting.periods import scope_borrower_id
from library_reporting.reporting import (
    generate_report, export_last_month_overdue, export_last_month_borrowing,
    get_statistics, get_period_analytics,
)

from backend.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


class ReportBody(BaseModel):
    start_date: str | None = None
    end_date: str | None = None
    report_type: str
    format: str = config.DEFAULT_FORMAT


class AnalyticsBody(BaseModel):
    start_date: str
    end_date: str


def _file_response(report: GeneratedReport) -> Response:
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={
            "Content-Disposition": f"attachment; filename={report.filename}",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        },
    )


def _http_error(e: ReportError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/generate")
def generate(body: ReportBody, user: dict = Depends(get_current_user)):
    """Generate a borrowing, overdue, inventory or last-month report as XLSX or CSV."""
    try:
        report = generate_report(
            start_date=body.start_date,
            end_date=body.end_date,
            report_type=body.report_type,
            fmt=body.format,
            borrower_id=scope_borrower_id(user),
            db_path=config.DB_PATH,
        )
    except ReportError as e:
        logger.warning("Rejected report request: %s", e)
        raise _http_error(e)
    except Exception:
        logger.exception("Error generating report")
        raise
    return _file_response(report)


@router.get("/statistics")
def statistics(user: dict = Depends(get_current_user)):
    """Library totals and all-time analytics; non-admins only see their own loans."""
    try:
        stats = get_statistics(borrower_id=scope_borrower_id(user), db_path=config.DB_PATH)
    except ReportError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("Error getting statistics")
        raise
    return {"status": "success", "data": stats}


@router.post("/analytics")
def period_analytics(body: AnalyticsBody, user: dict = Depends(get_current_user)):
    try:
        analytics = get_period_analytics(
            body.start_date,
            body.end_date,
            borrower_id=scope_borrower_id(user),
            db_path=config.DB_PATH,
        )
    except ReportError as e:
        raise _http_error(e)
    except Exception:
        logger.exception("Error getting period analytics")
        raise
    return {"status": "success", "data": analytics}


@router.get("/export/last-month-overdue")
def last_month_overdue(
    format: str = Query(config.DEFAULT_FORMAT, description="xlsx or csv"),
    user: dict = Depends(get_current_user),
):
    try:
        report = export_last_month_overdue(format, db_path=config.DB_PATH)
    except ReportError as e:
        raise _http_error(e)
    return _file_response(report)


@router.get("/export/last-month-borrowing")
def last_month_borrowing(
    format: str = Query(config.DEFAULT_FORMAT, description="xlsx or csv"),
    user: dict = Depends(get_current_user),
):
    try:
        report = export_last_month_borrowing(format, db_path=config.DB_PATH)
    except ReportError as e:
        raise _http_error(e)
    return _file_response(report)
