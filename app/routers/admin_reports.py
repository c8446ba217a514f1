# app/routers/admin_reports.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import AuthContext, require_admin
from app.database import get_session
from app.repositories.report_repo import ReportRepository
from app.schemas.report import (
    AdminDashboard,
    ReportHistory,
    ReportListResponse,
    ReportStatusUpdate,
    ReportStatusUpdated,
)
from app.services.report_service import ReportService

router = APIRouter(prefix="/admin", tags=["Admin Reports"])

repo = ReportRepository()
service = ReportService(repo)


@router.get(
    "/dashboard",
    response_model=AdminDashboard,
    dependencies=[Depends(require_admin)],
)
def get_admin_dashboard(session: Session = Depends(get_session)):
    """
    Aggregated report statistics over the latest 100 reports.

    Only accessible to active admin / supadmin users.
    """
    return service.get_dashboard(session)


@router.get(
    "/reports",
    response_model=ReportListResponse,
    dependencies=[Depends(require_admin)],
)
def list_reports(
    status: str | None = None,
    priority: str | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: Session = Depends(get_session),
):
    """
    All reports, newest first.

    Query params (optional):
      - status / priority: exact filter, "all" = no filter
      - limit / offset: pagination
    """
    return service.list_reports(
        session, status=status, priority=priority, limit=limit, offset=offset
    )


@router.put("/reports", response_model=ReportStatusUpdated)
def update_report_status(
    payload: ReportStatusUpdate,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_admin),
):
    """
    Change a report's status (admin only).

    Writes an audit row attributed to the calling admin.
    """
    return service.update_status(session, ctx.user, payload)


@router.get(
    "/reports/{report_id}/updates",
    response_model=ReportHistory,
    dependencies=[Depends(require_admin)],
)
def list_report_updates(report_id: int, session: Session = Depends(get_session)):
    """Status-change history for one report, oldest first."""
    return service.get_history(session, report_id)
