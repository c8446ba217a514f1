# app/routers/reports.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import AuthContext, require_resident
from app.database import get_session
from app.repositories.report_repo import ReportRepository
from app.schemas.report import MyReports, ReportCreate, ReportCreated, ReportDetail
from app.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])

repo = ReportRepository()
service = ReportService(repo)


@router.post("", response_model=ReportCreated, status_code=status.HTTP_201_CREATED)
def create_report(
    payload: ReportCreate | None = None,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_resident),
):
    """
    File a garbage / illegal dumping report.

    Body:
      - report_type, description, street, community, latitude, longitude
      - priority (optional, default "medium")

    The report is attributed to the caller and starts as "pending".
    """
    return service.create_report(session, ctx.user, payload or ReportCreate())


@router.get("", response_model=MyReports)
def list_my_reports(
    status: str | None = None,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_resident),
):
    """
    The caller's own reports, newest first.

    Query params (optional):
      - status: exact filter, "all" = no filter
    """
    return service.list_my_reports(session, ctx.user, status=status)


@router.get("/{report_id}", response_model=ReportDetail)
def get_report(
    report_id: int,
    session: Session = Depends(get_session),
    ctx: AuthContext = Depends(require_resident),
):
    """
    A single report.

    Residents only see their own reports; admins see any report.
    """
    return service.get_report(session, ctx.user, report_id)
