# app/services/report_service.py
import logging
from collections import Counter
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import Forbidden, NotFoundError, ValidationError
from app.core.roles import Tier, effective_role, has_tier
from app.models.report import Report, ReportUpdate
from app.models.user import ApplicationUser
from app.repositories.report_repo import ReportRepository
from app.schemas.report import (
    IN_PROGRESS_STATUSES,
    REPORT_PRIORITIES,
    REPORT_STATUSES,
    REPORT_TYPES,
    RESOLVED_STATUSES,
    AdminDashboard,
    CountByLabel,
    DashboardReport,
    DashboardStats,
    MyReports,
    Pagination,
    Reporter,
    ReportCreate,
    ReportCreated,
    ReportDetail,
    ReportHistory,
    ReportListResponse,
    ReportRead,
    ReportStatusUpdate,
    ReportStatusUpdated,
    ReportUpdateRead,
)

logger = logging.getLogger(__name__)

DASHBOARD_REPORT_LIMIT = 100

REQUIRED_REPORT_FIELDS = (
    "report_type",
    "description",
    "street",
    "community",
    "latitude",
    "longitude",
)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _report_read(report: Report, reporter: ApplicationUser | None) -> ReportRead:
    return ReportRead(
        report_id=report.report_id,
        report_type=report.report_type,
        description=report.description,
        status=report.status,
        priority=report.priority,
        submitted_at=report.submitted_at,
        resolved_at=report.resolved_at,
        resolution_notes=report.resolution_notes,
        street=report.street,
        community=report.community,
        latitude=report.latitude,
        longitude=report.longitude,
        users=(
            Reporter(
                user_id=reporter.user_id,
                full_name=reporter.full_name,
                email=reporter.email,
                username=reporter.username,
            )
            if reporter
            else None
        ),
    )


def _filter_value(value: str | None, allowed: tuple[str, ...], name: str) -> str | None:
    """'all' / empty mean no filter; anything else must be a known value."""
    if not value or value == "all":
        return None
    if value not in allowed:
        raise ValidationError(
            f"Invalid {name}. Must be one of: {', '.join(allowed)}",
            code=f"INVALID_{name.upper()}",
        )
    return value


class ReportService:
    """
    Report operations for residents and admins.

    Responsibilities:
      - residents filing and reading their own reports
      - dashboard aggregation over the latest reports
      - filtered listing for the reports table
      - status changes with an audit trail
    """

    def __init__(self, repo: ReportRepository):
        self.repo = repo

    # ----- Resident side -----

    def create_report(
        self,
        session: Session,
        reporter: ApplicationUser,
        payload: ReportCreate,
    ) -> ReportCreated:
        """
        File a new report for the caller.

        The reporter always comes from the session, never from the body.
        New reports start as pending.
        """
        missing = [name for name in REQUIRED_REPORT_FIELDS if _is_blank(getattr(payload, name))]
        if missing:
            suffix = "s" if len(missing) > 1 else ""
            raise ValidationError(
                f"Missing required field{suffix}: {', '.join(missing)}",
                code="MISSING_FIELDS",
                details={"missingFields": missing},
            )

        if payload.report_type not in REPORT_TYPES:
            raise ValidationError(
                f"Invalid report_type. Must be one of: {', '.join(REPORT_TYPES)}",
                code="INVALID_REPORT_TYPE",
            )
        priority = payload.priority or "medium"
        if priority not in REPORT_PRIORITIES:
            raise ValidationError(
                f"Invalid priority. Must be one of: {', '.join(REPORT_PRIORITIES)}",
                code="INVALID_PRIORITY",
            )

        report = self.repo.create(
            session,
            Report(
                user_id=reporter.user_id,
                report_type=payload.report_type,
                description=payload.description.strip(),
                priority=priority,
                street=payload.street.strip(),
                community=payload.community.strip(),
                latitude=payload.latitude,
                longitude=payload.longitude,
            ),
        )
        logger.info("User %s filed report %s", reporter.user_id, report.report_id)

        return ReportCreated(
            message="Report submitted successfully",
            report=_report_read(report, reporter),
        )

    def list_my_reports(
        self,
        session: Session,
        reporter: ApplicationUser,
        *,
        status: str | None,
    ) -> MyReports:
        status = _filter_value(status, REPORT_STATUSES, "status")
        reports = self.repo.list_for_user(session, reporter.user_id, status=status)
        return MyReports(
            count=len(reports),
            reports=[_report_read(r, reporter) for r in reports],
        )

    def _visible_report(
        self, session: Session, caller: ApplicationUser, report_id: int
    ) -> Report:
        report = self.repo.get_by_id(session, report_id)
        if report is None:
            raise NotFoundError("Report not found", code="REPORT_NOT_FOUND")
        if report.user_id != caller.user_id and not has_tier(
            effective_role(caller), Tier.ADMIN
        ):
            raise Forbidden("You can only view your own reports")
        return report

    def get_report(
        self, session: Session, caller: ApplicationUser, report_id: int
    ) -> ReportDetail:
        """A single report, visible to its reporter and to admins."""
        report = self._visible_report(session, caller, report_id)
        reporter = session.get(ApplicationUser, report.user_id)
        return ReportDetail(report=_report_read(report, reporter))

    def get_history(self, session: Session, report_id: int) -> ReportHistory:
        """Audit rows for one report, oldest first."""
        if self.repo.get_by_id(session, report_id) is None:
            raise NotFoundError("Report not found", code="REPORT_NOT_FOUND")
        updates = self.repo.list_updates(session, report_id)
        return ReportHistory(
            report_id=report_id,
            updates=[ReportUpdateRead.model_validate(u, from_attributes=True) for u in updates],
        )

    # ----- Admin side -----

    def get_dashboard(self, session: Session) -> AdminDashboard:
        rows = self.repo.list_with_reporters(session, limit=DASHBOARD_REPORT_LIMIT)

        reports = [
            DashboardReport(
                report_id=r.report_id,
                location_community=r.community or "Unknown",
                report_type=r.report_type,
                status=r.status,
                priority=r.priority,
                submitted_at=r.submitted_at,
                reporter_name=(u.full_name if u and u.full_name else "Unknown"),
                reporter_email=(u.email if u and u.email else "N/A"),
            )
            for r, u in rows
        ]

        statuses = Counter(r.status for r in reports)
        stats = DashboardStats(
            total_reports=len(reports),
            resolved_reports=sum(statuses[s] for s in RESOLVED_STATUSES),
            in_progress_reports=sum(statuses[s] for s in IN_PROGRESS_STATUSES),
            pending_reports=statuses["pending"],
            rejected_reports=statuses["rejected"],
        )

        priorities = Counter(r.priority for r in reports)

        return AdminDashboard(
            stats=stats,
            report_status=[
                CountByLabel(name="Resolved", value=stats.resolved_reports),
                CountByLabel(name="In Progress", value=stats.in_progress_reports),
                CountByLabel(name="Pending", value=stats.pending_reports),
                CountByLabel(name="Rejected", value=stats.rejected_reports),
            ],
            priority_breakdown=[
                CountByLabel(name=p.capitalize(), value=priorities[p])
                for p in reversed(REPORT_PRIORITIES)
            ],
            reports=reports,
        )

    def list_reports(
        self,
        session: Session,
        *,
        status: str | None,
        priority: str | None,
        limit: int,
        offset: int,
    ) -> ReportListResponse:
        status = _filter_value(status, REPORT_STATUSES, "status")
        priority = _filter_value(priority, REPORT_PRIORITIES, "priority")

        rows = self.repo.list_with_reporters(
            session, status=status, priority=priority, limit=limit, offset=offset
        )
        total = self.repo.count(session, status=status, priority=priority)

        return ReportListResponse(
            reports=[_report_read(r, u) for r, u in rows],
            total_count=total,
            pagination=Pagination(limit=limit, offset=offset),
        )

    def update_status(
        self,
        session: Session,
        actor: ApplicationUser,
        payload: ReportStatusUpdate,
    ) -> ReportStatusUpdated:
        """
        Change a report's status and record it in report_updates.

        resolved_at is stamped when the report moves into a resolved
        status and cleared when it moves back out.
        """
        if payload.status not in REPORT_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(REPORT_STATUSES)}",
                code="INVALID_STATUS",
            )

        report = self.repo.get_by_id(session, payload.report_id)
        if report is None:
            raise NotFoundError("Report not found", code="REPORT_NOT_FOUND")

        old_status = report.status
        report.status = payload.status
        if payload.status in RESOLVED_STATUSES:
            if old_status not in RESOLVED_STATUSES or report.resolved_at is None:
                report.resolved_at = datetime.now(timezone.utc)
        else:
            report.resolved_at = None
        if payload.resolution_notes:
            report.resolution_notes = payload.resolution_notes

        report = self.repo.save_status_change(
            session,
            report,
            ReportUpdate(
                report_id=report.report_id,
                updated_by=actor.user_id,
                old_status=old_status,
                new_status=payload.status,
                comments=payload.resolution_notes,
                update_type="status_change",
            ),
        )
        logger.info(
            "User %s moved report %s: %s -> %s",
            actor.user_id,
            report.report_id,
            old_status,
            payload.status,
        )

        reporter = session.get(ApplicationUser, report.user_id)
        return ReportStatusUpdated(
            message=f"Report status updated to {payload.status}",
            report=_report_read(report, reporter),
        )
