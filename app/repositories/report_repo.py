# app/repositories/report_repo.py
from sqlalchemy import func
from sqlmodel import Session, select

from app.models.report import Report, ReportUpdate
from app.models.user import ApplicationUser


class ReportRepository:
    """
    Data access for reports and their audit trail.
    """

    def get_by_id(self, session: Session, report_id: int) -> Report | None:
        return session.get(Report, report_id)

    def _filtered(self, stmt, status: str | None, priority: str | None):
        if status:
            stmt = stmt.where(Report.status == status)
        if priority:
            stmt = stmt.where(Report.priority == priority)
        return stmt

    def list_with_reporters(
        self,
        session: Session,
        *,
        status: str | None = None,
        priority: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[tuple[Report, ApplicationUser | None]]:
        """
        Newest reports first, each paired with its reporter (if the
        user row still exists).
        """
        stmt = select(Report, ApplicationUser).join(
            ApplicationUser,
            ApplicationUser.user_id == Report.user_id,
            isouter=True,
        )
        stmt = self._filtered(stmt, status, priority)
        stmt = (
            stmt.order_by(Report.submitted_at.desc(), Report.report_id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count(
        self,
        session: Session,
        *,
        status: str | None = None,
        priority: str | None = None,
    ) -> int:
        stmt = self._filtered(select(func.count()).select_from(Report), status, priority)
        value = session.exec(stmt).one()
        return int(value or 0)

    def create(self, session: Session, report: Report) -> Report:
        session.add(report)
        session.commit()
        session.refresh(report)
        return report

    def list_for_user(
        self,
        session: Session,
        user_id: int,
        *,
        status: str | None = None,
    ) -> list[Report]:
        stmt = select(Report).where(Report.user_id == user_id)
        stmt = self._filtered(stmt, status, None)
        stmt = stmt.order_by(Report.submitted_at.desc(), Report.report_id.desc())
        return list(session.exec(stmt).all())

    def save_status_change(
        self, session: Session, report: Report, entry: ReportUpdate
    ) -> Report:
        """Persist a report change and its audit row in one transaction."""
        session.add(report)
        session.add(entry)
        try:
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(report)
        return report

    def list_updates(self, session: Session, report_id: int) -> list[ReportUpdate]:
        stmt = (
            select(ReportUpdate)
            .where(ReportUpdate.report_id == report_id)
            .order_by(ReportUpdate.update_id)
        )
        return list(session.exec(stmt).all())
