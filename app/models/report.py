# app/models/report.py
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Report(SQLModel, table=True):
    """
    A resident's garbage / illegal dumping report.

    report_type: uncollected_garbage | illegal_dump | overflow | missed_collection
    status:      pending | assigned | in_progress | resolved | completed | rejected | closed
    priority:    low | medium | high | urgent
    """

    __tablename__ = "reports"

    report_id: int | None = Field(default=None, primary_key=True)

    user_id: int = Field(
        foreign_key="users.user_id",
        index=True,
    )

    report_type: str = Field(description="Kind of issue reported")
    description: str | None = Field(default=None)

    status: str = Field(default="pending", index=True)
    priority: str = Field(default="medium", index=True)

    street: str | None = Field(default=None)
    community: str | None = Field(default=None)
    latitude: float | None = Field(default=None)
    longitude: float | None = Field(default=None)

    submitted_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    resolved_at: datetime | None = Field(default=None)
    resolution_notes: str | None = Field(default=None)


class ReportUpdate(SQLModel, table=True):
    """
    Audit trail row written for each admin status change.
    """

    __tablename__ = "report_updates"

    update_id: int | None = Field(default=None, primary_key=True)

    report_id: int = Field(foreign_key="reports.report_id", index=True)
    updated_by: int = Field(foreign_key="users.user_id")

    old_status: str | None = Field(default=None)
    new_status: str
    comments: str | None = Field(default=None)

    # status_change | assignment | photo_upload | completion | rejection
    update_type: str = Field(default="status_change")

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
