# app/schemas/report.py
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

ReportStatus = Literal[
    "pending",
    "assigned",
    "in_progress",
    "resolved",
    "completed",
    "rejected",
    "closed",
]
ReportPriority = Literal["low", "medium", "high", "urgent"]

REPORT_STATUSES: tuple[str, ...] = ReportStatus.__args__
REPORT_PRIORITIES: tuple[str, ...] = ReportPriority.__args__

# Statuses that count as "done" and stamp resolved_at
RESOLVED_STATUSES = frozenset({"resolved", "completed", "closed"})
IN_PROGRESS_STATUSES = frozenset({"in_progress", "assigned"})


class Reporter(SQLModel):
    user_id: int
    full_name: str | None = None
    email: str | None = None
    username: str | None = None


class ReportRead(SQLModel):
    report_id: int
    report_type: str
    description: str | None = None
    status: str
    priority: str
    submitted_at: datetime
    resolved_at: datetime | None = None
    resolution_notes: str | None = None
    street: str | None = None
    community: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    users: Reporter | None = None


class Pagination(SQLModel):
    limit: int
    offset: int


class ReportListResponse(SQLModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    reports: list[ReportRead]
    total_count: int = Field(alias="totalCount")
    pagination: Pagination


class ReportStatusUpdate(SQLModel):
    """PUT /admin/reports body."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    report_id: int = Field(alias="reportId")
    status: str
    resolution_notes: str | None = Field(default=None, alias="resolutionNotes")


class ReportStatusUpdated(SQLModel):
    success: bool = True
    message: str
    report: ReportRead


# ---------- Dashboard ----------


class DashboardReport(SQLModel):
    """
    Flattened report row for the admin dashboard table.

    Missing reporter/location values get display placeholders here only.
    """

    report_id: int
    location_community: str
    report_type: str
    status: str
    priority: str
    submitted_at: datetime
    reporter_name: str
    reporter_email: str


class DashboardStats(SQLModel):
    total_reports: int
    resolved_reports: int
    in_progress_reports: int
    pending_reports: int
    rejected_reports: int


class CountByLabel(SQLModel):
    name: str
    value: int


class AdminDashboard(SQLModel):
    stats: DashboardStats
    report_status: list[CountByLabel]
    priority_breakdown: list[CountByLabel]
    reports: list[DashboardReport]


# ---------- Resident reports ----------

ReportType = Literal[
    "uncollected_garbage",
    "illegal_dump",
    "overflow",
    "missed_collection",
]
REPORT_TYPES: tuple[str, ...] = ReportType.__args__


class ReportCreate(SQLModel):
    """
    POST /reports body.

    Fields are optional here so the service can answer MISSING_FIELDS with
    the full list of what is absent.
    """

    report_type: str | None = None
    description: str | None = None
    priority: str | None = None
    street: str | None = None
    community: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class ReportCreated(SQLModel):
    success: bool = True
    message: str
    report: ReportRead


class MyReports(SQLModel):
    success: bool = True
    count: int
    reports: list[ReportRead]


class ReportDetail(SQLModel):
    success: bool = True
    report: ReportRead


# ---------- Audit trail ----------


class ReportUpdateRead(SQLModel):
    update_id: int
    report_id: int
    updated_by: int
    old_status: str | None = None
    new_status: str
    comments: str | None = None
    update_type: str
    created_at: datetime


class ReportHistory(SQLModel):
    success: bool = True
    report_id: int
    updates: list[ReportUpdateRead]
