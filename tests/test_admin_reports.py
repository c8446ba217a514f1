"""Admin dashboard and report management."""

import pytest
from sqlalchemy.exc import IntegrityError

from app.models.report import Report, ReportUpdate
from app.repositories.report_repo import ReportRepository


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.mark.parametrize("path", ["/api/admin/dashboard", "/api/admin/reports"])
def test_admin_routes_reject_residents(client, make_user, path):
    _, token = make_user(role="resident")
    res = client.get(path, headers=_bearer(token))
    assert res.status_code == 403


def test_admin_routes_reject_deactivated_admin(client, make_user):
    _, token = make_user(role="admin", is_active=False)
    res = client.get("/api/admin/dashboard", headers=_bearer(token))
    assert res.status_code == 403


def test_dashboard_counts(client, make_user, add_report):
    _, token = make_user(role="admin")
    reporter, _ = make_user(full_name="Jane Brown")
    add_report(reporter.user_id, "pending", "urgent", community="Half Way Tree")
    add_report(reporter.user_id, "assigned", "high")
    add_report(reporter.user_id, "in_progress", "high")
    add_report(reporter.user_id, "resolved", "low")
    add_report(reporter.user_id, "closed", "low")
    add_report(reporter.user_id, "rejected", "medium")

    res = client.get("/api/admin/dashboard", headers=_bearer(token))

    assert res.status_code == 200
    body = res.json()
    assert body["stats"] == {
        "total_reports": 6,
        "resolved_reports": 2,
        "in_progress_reports": 2,
        "pending_reports": 1,
        "rejected_reports": 1,
    }
    assert {c["name"]: c["value"] for c in body["priority_breakdown"]} == {
        "Urgent": 1,
        "High": 2,
        "Medium": 1,
        "Low": 2,
    }
    newest = body["reports"][0]
    assert newest["status"] == "rejected"
    assert newest["location_community"] == "Unknown"
    assert newest["reporter_name"] == "Jane Brown"
    assert body["reports"][-1]["location_community"] == "Half Way Tree"


def test_list_reports_filters_and_paginates(client, make_user, add_report):
    _, token = make_user(role="supadmin")
    reporter, _ = make_user()
    for _ in range(3):
        add_report(reporter.user_id, "pending")
    add_report(reporter.user_id, "resolved")

    res = client.get(
        "/api/admin/reports",
        headers=_bearer(token),
        params={"status": "pending", "limit": 2, "offset": 0},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["totalCount"] == 3
    assert len(body["reports"]) == 2
    assert body["pagination"] == {"limit": 2, "offset": 0}
    assert body["reports"][0]["users"]["user_id"] == reporter.user_id


def test_list_reports_all_means_no_filter(client, make_user, add_report):
    _, token = make_user(role="admin")
    reporter, _ = make_user()
    add_report(reporter.user_id, "pending")
    add_report(reporter.user_id, "closed")

    res = client.get(
        "/api/admin/reports", headers=_bearer(token), params={"status": "all"}
    )

    assert res.json()["totalCount"] == 2


def test_list_reports_rejects_unknown_status(client, make_user):
    _, token = make_user(role="admin")
    res = client.get(
        "/api/admin/reports", headers=_bearer(token), params={"status": "lost"}
    )
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_STATUS"


def test_update_status_writes_audit_row(client, make_user, add_report):
    admin, token = make_user(role="admin")
    reporter, _ = make_user()
    report = add_report(reporter.user_id, "pending")

    res = client.put(
        "/api/admin/reports",
        headers=_bearer(token),
        json={"reportId": report.report_id, "status": "resolved", "resolutionNotes": "Cleared"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["message"] == "Report status updated to resolved"
    assert body["report"]["status"] == "resolved"
    assert body["report"]["resolved_at"] is not None
    assert body["report"]["resolution_notes"] == "Cleared"

    history = client.get(
        f"/api/admin/reports/{report.report_id}/updates", headers=_bearer(token)
    )
    assert history.status_code == 200
    updates = history.json()["updates"]
    assert len(updates) == 1
    assert updates[0]["old_status"] == "pending"
    assert updates[0]["new_status"] == "resolved"
    assert updates[0]["updated_by"] == admin.user_id
    assert updates[0]["comments"] == "Cleared"


def test_reopening_clears_resolved_at(client, make_user, add_report):
    _, token = make_user(role="admin")
    reporter, _ = make_user()
    report = add_report(reporter.user_id, "pending")

    client.put(
        "/api/admin/reports",
        headers=_bearer(token),
        json={"reportId": report.report_id, "status": "closed"},
    )
    res = client.put(
        "/api/admin/reports",
        headers=_bearer(token),
        json={"reportId": report.report_id, "status": "in_progress"},
    )

    assert res.json()["report"]["resolved_at"] is None


def test_update_status_invalid(client, make_user, add_report):
    _, token = make_user(role="admin")
    reporter, _ = make_user()
    report = add_report(reporter.user_id)

    res = client.put(
        "/api/admin/reports",
        headers=_bearer(token),
        json={"reportId": report.report_id, "status": "done"},
    )

    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_STATUS"


def test_update_status_unknown_report(client, make_user):
    _, token = make_user(role="admin")
    res = client.put(
        "/api/admin/reports",
        headers=_bearer(token),
        json={"reportId": 424242, "status": "closed"},
    )
    assert res.status_code == 404
    assert res.json()["code"] == "REPORT_NOT_FOUND"


def test_failed_audit_row_keeps_old_status(session, make_user, add_report):
    reporter, _ = make_user()
    report = add_report(reporter.user_id, "pending")
    repo = ReportRepository()

    report.status = "closed"
    broken = ReportUpdate(
        report_id=report.report_id, updated_by=reporter.user_id, new_status=None
    )
    with pytest.raises(IntegrityError):
        repo.save_status_change(session, report, broken)

    assert session.get(Report, report.report_id).status == "pending"
    assert repo.list_updates(session, report.report_id) == []


def test_report_history_requires_admin(client, make_user, add_report):
    reporter, token = make_user()
    report = add_report(reporter.user_id)
    res = client.get(
        f"/api/admin/reports/{report.report_id}/updates", headers=_bearer(token)
    )
    assert res.status_code == 403


def test_report_history_unknown_report(client, make_user):
    _, token = make_user(role="admin")
    res = client.get("/api/admin/reports/424242/updates", headers=_bearer(token))
    assert res.status_code == 404
    assert res.json()["code"] == "REPORT_NOT_FOUND"
