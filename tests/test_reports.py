from datetime import datetime

import pytest

from app.core.config import get_settings
from app.core.events import get_event_bus, topic_filter
from app.services import reports as report_service


def _report(client, user, manga_id, chapter=1, issue_type="missing", description="page 3 is blank"):
    return client.post(
        f"/manga/{manga_id}/chapters/{chapter}/reports",
        json={"issue_type": issue_type, "description": description},
        headers=user["headers"],
    )


def _set_status(client, admin, report_id, status):
    return client.patch(f"/reports/{report_id}/status", json={"status": status}, headers=admin["headers"])


def test_submit_report_creates_admin_notification(client, make_user, admin, manga):
    user = make_user()
    before = client.get("/admin/notifications/unread-count", headers=admin["headers"]).json()["unread"]

    r = _report(client, user, manga["id"], 2, "unreadable", "blurry scans")
    assert r.status_code == 201
    report = r.json()
    assert report["status"] == "pending"
    assert report["resolved_at"] is None
    assert report["user_id"] == user["id"]

    after = client.get("/admin/notifications/unread-count", headers=admin["headers"]).json()["unread"]
    assert after == before + 1

    items = client.get("/admin/notifications", params={"unread_only": True}, headers=admin["headers"]).json()
    ours = [n for n in items if n["data"]["report_id"] == report["id"]]
    assert len(ours) == 1
    assert ours[0]["type"] == "manga_report"
    assert ours[0]["data"] == {
        "report_id": report["id"],
        "manga_id": manga["id"],
        "chapter": 2,
        "issue_type": "unreadable",
        "description": "blurry scans",
    }


def test_missing_pages_report_without_description(client, make_user, admin, manga, db_session):
    from app.models import AdminNotification

    reporter = make_user()
    r = client.post(
        f"/manga/{manga['id']}/chapters/1/reports",
        json={"issue_type": "missing"},
        headers=reporter["headers"],
    )
    assert r.status_code == 201
    report = r.json()
    assert report["status"] == "pending"
    assert report["resolved_at"] is None
    assert report["description"] is None

    rows = [n for n in db_session.query(AdminNotification).all() if n.data.get("report_id") == report["id"]]
    assert len(rows) == 1
    assert rows[0].read is False
    assert rows[0].data["manga_id"] == manga["id"]
    assert rows[0].data["chapter"] == 1
    assert rows[0].data["issue_type"] == "missing"


def test_report_is_announced_out_of_band(client, make_user, manga, monkeypatch):
    user = make_user()
    channel = get_settings().admin_report_channel
    bus = get_event_bus()
    sub = bus.subscribe(topic_filter(channel))

    pushed = []
    monkeypatch.setattr(
        report_service.push,
        "send_to_topic",
        lambda topic, title, body, data=None: pushed.append((topic, data)) or None,
    )
    try:
        report_id = _report(client, user, manga["id"], 4, "wrong_order", "").json()["id"]
        events = sub.drain()
    finally:
        bus.unsubscribe(sub)

    assert [e.type for e in events] == ["manga_report.created"]
    assert events[0].payload["report_id"] == report_id
    assert events[0].payload["description"] is None
    assert pushed == [(channel, events[0].payload)]


def test_push_failure_does_not_fail_report(client, make_user, manga, monkeypatch):
    user = make_user()

    def broken(*args, **kwargs):
        raise RuntimeError("fcm down")

    monkeypatch.setattr(report_service.push, "send_to_topic", broken)
    assert _report(client, user, manga["id"]).status_code == 201


def test_report_validation(client, make_user, manga):
    user = make_user()
    assert _report(client, user, manga["id"], issue_type="spam").status_code == 422
    assert _report(client, user, 987654).status_code == 404
    r = client.post(f"/manga/{manga['id']}/chapters/1/reports", json={"issue_type": "other"})
    assert r.status_code == 401


def test_status_lifecycle(client, make_user, admin, manga):
    user = make_user()
    rid = _report(client, user, manga["id"]).json()["id"]

    assert _set_status(client, user, rid, "in_progress").status_code == 403
    assert _set_status(client, admin, rid, "resolved").status_code == 409

    r = _set_status(client, admin, rid, "in_progress")
    assert r.status_code == 200
    assert r.json()["status"] == "in_progress"
    assert r.json()["resolved_at"] is None

    r = _set_status(client, admin, rid, "resolved")
    assert r.status_code == 200
    resolved_at = r.json()["resolved_at"]
    assert resolved_at is not None

    # 같은 상태 재적용은 허용, 처리 시각 유지
    r = _set_status(client, admin, rid, "resolved")
    assert r.status_code == 200
    assert r.json()["resolved_at"] == resolved_at

    r = _set_status(client, admin, rid, "pending")
    assert r.status_code == 409
    assert r.json()["detail"] == "Cannot move report from resolved to pending"


def test_reject_clears_resolved_at(client, make_user, admin, manga):
    user = make_user()
    rid = _report(client, user, manga["id"]).json()["id"]
    r = _set_status(client, admin, rid, "rejected")
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"
    assert r.json()["resolved_at"] is None
    assert _set_status(client, admin, 987654, "rejected").status_code == 404


def test_resolved_at_uses_given_clock(db_session, make_user, admin, manga):
    from app.models import User

    reporter = make_user()
    admin_user = db_session.query(User).filter(User.id == admin["id"]).first()
    reporter_user = db_session.query(User).filter(User.id == reporter["id"]).first()
    report = report_service.submit_report(db_session, reporter_user, manga["id"], 1, "other", "x")
    report_service.update_report_status(db_session, admin_user, report.id, "in_progress")
    stamp = datetime(2026, 1, 2, 3, 4, 5)
    report = report_service.update_report_status(db_session, admin_user, report.id, "resolved", now=stamp)
    assert report.resolved_at == stamp


def test_report_visibility(client, make_user, admin, manga):
    reporter = make_user()
    other = make_user()
    rid = _report(client, reporter, manga["id"]).json()["id"]

    assert client.get("/reports", headers=reporter["headers"]).status_code == 403
    mine = client.get("/reports/me", headers=reporter["headers"]).json()
    assert [r["id"] for r in mine] == [rid]
    assert client.get("/reports/me", headers=other["headers"]).json() == []

    assert client.get(f"/reports/{rid}", headers=reporter["headers"]).status_code == 200
    assert client.get(f"/reports/{rid}", headers=other["headers"]).status_code == 403
    assert client.get(f"/reports/{rid}", headers=admin["headers"]).status_code == 200

    pending = client.get("/reports", params={"status": "pending"}, headers=admin["headers"]).json()
    assert rid in [r["id"] for r in pending]
    assert all(r["status"] == "pending" for r in pending)


def test_admin_notification_mark_read(client, make_user, admin, manga):
    user = make_user()
    rid = _report(client, user, manga["id"]).json()["id"]
    items = client.get("/admin/notifications", headers=admin["headers"]).json()
    nid = next(n["id"] for n in items if n["data"]["report_id"] == rid)

    assert client.post(f"/admin/notifications/{nid}/read", headers=user["headers"]).status_code == 403
    before = client.get("/admin/notifications/unread-count", headers=admin["headers"]).json()["unread"]
    for _ in range(2):
        r = client.post(f"/admin/notifications/{nid}/read", headers=admin["headers"])
        assert r.status_code == 200
        assert r.json()["read"] is True
    after = client.get("/admin/notifications/unread-count", headers=admin["headers"]).json()["unread"]
    assert after == before - 1


@pytest.mark.parametrize("path", ["/admin/notifications", "/admin/notifications/unread-count"])
def test_admin_endpoints_need_admin(client, make_user, path):
    user = make_user()
    assert client.get(path).status_code == 401
    assert client.get(path, headers=user["headers"]).status_code == 403


def test_admin_mark_read_survives_publish_failure(client, make_user, admin, manga, monkeypatch):
    from app.services import admin_notifications as admin_notification_service

    user = make_user()
    rid = _report(client, user, manga["id"]).json()["id"]
    items = client.get("/admin/notifications", headers=admin["headers"]).json()
    nid = next(n["id"] for n in items if n["data"]["report_id"] == rid)

    class BrokenBus:
        def publish(self, *args, **kwargs):
            raise RuntimeError("bus down")

    monkeypatch.setattr(admin_notification_service, "get_event_bus", lambda: BrokenBus())
    r = client.post(f"/admin/notifications/{nid}/read", headers=admin["headers"])
    assert r.status_code == 200
    assert r.json()["read"] is True


def test_status_endpoint_documents_transition_conflicts(client):
    op = client.get("/openapi.json").json()["paths"]["/reports/{report_id}/status"]["patch"]
    assert "409" in op["summary"]
    assert "pending→rejected" in op["description"]
