import pytest
from starlette.websockets import WebSocketDisconnect

from app.core.events import get_event_bus


def _post(client, user, manga_id, chapter, content):
    r = client.post(
        f"/manga/{manga_id}/chapters/{chapter}/comments",
        json={"content": content},
        headers=user["headers"],
    )
    assert r.status_code == 201
    return r.json()


def test_comment_stream_pushes_new_comments(client, make_user, manga):
    user = make_user()
    with client.websocket_connect(f"/realtime/comments/{manga['id']}/1") as ws:
        comment = _post(client, user, manga["id"], 1, "live!")
        msg = ws.receive_json()
    assert msg["type"] == "comment.created"
    assert msg["topic"] == f"comments:{manga['id']}:1"
    assert msg["payload"]["id"] == comment["id"]
    assert msg["payload"]["content"] == "live!"


def test_comment_stream_replays_since(client, make_user, manga):
    user = make_user()
    start = get_event_bus().last_seq
    first = _post(client, user, manga["id"], 2, "missed one")
    second = _post(client, user, manga["id"], 2, "missed two")

    with client.websocket_connect(f"/realtime/comments/{manga['id']}/2?since={start}") as ws:
        a = ws.receive_json()
        b = ws.receive_json()
    assert [a["payload"]["id"], b["payload"]["id"]] == [first["id"], second["id"]]
    assert a["seq"] < b["seq"]


def test_stale_cursor_reports_gap(client, manga):
    ahead = get_event_bus().last_seq + 1000
    with client.websocket_connect(f"/realtime/comments/{manga['id']}/1?since={ahead}") as ws:
        msg = ws.receive_json()
    assert msg["type"] == "replay_gap"


def test_ping_pong(client, manga):
    with client.websocket_connect(f"/realtime/comments/{manga['id']}/1") as ws:
        ws.send_text("ping")
        msg = ws.receive_json()
    assert msg["type"] == "pong"
    assert msg["seq"] >= 0


def test_notification_stream_for_subscriber(client, make_user, manga):
    author = make_user()
    reader = make_user()
    r = client.put(f"/manga/{manga['id']}/chapters/3/subscription", headers=reader["headers"])
    assert r.status_code == 200

    with client.websocket_connect(f"/realtime/notifications?token={reader['token']}") as ws:
        comment = _post(client, author, manga["id"], 3, "for subscribers")
        msg = ws.receive_json()
    assert msg["type"] == "comment_notification.created"
    assert msg["payload"]["user_id"] == reader["id"]
    assert msg["payload"]["comment_id"] == comment["id"]
    assert msg["payload"]["read"] is False


def test_notification_stream_requires_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/realtime/notifications") as ws:
            ws.receive_json()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/realtime/notifications?token=garbage") as ws:
            ws.receive_json()


def test_admin_stream(client, make_user, admin, manga):
    user = make_user()
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/realtime/admin?token={user['token']}") as ws:
            ws.receive_json()

    with client.websocket_connect(f"/realtime/admin?token={admin['token']}") as ws:
        r = client.post(
            f"/manga/{manga['id']}/chapters/1/reports",
            json={"issue_type": "missing"},
            headers=user["headers"],
        )
        assert r.status_code == 201
        first = ws.receive_json()
        second = ws.receive_json()
    assert first["type"] == "manga_report.created"
    assert first["payload"]["report_id"] == r.json()["id"]
    assert second["type"] == "admin_notification.created"
    assert second["payload"]["read"] is False
