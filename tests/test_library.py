def test_add_update_and_list_library(client, make_user, manga):
    user = make_user()
    mid = manga["id"]

    r = client.put(f"/library/{mid}", json={"status": "planned"}, headers=user["headers"])
    assert r.status_code == 200
    entry = r.json()
    assert entry["status"] == "planned"
    assert entry["current_chapter"] == 1
    assert entry["user_id"] == user["id"]

    r = client.patch(f"/library/{mid}/progress", json={"current_chapter": 5}, headers=user["headers"])
    assert r.status_code == 200
    assert r.json()["current_chapter"] == 5

    # 상태만 바꾸면 진행 챕터는 유지
    r = client.put(f"/library/{mid}", json={"status": "reading"}, headers=user["headers"])
    assert r.json()["current_chapter"] == 5

    r = client.get("/library", headers=user["headers"])
    body = r.json()
    assert body["total"] == 1
    item = body["items"][0]
    assert item["manga_title"] == manga["title"]
    assert item["manga_status"] == "ongoing"
    assert item["status"] == "reading"

    assert client.get("/library", params={"status": "completed"}, headers=user["headers"]).json()["total"] == 0
    assert client.get("/library", params={"status": "reading"}, headers=user["headers"]).json()["total"] == 1


def test_one_row_per_user_and_manga(client, make_user, manga):
    user = make_user()
    for status in ("reading", "on-hold", "completed"):
        r = client.put(f"/library/{manga['id']}", json={"status": status}, headers=user["headers"])
        assert r.status_code == 200
    body = client.get("/library", headers=user["headers"]).json()
    assert body["total"] == 1
    assert body["items"][0]["status"] == "completed"


def test_library_is_private(client, make_user, manga):
    owner = make_user()
    other = make_user()
    client.put(f"/library/{manga['id']}", json={"status": "reading"}, headers=owner["headers"])

    assert client.get(f"/library/{manga['id']}", headers=other["headers"]).status_code == 404
    assert client.get("/library", headers=other["headers"]).json()["total"] == 0
    assert client.get("/library").status_code == 401


def test_remove_is_a_no_op_when_missing(client, make_user, manga):
    user = make_user()
    assert client.delete(f"/library/{manga['id']}", headers=user["headers"]).status_code == 204
    client.put(f"/library/{manga['id']}", json={"status": "reading"}, headers=user["headers"])
    assert client.delete(f"/library/{manga['id']}", headers=user["headers"]).status_code == 204
    assert client.get(f"/library/{manga['id']}", headers=user["headers"]).status_code == 404


def test_library_rejects_unknown_status_and_manga(client, make_user, manga):
    user = make_user()
    r = client.put(f"/library/{manga['id']}", json={"status": "dropped"}, headers=user["headers"])
    assert r.status_code == 422
    r = client.put("/library/987654", json={"status": "reading"}, headers=user["headers"])
    assert r.status_code == 404
    r = client.patch(f"/library/{manga['id']}/progress", json={"current_chapter": 3}, headers=user["headers"])
    assert r.status_code == 404
