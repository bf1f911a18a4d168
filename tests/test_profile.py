def test_profile_created_on_first_login(client, make_user):
    user = make_user(email="reader.one@example.com")
    r = client.get("/profile/me", headers=user["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["user_id"] == user["id"]
    assert body["username"] == "reader.one"
    assert body["is_admin"] is False
    assert body["avatar_url"] is None


def test_update_username_and_conflict(client, make_user):
    a = make_user()
    b = make_user()
    name = f"name_{a['id']}"

    r = client.patch("/profile/me", json={"username": name}, headers=a["headers"])
    assert r.status_code == 200
    assert r.json()["username"] == name

    r = client.patch("/profile/me", json={"username": name}, headers=b["headers"])
    assert r.status_code == 409

    r = client.patch("/profile/me", json={"username": "   "}, headers=b["headers"])
    assert r.status_code == 422


def test_avatar_must_live_in_own_folder(client, make_user):
    user = make_user()
    r = client.patch("/profile/me", json={"avatar_url": "999999/evil.png"}, headers=user["headers"])
    assert r.status_code == 422

    key = f"{user['id']}/abc123.png"
    r = client.patch("/profile/me", json={"avatar_url": key}, headers=user["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["avatar_url"] == key
    assert body["avatar_public_url"].endswith(f"avatars/{key}")


def test_profile_requires_auth(client):
    assert client.get("/profile/me").status_code == 401
