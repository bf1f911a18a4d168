import pytest

from app.core.errors import ValidationFailed
from app.services import storage


class FakeS3:
    def __init__(self):
        self.calls = []

    def generate_presigned_post(self, Bucket, Key, Fields, Conditions, ExpiresIn):
        self.calls.append({"Bucket": Bucket, "Key": Key, "Fields": Fields, "Conditions": Conditions})
        return {"url": "https://s3.example.com/bucket", "fields": dict(Fields, key=Key)}


def test_object_keys():
    avatar = storage.make_object_key("avatars", "me.PNG", owner_id=7)
    assert avatar.startswith("7/") and avatar.endswith(".png")
    cover = storage.make_object_key("covers", "cover.jpg")
    assert "/" not in cover and cover.endswith(".jpg")
    assert storage.make_object_key("pages", "p.webp") != storage.make_object_key("pages", "p.webp")

    with pytest.raises(ValidationFailed):
        storage.make_object_key("covers", "evil.exe")
    with pytest.raises(ValidationFailed):
        storage.make_object_key("videos", "clip.png")
    with pytest.raises(ValidationFailed):
        storage.make_object_key("avatars", "me.png")


def test_public_url_passthrough():
    assert storage.public_url("covers", None) is None
    assert storage.public_url("covers", "https://cdn.example.com/x.jpg") == "https://cdn.example.com/x.jpg"
    assert storage.public_url("covers", "abc.jpg").endswith("covers/abc.jpg")


def test_presign_requires_s3(client, make_user):
    user = make_user()
    r = client.post("/uploads/avatars/presign", params={"filename": "me.png"}, headers=user["headers"])
    assert r.status_code == 501
    assert r.json()["detail"] == "S3 not configured"


def test_bucket_write_policy(client, make_user, admin, monkeypatch):
    fake = FakeS3()
    monkeypatch.setattr(storage, "_client", lambda: fake)
    user = make_user()

    assert client.post("/uploads/avatars/presign", params={"filename": "me.png"}).status_code == 401
    r = client.post("/uploads/covers/presign", params={"filename": "c.jpg"}, headers=user["headers"])
    assert r.status_code == 403
    r = client.post("/uploads/videos/presign", params={"filename": "c.png"}, headers=admin["headers"])
    assert r.status_code == 403

    r = client.post(
        "/uploads/avatars/presign",
        params={"filename": "me.png", "contentType": "image/png"},
        headers=user["headers"],
    )
    assert r.status_code == 200
    body = r.json()
    assert body["bucket"] == "avatars"
    assert body["key"].startswith(f"{user['id']}/")
    assert body["fileUrl"].endswith(f"avatars/{body['key']}")
    assert fake.calls[-1]["Key"] == f"avatars/{body['key']}"
    assert fake.calls[-1]["Fields"]["Content-Type"] == "image/png"

    r = client.post("/uploads/pages/presign", params={"filename": "001.jpg"}, headers=admin["headers"])
    assert r.status_code == 200
    assert "/" not in r.json()["key"]
