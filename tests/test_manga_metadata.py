import httpx

from app.api import manga as manga_api
from app.models import MangaStatus
from app.services.manga_metadata import JikanClient, map_jikan_manga

BERSERK = {
    "title": "Berserk",
    "synopsis": "Guts, a former mercenary...",
    "genres": [{"name": "Action"}, {"name": "Drama"}, {"name": None}],
    "status": "Publishing",
    "score": 9.47,
    "images": {"jpg": {"large_image_url": "https://cdn.myanimelist.net/images/manga/1/157897l.jpg"}},
    "authors": [{"name": "Miura, Kentarou"}, {"name": "Studio Gaga"}],
}


def _client(handler):
    return JikanClient("https://api.jikan.moe/v4", transport=httpx.MockTransport(handler))


def test_map_jikan_manga():
    mapped = map_jikan_manga(BERSERK)
    assert mapped == {
        "title": "Berserk",
        "description": "Guts, a former mercenary...",
        "genres": ["Action", "Drama"],
        "status": MangaStatus.ONGOING,
        "rating": 9.47,
        "cover": "https://cdn.myanimelist.net/images/manga/1/157897l.jpg",
        "author": "Miura, Kentarou",
    }


def test_map_defaults_for_sparse_result():
    mapped = map_jikan_manga({"title": "Obscure", "status": "Finished"})
    assert mapped["status"] == MangaStatus.COMPLETED
    assert mapped["rating"] == 0
    assert mapped["author"] == "Unknown"
    assert mapped["genres"] == []
    assert mapped["cover"] is None


def test_search_uses_first_result():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["q"] = request.url.params.get("q")
        seen["limit"] = request.url.params.get("limit")
        return httpx.Response(200, json={"data": [BERSERK, {"title": "Berserk: Shinen no Kami"}]})

    result = _client(handler).search_manga("berserk")
    assert result["title"] == "Berserk"
    assert seen == {"path": "/v4/manga", "q": "berserk", "limit": "1"}


def test_search_returns_none_on_empty_or_error():
    assert _client(lambda request: httpx.Response(200, json={"data": []})).search_manga("zzz") is None
    assert _client(lambda request: httpx.Response(500)).search_manga("zzz") is None
    assert _client(lambda request: httpx.Response(200, json={"data": [{"title": None}]})).search_manga("zzz") is None

    def offline(request):
        raise httpx.ConnectError("offline", request=request)

    assert _client(offline).search_manga("zzz") is None


def test_lookup_endpoint(client, admin, make_user, monkeypatch):
    monkeypatch.setattr(
        manga_api,
        "get_client",
        lambda: _client(lambda request: httpx.Response(200, json={"data": [BERSERK]})),
    )
    user = make_user()
    assert client.get("/manga/lookup", params={"title": "berserk"}, headers=user["headers"]).status_code == 403

    r = client.get("/manga/lookup", params={"title": "berserk"}, headers=admin["headers"])
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ongoing"
    assert body["author"] == "Miura, Kentarou"


def test_lookup_endpoint_miss_is_null(client, admin, monkeypatch):
    monkeypatch.setattr(
        manga_api,
        "get_client",
        lambda: _client(lambda request: httpx.Response(404)),
    )
    r = client.get("/manga/lookup", params={"title": "nothing"}, headers=admin["headers"])
    assert r.status_code == 200
    assert r.json() is None
