import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import get_settings
from app.models import MangaStatus

logger = logging.getLogger(__name__)


def _map_status(raw: Optional[str]) -> MangaStatus:
    # Jikan: "Publishing" / "Finished" / "On Hiatus" ...
    return MangaStatus.ONGOING if (raw or "").lower() == "publishing" else MangaStatus.COMPLETED


def map_jikan_manga(item: Dict[str, Any]) -> Dict[str, Any]:
    images = (item.get("images") or {}).get("jpg") or {}
    authors = item.get("authors") or []
    genres: List[str] = [g.get("name") for g in (item.get("genres") or []) if g.get("name")]
    return {
        "title": item.get("title"),
        "description": item.get("synopsis"),
        "genres": genres,
        "status": _map_status(item.get("status")),
        "rating": item.get("score") or 0,
        "cover": images.get("large_image_url"),
        "author": (authors[0].get("name") if authors else None) or "Unknown",
    }


class JikanClient:
    def __init__(self, base_url: str, timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _request(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            r = client.get(f"{self.base_url}{path}", params=params)
            r.raise_for_status()
            return r.json()

    def search_manga(self, title: str) -> Optional[Dict[str, Any]]:
        """첫 번째 검색 결과로 관리자 등록 폼을 미리 채운다. 실패하면 None."""
        try:
            data = self._request("/manga", {"q": title, "limit": 1})
            items = data.get("data") or []
            if not items:
                return None
            mapped = map_jikan_manga(items[0])
            return mapped if mapped["title"] else None
        except (httpx.HTTPError, ValueError, AttributeError):
            logger.exception("manga metadata lookup failed for %r", title)
            return None


def get_client() -> JikanClient:
    settings = get_settings()
    return JikanClient(settings.jikan_base_url, timeout=settings.jikan_timeout_seconds)
