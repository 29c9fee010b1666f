# fakeverifier/serpapi.py
import logging
import re
import threading
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from .config import settings
from .errors import FetchTimeoutError, UpstreamHTTPError
from .fetch import fetch_with_timeout
from .models import SearchResult, SearchSource, SearchStatus
from .scoring import extract_keywords

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
MAX_SOURCES = 5

STATUS_MESSAGES = {
    "news_search_disabled": "Using AI-only mode (search disabled)",
    "serpapi_key_missing": "Using AI-only mode (search key missing)",
    "no_keywords_found": "Using AI-only mode (insufficient keywords)",
    "serpapi_error": "Using AI-only mode (search unavailable)",
    "quota_exceeded": "Using AI-only mode (search quota reached)",
}


class QuotaExceededError(Exception):
    pass


def _next_month_start(today: date) -> date:
    if today.month == 12:
        return date(today.year + 1, 1, 1)
    return date(today.year, today.month + 1, 1)


class SerpApiManager:
    """SerpAPI client with a process-wide monthly search quota."""

    def __init__(self, api_key: Optional[str] = None, monthly_limit: Optional[int] = None):
        self.api_key = api_key if api_key is not None else settings.SERPAPI_KEY
        self.limit = monthly_limit if monthly_limit is not None else settings.SERPAPI_MONTHLY_LIMIT
        self.used = 0
        self.reset_date = _next_month_start(date.today())
        self._lock = threading.Lock()

    def _roll_window(self, today: Optional[date] = None) -> None:
        today = today or date.today()
        if today >= self.reset_date:
            self.used = 0
            self.reset_date = _next_month_start(today)

    def _reserve(self) -> None:
        with self._lock:
            self._roll_window()
            if self.used >= self.limit:
                raise QuotaExceededError(
                    f"Search quota exceeded. Used: {self.used}/{self.limit}. Resets: {self.reset_date.isoformat()}"
                )
            self.used += 1

    def quota_status(self) -> Dict[str, Any]:
        with self._lock:
            self._roll_window()
            return {
                "used": self.used,
                "limit": self.limit,
                "remaining": max(0, self.limit - self.used),
                "resetDate": self.reset_date.isoformat(),
            }

    def news_search(self, query: str, num: int = 10, gl: str = "uk", hl: str = "en") -> Dict[str, Any]:
        if not self.api_key:
            raise ValueError("SERPAPI_KEY not configured")
        self._reserve()
        resp = fetch_with_timeout("GET", SERPAPI_URL, params={
            "engine": "google",
            "q": query,
            "tbm": "nws",
            "num": num,
            "gl": gl,
            "hl": hl,
            "api_key": self.api_key,
        })
        if not resp.ok:
            raise UpstreamHTTPError("SerpAPI", resp.status_code, resp.text)
        return resp.json()


serpapi_manager = SerpApiManager()


def generate_search_queries(content: str) -> List[str]:
    """Up to three fact-check queries: quoted sentences, then name pairs, then keywords."""
    queries: List[str] = []

    sentences = [s.strip() for s in re.split(r"[.!?]+", content or "") if len(s.strip()) > 10]
    for sentence in sentences[:3]:
        if 20 < len(sentence) < 200:
            queries.append(f'"{sentence}" fact check')

    for name in re.findall(r"\b[A-Z][a-z]+ [A-Z][a-z]+\b", content or "")[:2]:
        queries.append(f"{name} news fact check")

    if not queries:
        words = [w for w in (content or "").split() if len(w) > 4][:3]
        if words:
            queries.append(f"{' '.join(words)} fact check news")

    return queries[:3]


def _to_source(item: Dict[str, Any]) -> SearchSource:
    source = item.get("source")
    if isinstance(source, dict):
        source = source.get("name")
    return SearchSource(
        title=item.get("title") or "Unknown",
        url=item.get("link") or "#",
        snippet=item.get("snippet") or "",
        publishedAt=item.get("date") or "",
        source=source or "Unknown",
    )


def search_status(result: SearchResult) -> SearchStatus:
    if result.searchPerformed:
        return SearchStatus(mode="ai-plus-web", message="AI + Web evidence")
    return SearchStatus(mode="ai-only", message=STATUS_MESSAGES.get(result.reason or "", "Using AI-only mode"))


def _finish(result: SearchResult) -> SearchResult:
    result.status = search_status(result)
    return result


def perform_news_search(content: str, manager: Optional[SerpApiManager] = None) -> SearchResult:
    """Web evidence for a claim, degrading to an explained empty result."""
    manager = manager or serpapi_manager

    if not settings.NEWS_SEARCH_ENABLED:
        return _finish(SearchResult(searchPerformed=False, reason="news_search_disabled"))
    if not manager.api_key:
        return _finish(SearchResult(searchPerformed=False, reason="serpapi_key_missing"))

    queries = generate_search_queries(content)
    if not extract_keywords(content) or not queries:
        return _finish(SearchResult(searchPerformed=False, reason="no_keywords_found"))

    try:
        data = manager.news_search(queries[0])
    except QuotaExceededError as e:
        logger.warning("SerpAPI quota reached: %s", e)
        return _finish(SearchResult(searchPerformed=False, reason="quota_exceeded", error=str(e)))
    except (UpstreamHTTPError, FetchTimeoutError, requests.RequestException, ValueError) as e:
        logger.warning("SerpAPI search failed: %s", e)
        return _finish(SearchResult(searchPerformed=False, reason="serpapi_error", error=str(e)))

    items = data.get("news_results") or data.get("organic_results") or []
    sources = [_to_source(i) for i in items[:MAX_SOURCES] if isinstance(i, dict)]
    return _finish(SearchResult(searchPerformed=True, sources=sources))
