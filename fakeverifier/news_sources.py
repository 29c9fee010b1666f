# fakeverifier/news_sources.py
"""
Thin clients for the upstream news APIs, plus normalizers that map each
provider's schema onto NewsArticle.

Clients raise on failure (UpstreamHTTPError, FetchTimeoutError, requests
errors); deciding to fail open is the aggregator's job. A provider without a
configured key returns an empty list.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .config import settings
from .errors import UpstreamHTTPError
from .fetch import fetch_with_timeout, retry_with_backoff
from .models import NewsArticle
from .scoring import calculate_relevance

logger = logging.getLogger(__name__)

NEWSAPI_URL = "https://newsapi.org/v2/everything"
NEWSAPI_AI_URL = "https://eventregistry.org/api/v1/article/getArticles"
FINLIGHT_URL = "https://api.finlight.me/v2/articles"
NYT_TOP_STORIES_URL = "https://api.nytimes.com/svc/topstories/v2/home.json"
NYT_SEARCH_URL = "https://api.nytimes.com/svc/search/v2/articlesearch.json"
YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"

VIDEO_NEWS_DOMAINS = (
    "cnn.com,bbc.com,foxnews.com,msnbc.com,abcnews.go.com,"
    "cbsnews.com,nbcnews.com,reuters.com,ap.org,bloomberg.com"
)


def _request_json(provider: str, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
    def _once() -> Dict[str, Any]:
        resp = fetch_with_timeout(method, url, **kwargs)
        if not resp.ok:
            raise UpstreamHTTPError(provider, resp.status_code, resp.text)
        return resp.json()

    return retry_with_backoff(
        _once,
        max_retries=settings.HTTP_MAX_RETRIES,
        base_delay=settings.RETRY_BASE_DELAY,
        max_delay=settings.RETRY_MAX_DELAY,
        label=provider,
    )


def _missing_key(provider: str) -> List[Dict[str, Any]]:
    logger.debug("%s API key not configured, skipping", provider)
    return []


# --- Clients ---

def fetch_newsapi(query: str, domains: Optional[str] = None, page_size: int = 10) -> List[Dict[str, Any]]:
    if not settings.NEWS_API_KEY:
        return _missing_key("News API")
    params = {
        "q": query,
        "sortBy": "publishedAt",
        "language": "en",
        "pageSize": page_size,
        "apiKey": settings.NEWS_API_KEY,
    }
    if domains:
        params["domains"] = domains
    data = _request_json("News API", "GET", NEWSAPI_URL, params=params)
    return data.get("articles") or []


def fetch_newsapi_ai(query: str, count: int = 10) -> List[Dict[str, Any]]:
    if not settings.NEWSAPI_AI_KEY:
        return _missing_key("NewsAPI.ai")
    body = {
        "query": query,
        "articlesSortBy": "date",
        "articlesCount": count,
        "articlesArticleBodyLen": -1,
        "articlesIncludeArticleImage": True,
        "articlesIncludeArticleSource": True,
        "articlesIncludeArticleUrl": True,
        "articlesIncludeArticleDate": True,
        "articlesIncludeArticleTitle": True,
        "articlesIncludeArticleDescription": True,
    }
    data = _request_json(
        "NewsAPI.ai", "POST", NEWSAPI_AI_URL,
        json=body,
        headers={"Authorization": f"Bearer {settings.NEWSAPI_AI_KEY}"},
    )
    return (data.get("articles") or {}).get("results") or []


def fetch_finlight(query: str, limit: int = 10) -> List[Dict[str, Any]]:
    if not settings.FINLIGHT_API_KEY:
        return _missing_key("Finlight")
    data = _request_json(
        "Finlight", "POST", FINLIGHT_URL,
        json={"query": query, "limit": limit, "sortBy": "date"},
        headers={"accept": "application/json", "X-API-KEY": settings.FINLIGHT_API_KEY},
    )
    return data.get("articles") or data.get("data") or []


def fetch_nyt_top_stories() -> List[Dict[str, Any]]:
    if not settings.NYT_API_KEY:
        return _missing_key("NYT")
    data = _request_json("NYT", "GET", NYT_TOP_STORIES_URL, params={"api-key": settings.NYT_API_KEY})
    return data.get("results") or []


def fetch_nyt_video_search(query: str) -> List[Dict[str, Any]]:
    if not settings.NYT_API_KEY:
        return _missing_key("NYT")
    data = _request_json(
        "NYT", "GET", NYT_SEARCH_URL,
        params={"q": query, "fq": 'news_desk:("Video")', "api-key": settings.NYT_API_KEY},
    )
    return (data.get("response") or {}).get("docs") or []


def fetch_youtube_videos(query: str, max_results: int = 5) -> List[Dict[str, Any]]:
    if not settings.YOUTUBE_API_KEY:
        return _missing_key("YouTube")
    data = _request_json(
        "YouTube", "GET", YOUTUBE_SEARCH_URL,
        params={
            "part": "snippet",
            "q": query,
            "type": "video",
            "order": "relevance",
            "maxResults": max_results,
            "key": settings.YOUTUBE_API_KEY,
        },
    )
    return data.get("items") or []


# --- Normalizers ---

def filter_by_keywords(articles: Iterable[Dict[str, Any]], keywords: List[str]) -> List[Dict[str, Any]]:
    """NYT top stories are not query-driven; keep those mentioning a keyword."""
    kept = []
    for a in articles:
        text = f"{a.get('title') or ''} {a.get('abstract') or ''}".lower()
        if any(k.lower() in text for k in keywords):
            kept.append(a)
    return kept


def _scored(fields: Dict[str, Any], raw: Dict[str, Any], content: str, keywords: List[str],
            now: Optional[datetime]) -> NewsArticle:
    scoring_view = dict(raw)
    scoring_view.update(fields)
    fields["relevance"] = calculate_relevance(scoring_view, content, keywords, now=now)
    return NewsArticle(**fields)


def normalize_newsapi(raw: Dict[str, Any], content: str, keywords: List[str],
                      now: Optional[datetime] = None) -> NewsArticle:
    source = raw.get("source") or {}
    return _scored({
        "title": raw.get("title") or "",
        "source": (source.get("name") if isinstance(source, dict) else str(source or "")) or "Unknown",
        "url": raw.get("url"),
        "publishedAt": raw.get("publishedAt"),
        "description": raw.get("description"),
        "api": "News API",
    }, raw, content, keywords, now)


def normalize_newsapi_ai(raw: Dict[str, Any], content: str, keywords: List[str],
                         now: Optional[datetime] = None) -> NewsArticle:
    return _scored({
        "title": raw.get("title") or "",
        "source": (raw.get("source") or {}).get("title") or "Unknown",
        "url": raw.get("url"),
        "publishedAt": raw.get("dateTime"),
        "description": raw.get("body"),
        "api": "NewsAPI.ai",
    }, raw, content, keywords, now)


def normalize_finlight(raw: Dict[str, Any], content: str, keywords: List[str],
                       now: Optional[datetime] = None) -> NewsArticle:
    return _scored({
        "title": raw.get("title") or raw.get("headline") or "",
        "source": str(raw.get("source") or raw.get("publisher") or "Unknown"),
        "url": raw.get("url") or raw.get("link"),
        "publishedAt": raw.get("publishedAt") or raw.get("date") or raw.get("published_date"),
        "description": raw.get("description") or raw.get("summary") or raw.get("content"),
        "api": "Finlight",
    }, raw, content, keywords, now)


def normalize_nyt(raw: Dict[str, Any], content: str, keywords: List[str],
                  now: Optional[datetime] = None) -> NewsArticle:
    return _scored({
        "title": raw.get("title") or "",
        "source": "New York Times",
        "url": raw.get("url"),
        "publishedAt": raw.get("published_date"),
        "description": raw.get("abstract"),
        "api": "NYT Top Stories",
    }, raw, content, keywords, now)


NORMALIZERS = {
    "newsapi": normalize_newsapi,
    "newsapi_ai": normalize_newsapi_ai,
    "finlight": normalize_finlight,
    "nyt": normalize_nyt,
}