# fakeverifier/aggregator.py
import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from .config import settings
from .models import NewsArticle, VideoResult
from .news_sources import (
    NORMALIZERS,
    VIDEO_NEWS_DOMAINS,
    fetch_finlight,
    fetch_newsapi,
    fetch_newsapi_ai,
    fetch_nyt_top_stories,
    fetch_nyt_video_search,
    fetch_youtube_videos,
    filter_by_keywords,
)
from .scoring import calculate_video_relevance

logger = logging.getLogger(__name__)

VIDEO_URL_MARKERS = ("video", "watch", "media")


@dataclass
class NewsAggregate:
    keywords: List[str]
    articles: List[NewsArticle] = field(default_factory=list)
    # provider name -> raw upstream dicts, kept for prompt context
    raw: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    def all_raw(self) -> List[Dict[str, Any]]:
        return [a for items in self.raw.values() for a in items]


def gather_fail_open(calls: Dict[str, Callable[[], List[Any]]]) -> Dict[str, List[Any]]:
    """Run independent upstream calls concurrently.

    Every name in `calls` is present in the result; a call that raised maps
    to an empty list.
    """
    results: Dict[str, List[Any]] = {name: [] for name in calls}
    if not calls:
        return results

    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = {executor.submit(fn): name for name, fn in calls.items()}
        for fut in as_completed(futures):
            name = futures[fut]
            try:
                results[name] = list(fut.result() or [])
            except Exception as e:
                logger.warning("%s lookup failed, continuing without it: %s", name, e)
    return results


def aggregate_news(content: str, keywords: List[str], limit: int = 10,
                   now: Optional[datetime] = None) -> NewsAggregate:
    if not keywords:
        return NewsAggregate(keywords=[])

    query = " ".join(keywords)
    raw = gather_fail_open({
        "newsapi": lambda: fetch_newsapi(query),
        "newsapi_ai": lambda: fetch_newsapi_ai(query),
        "finlight": lambda: fetch_finlight(query),
        "nyt": lambda: filter_by_keywords(fetch_nyt_top_stories(), keywords),
    })

    articles: List[NewsArticle] = []
    for provider, items in raw.items():
        normalize = NORMALIZERS[provider]
        for item in items:
            try:
                articles.append(normalize(item, content, keywords, now=now))
            except (ValidationError, AttributeError, TypeError) as e:
                logger.debug("Dropping malformed %s article: %s", provider, e)

    articles.sort(key=lambda a: a.relevance, reverse=True)
    return NewsAggregate(keywords=keywords, articles=articles[:limit], raw=raw)


# --- Videos ---

def _looks_like_video(url: Optional[str]) -> bool:
    return bool(url) and any(m in url for m in VIDEO_URL_MARKERS)


def _video_id(url: str) -> str:
    return url.rstrip("/").split("/")[-1] or url


def _absolute_nyt(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    if path.startswith("http"):
        return path
    return f"https://www.nytimes.com/{path.lstrip('/')}"


def _newsapi_video(a: Dict[str, Any]) -> Dict[str, Any]:
    source = (a.get("source") or {}).get("name") or "News Source"
    return {
        "id": _video_id(a["url"]),
        "title": a.get("title") or "",
        "description": a.get("description"),
        "thumbnail": a.get("urlToImage"),
        "channelTitle": source,
        "publishedAt": a.get("publishedAt"),
        "url": a["url"],
        "embedUrl": a["url"],
        "source": source,
        "platform": "News Site",
    }


def _newsapi_ai_video(a: Dict[str, Any]) -> Dict[str, Any]:
    source = (a.get("source") or {}).get("title")
    return {
        "id": _video_id(a["url"]),
        "title": a.get("title") or "",
        "description": a.get("body"),
        "thumbnail": a.get("image"),
        "channelTitle": source or "News Source",
        "publishedAt": a.get("dateTime"),
        "url": a["url"],
        "embedUrl": a["url"],
        "source": source or "NewsAPI.ai",
        "platform": "News Site",
    }


def _finlight_video(a: Dict[str, Any]) -> Dict[str, Any]:
    source = a.get("source") or a.get("publisher")
    url = a.get("url") or a.get("link")
    return {
        "id": _video_id(url),
        "title": a.get("title") or a.get("headline") or "",
        "description": a.get("description") or a.get("summary") or a.get("content"),
        "thumbnail": a.get("image") or a.get("thumbnail"),
        "channelTitle": str(source or "News Source"),
        "publishedAt": a.get("publishedAt") or a.get("date") or a.get("published_date"),
        "url": url,
        "embedUrl": url,
        "source": str(source or "Finlight"),
        "platform": "News Site",
    }


def _nyt_video(doc: Dict[str, Any]) -> Dict[str, Any]:
    headline = doc.get("headline") or {}
    multimedia = doc.get("multimedia") or []
    thumb = multimedia[0].get("url") if multimedia and isinstance(multimedia[0], dict) else None
    url = _absolute_nyt(doc.get("web_url"))
    return {
        "id": doc.get("_id") or url or "",
        "title": headline.get("main") or headline.get("print_headline") or "NYT Video",
        "description": doc.get("abstract") or doc.get("lead_paragraph"),
        "thumbnail": _absolute_nyt(thumb),
        "channelTitle": "The New York Times",
        "publishedAt": doc.get("pub_date"),
        "url": url,
        "embedUrl": url,
        "source": "The New York Times",
        "platform": "News Site",
    }


def _youtube_video(item: Dict[str, Any]) -> Dict[str, Any]:
    video_id = (item.get("id") or {}).get("videoId")
    snippet = item.get("snippet") or {}
    thumbs = snippet.get("thumbnails") or {}
    thumb = (thumbs.get("medium") or thumbs.get("default") or {}).get("url")
    return {
        "id": video_id,
        "title": snippet.get("title") or "",
        "description": snippet.get("description"),
        "thumbnail": thumb,
        "channelTitle": snippet.get("channelTitle") or "YouTube",
        "publishedAt": snippet.get("publishedAt"),
        "url": f"https://www.youtube.com/watch?v={video_id}",
        "embedUrl": f"https://www.youtube.com/embed/{video_id}",
        "source": "YouTube",
        "platform": "YouTube",
    }


# topic -> (trigger pattern, curated outlet pages)
CURATED_VIDEOS = {
    "political": (
        re.compile(r"\b(trump|biden|election|president|congress|senate|democrat|republican)", re.I),
        [
            ("cnn-political-1", "CNN Political Coverage", "Political developments and analysis from CNN",
             "CNN", "https://www.cnn.com/politics", 90),
            ("bbc-political-1", "BBC Political News", "Political news from BBC",
             "BBC News", "https://www.bbc.com/news/politics", 88),
        ],
    ),
    "tech": (
        re.compile(r"\b(ai|artificial intelligence|technology|tech|software|app|digital)\b", re.I),
        [
            ("reuters-tech-1", "Reuters Technology", "Technology coverage from Reuters",
             "Reuters", "https://www.reuters.com/technology", 85),
            ("bloomberg-tech-1", "Bloomberg Technology", "Technology news and analysis from Bloomberg",
             "Bloomberg", "https://www.bloomberg.com/technology", 82),
        ],
    ),
    "business": (
        re.compile(r"\b(stock|market|economy|business|finance|investment|company)", re.I),
        [
            ("cnbc-business-1", "CNBC Markets", "Financial markets coverage from CNBC",
             "CNBC", "https://www.cnbc.com/markets", 88),
            ("wsj-business-1", "Wall Street Journal Business", "Business coverage from WSJ",
             "Wall Street Journal", "https://www.wsj.com/news/business", 85),
        ],
    ),
}


def curated_news_videos(content: str) -> List[VideoResult]:
    """Outlet section pages matched by topic.

    These were not retrieved by any search; they are marked synthetic and the
    fixed relevance only orders them among themselves.
    """
    videos = []
    for pattern, entries in CURATED_VIDEOS.values():
        if not pattern.search(content or ""):
            continue
        for vid, title, description, outlet, url, relevance in entries:
            videos.append(VideoResult(
                id=vid, title=title, description=description,
                channelTitle=outlet, url=url, embedUrl=url, source=outlet,
                platform="News Site", relevance=relevance, synthetic=True,
            ))
    videos.sort(key=lambda v: v.relevance, reverse=True)
    return videos


def search_news_videos(keywords: List[str], content: str, limit: int = 5,
                       now: Optional[datetime] = None) -> List[VideoResult]:
    query = " ".join(keywords + ["news"])
    raw = {} if not keywords else gather_fail_open({
        "newsapi_videos": lambda: [
            _newsapi_video(a) for a in fetch_newsapi(query, domains=VIDEO_NEWS_DOMAINS)
            if _looks_like_video(a.get("url"))
        ],
        "newsapi_ai_videos": lambda: [
            _newsapi_ai_video(a) for a in fetch_newsapi_ai(query) if _looks_like_video(a.get("url"))
        ],
        "finlight_videos": lambda: [
            _finlight_video(a) for a in fetch_finlight(query)
            if _looks_like_video(a.get("url") or a.get("link"))
        ],
        "nyt_videos": lambda: [_nyt_video(d) for d in fetch_nyt_video_search(query)],
        "youtube": lambda: [
            _youtube_video(i) for i in fetch_youtube_videos(query)
            if (i.get("id") or {}).get("videoId")
        ],
    })

    videos: List[VideoResult] = []
    for provider, items in raw.items():
        for item in items:
            try:
                item["relevance"] = calculate_video_relevance(item, content, keywords, now=now)
                videos.append(VideoResult(**item))
            except (ValidationError, TypeError) as e:
                logger.debug("Dropping malformed %s video: %s", provider, e)

    videos.sort(key=lambda v: v.relevance, reverse=True)
    if not videos and settings.CURATED_VIDEO_FALLBACK:
        logger.info("No videos retrieved, using curated outlet pages")
        videos = curated_news_videos(content)
    return videos[:limit]
