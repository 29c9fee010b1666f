"""
Keyword extraction and the heuristic relevance scores used to rank
aggregated news and video results.

The scores are ad hoc (keyword hits, recency, source-name length); they only
order and truncate results and are not probabilities.
"""
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

STOP_WORDS = set("""
the a an and or but in on at to for of with by is are was were be been have has had do does did
will would could should may might can this that these those i you he she it we they me him her us them
""".split())

MAX_KEYWORDS = 5

REAL_TIME_KEYWORDS = [
    "breaking", "just in", "latest", "recently", "today", "yesterday", "this week",
    "breaking news", "live", "developing", "update", "announcement", "statement",
]
TIME_SENSITIVE_PATTERNS = [
    re.compile(r"\b(today|yesterday|this week|this month)\b", re.I),
    re.compile(r"\b(breaking|live|developing|just in)\b", re.I),
    re.compile(r"\b(announcement|statement|press release)\b", re.I),
    re.compile(r"\b(election|vote|result|outcome)\b", re.I),
    re.compile(r"\b(crisis|emergency|disaster)\b", re.I),
]

NEWS_CHANNELS = [
    "cnn", "bbc", "fox news", "msnbc", "abc news", "cbs news", "nbc news",
    "reuters", "associated press", "bloomberg",
]
PLATFORM_BONUS = {
    "News Site": 20,
    "NewsAPI.ai": 15,
    "Finlight": 15,
    "The New York Times": 25,
    "YouTube": 10,
}

DATE_FIELDS = ("publishedAt", "dateTime", "published_date", "date", "pub_date")


def _clamp(score: int) -> int:
    return max(0, min(100, score))


def extract_keywords(content: str) -> List[str]:
    """First five unique lowercase tokens longer than 3 chars, stopwords removed."""
    words = re.sub(r"[^\w\s]", "", (content or "").lower()).split()
    keywords: List[str] = []
    for w in words:
        if len(w) > 3 and w not in STOP_WORDS and w not in keywords:
            keywords.append(w)
        if len(keywords) >= MAX_KEYWORDS:
            break
    return keywords


_COMPACT_OFFSET_RE = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        # "+0000" offsets need a colon before Python 3.11
        raw = _COMPACT_OFFSET_RE.sub(r"\1:\2", raw)
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _article_date(article: Mapping[str, Any]) -> Optional[datetime]:
    for field in DATE_FIELDS:
        dt = parse_date(article.get(field))
        if dt is not None:
            return dt
    return None


def _within(dt: Optional[datetime], days: float, now: datetime) -> bool:
    return dt is not None and now - dt <= timedelta(days=days)


def _source_name(source: Any) -> str:
    # News API nests the source as {"id", "name"}; NewsAPI.ai as {"title", "uri"}
    if isinstance(source, dict):
        source = source.get("name") or source.get("title") or ""
    return str(source or "")


def calculate_relevance(article: Mapping[str, Any], content: str, keywords: Iterable[str],
                        now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    content_lower = (content or "").lower()
    article_text = " ".join(
        str(article.get(k) or "") for k in ("title", "description", "body")
    ).lower()

    score = 0
    for kw in keywords:
        kw = kw.lower()
        if kw in article_text:
            score += 10
        if kw in content_lower:
            score += 5

    for word in content_lower.split():
        if len(word) > 3 and word in article_text:
            score += 2

    if _within(_article_date(article), 7, now):
        score += 5

    if len(_source_name(article.get("source"))) > 10:
        score += 2

    return _clamp(score)


def calculate_video_relevance(video: Mapping[str, Any], content: str, keywords: Iterable[str],
                              now: Optional[datetime] = None) -> int:
    now = now or datetime.now(timezone.utc)
    content_lower = (content or "").lower()
    video_text = f"{video.get('title') or ''} {video.get('description') or ''}".lower()

    score = 0
    for kw in keywords:
        kw = kw.lower()
        if kw in video_text:
            score += 15
        if kw in content_lower:
            score += 8

    if _within(parse_date(video.get("publishedAt")), 30, now):
        score += 10

    channel = video.get("channelTitle")
    if isinstance(channel, str) and any(c in channel.lower() for c in NEWS_CHANNELS):
        score += 20

    score += PLATFORM_BONUS.get(video.get("platform") or video.get("source"), 0)
    return _clamp(score)


def is_real_time_news(content: str, articles: Iterable[Dict[str, Any]],
                      now: Optional[datetime] = None) -> bool:
    """Breaking-news wording in the content, or fresh (<24h) coverage upstream."""
    now = now or datetime.now(timezone.utc)
    content_lower = (content or "").lower()

    if any(k in content_lower for k in REAL_TIME_KEYWORDS):
        return True
    if any(_within(_article_date(a), 1, now) for a in articles):
        return True
    return any(p.search(content or "") for p in TIME_SENSITIVE_PATTERNS)
