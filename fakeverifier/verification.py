# fakeverifier/verification.py
"""
Request orchestration for the two verification endpoints.

Both flows gather evidence concurrently (news aggregation plus either video
search or SerpAPI), build the prompt, run the tier's model list with fallback
and parse the free-text answer. Upstream evidence is fail-open; LLM failures
propagate as `LLMError` subclasses for the HTTP layer to map.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .aggregator import aggregate_news, search_news_videos
from .extract import extract_from_url, extract_urls
from .llm import complete_with_fallback
from .model_selection import SEARCH_MODELS, ModelUsageTracker, Tier, get_model_config
from .models import AnalysisResponse, StructuredData, VerifyResult
from .parser import extract_sources, parse_structured
from .prompts import analysis_system_prompt, analysis_user_prompt, verify_system_prompt
from .scoring import extract_keywords, is_real_time_news
from .serpapi import perform_news_search

logger = logging.getLogger(__name__)

ANALYSIS_NEWS_LIMIT = 10
VERIFY_NEWS_LIMIT = 3
MAX_VIDEOS = 3
VERIFY_DEFAULT_CONFIDENCE = 50


def _has_search_model(tier: Tier) -> bool:
    return any(m in SEARCH_MODELS for m in get_model_config(tier)["models"]["search"])


def analyze_content(content: str, content_type: str = "news", tier: Tier = Tier.FREE,
                    tracker: Optional[ModelUsageTracker] = None) -> AnalysisResponse:
    tier = Tier(tier)
    urls = extract_urls(content)
    url_content = extract_from_url(urls[0]) if urls else None

    keywords = extract_keywords(content)
    with ThreadPoolExecutor(max_workers=2) as executor:
        news_future = executor.submit(aggregate_news, content, keywords, ANALYSIS_NEWS_LIMIT)
        videos_future = executor.submit(search_news_videos, keywords, content)
        aggregate = news_future.result()
        videos = videos_future.result()

    is_real_time = is_real_time_news(content, aggregate.all_raw())
    use_case = "search" if is_real_time else "analysis"
    # without a search-capable model the provided news context is the only evidence
    searches_itself = is_real_time and _has_search_model(tier)
    logger.info("Analyzing %s content (tier=%s, real_time=%s, keywords=%s)",
                content_type, tier.value, is_real_time, keywords)

    messages = [
        {"role": "system", "content": analysis_system_prompt(searches_itself)},
        {"role": "user", "content": analysis_user_prompt(
            content, content_type, searches_itself, urls, url_content, aggregate, videos,
        )},
    ]
    completion = complete_with_fallback(tier, use_case, messages, tracker=tracker)

    parsed = parse_structured(completion.text)
    sources = extract_sources(completion.text) + [
        f"{a.source}: {a.title}" for a in aggregate.articles[:ANALYSIS_NEWS_LIMIT]
    ]

    return AnalysisResponse(
        analysis=completion.text,
        model=completion.model,
        isRealTimeNews=is_real_time,
        timestamp=datetime.now(timezone.utc).isoformat(),
        newsData=aggregate.articles,
        videoData=videos[:MAX_VIDEOS],
        urlsAnalyzed=urls,
        structuredData=StructuredData(
            **parsed.model_dump(exclude={"explanation"}),
            explanation=parsed.explanation or completion.text.strip(),
            sources=sources,
        ),
        fallbackMessage=completion.fallback_message,
    )


def verify_input(text: str, tier: Tier = Tier.FREE,
                 tracker: Optional[ModelUsageTracker] = None) -> VerifyResult:
    tier = Tier(tier)
    keywords = extract_keywords(text)
    with ThreadPoolExecutor(max_workers=2) as executor:
        news_future = executor.submit(aggregate_news, text, keywords, VERIFY_NEWS_LIMIT)
        search_future = executor.submit(perform_news_search, text)
        aggregate = news_future.result()
        search = search_future.result()

    messages = [
        {"role": "system", "content": verify_system_prompt(search, aggregate.articles)},
        {"role": "user", "content": f'Verify this news content:\n\n"{text}"'},
    ]
    completion = complete_with_fallback(tier, "default", messages, tracker=tracker)
    parsed = parse_structured(completion.text, default_confidence=VERIFY_DEFAULT_CONFIDENCE)

    sources_checked: List[str] = [f"{s.title} ({s.url})" for s in search.sources]
    sources_checked += [f"{a.source}: {a.title}" for a in aggregate.articles[:VERIFY_NEWS_LIMIT]]

    return VerifyResult(
        verdict=parsed.verdict,
        confidence=parsed.confidence,
        sourcesChecked=sources_checked,
        explanation=parsed.explanation or completion.text.strip(),
        userTier=tier.value,
        model=completion.model,
        serpApiData=search,
        newsData=aggregate.articles,
        fallbackMessage=completion.fallback_message,
    )


def history_record(text: str, result: VerifyResult) -> Dict[str, Any]:
    return {
        "input": text,
        "verdict": result.verdict,
        "confidence": result.confidence,
        "explanation": result.explanation,
        "sources_checked": result.sourcesChecked,
        "model": result.model,
        "user_tier": result.userTier,
    }
