# fakeverifier/prompts.py
from typing import List, Optional

from .aggregator import NewsAggregate
from .models import NewsArticle, SearchResult, VideoResult

VERDICT_CATEGORIES = """\
   - "Real": clear, verifiable evidence from reliable sources (also for basic facts such as current office holders)
   - "Likely Real": strong evidence, some uncertainty remains
   - "Likely Fake": strong evidence that the claim is false or misleading
   - "Fake": clear evidence that the claim is false
   - "Questionable": genuinely controversial, insufficient evidence or mixed signals
   - "AI-Generated": the content appears to be artificially generated"""

RESPONSE_FORMAT = """\
Always answer in this structure, one header per line:
VERDICT: [Real/Likely Real/Likely Fake/Fake/Questionable/AI-Generated]
CONFIDENCE: [0-100]%
EXPLANATION: [Detailed reasoning. You may use **bold** for key terms, but never wrap the verdict line in ** symbols.]
REAL-TIME SOURCES:
- [source or verification method]
RED FLAGS:
- [suspicious element]
RECOMMENDATIONS:
- [suggestion for further verification]
CURRENT CONTEXT:
- [recent development related to the topic]
AI-DETECTION:
- [observation on whether the content appears AI-generated]"""

AI_DETECTION_HINTS = """\
AI-generated content detection:
- repetitive language patterns and template-like phrasing
- lack of natural conversational flow or unusual sentence structures
- inconsistent factual details"""


def analysis_system_prompt(is_real_time: bool) -> str:
    if is_real_time:
        capability = ("You have access to real-time search capabilities and can search for current "
                      "information to verify claims.")
    else:
        capability = ("You will analyze content using the news data provided from NewsAPI, NewsAPI.ai, "
                      "Finlight and The New York Times.")
    return f"""You are an AI assistant specialized in news verification and content credibility assessment. {capability}

Be accurate and evidence-based. Classify content as "Real" when reliable sources clearly support it and be direct about basic factual claims. Use "Questionable" only for genuine uncertainty or controversy; do not assume content is fake without evidence.

Use ONLY these verdict categories:
{VERDICT_CATEGORIES}

Analysis guidelines:
- cross-reference the claims against current news from several sources
- check for sensationalist language, clickbait and emotional manipulation
- look for logical inconsistencies, factual errors and signs of bias
- require multiple independent sources for personal claims about public figures
- choose only sources that directly relate to the content; never pad with generic source lists
- analyze the URL content when it is provided

{AI_DETECTION_HINTS}

{RESPONSE_FORMAT}"""


def _article_lines(articles: List[NewsArticle]) -> str:
    return "\n".join(
        f"{i}. {a.title} ({a.source}) - {a.publishedAt or 'unknown date'} [{a.api}]"
        for i, a in enumerate(articles, 1)
    )


def _video_lines(videos: List[VideoResult]) -> str:
    return "\n".join(
        f"{i}. {v.title} ({v.channelTitle}) - {v.publishedAt or 'unknown date'}"
        for i, v in enumerate(videos, 1)
    )


def news_context(aggregate: Optional[NewsAggregate], videos: List[VideoResult]) -> str:
    parts: List[str] = []
    if aggregate is not None and aggregate.articles:
        parts.append("Current news context (ranked by relevance):\n" + _article_lines(aggregate.articles))

    found = [v for v in videos if not v.synthetic]
    curated = [v for v in videos if v.synthetic]
    if found:
        parts.append("Relevant news videos found:\n" + _video_lines(found))
    if curated:
        # outlet landing pages, not evidence about this claim
        parts.append("Curated outlet pages (not search results, do not cite as evidence):\n"
                     + _video_lines(curated))
    return "\n\n".join(parts)


def analysis_user_prompt(content: str, content_type: str, is_real_time: bool,
                         urls: List[str], url_content: Optional[dict],
                         aggregate: Optional[NewsAggregate], videos: List[VideoResult]) -> str:
    prompt = (
        f"Analyze and verify this {content_type} content for credibility and authenticity using "
        + ("real-time search capabilities and current news data" if is_real_time
           else "the news data provided below")
        + ". Also detect whether the content appears to be AI-generated:\n\n"
        + f'"{content}"'
    )

    if urls:
        prompt += "\n\nURLs found in the content:\n" + "\n".join(f"- {u}" for u in urls)
    if url_content:
        prompt += (f"\n\nContent of {url_content.get('url')} "
                   f"(title: {url_content.get('title') or 'unknown'}):\n{url_content.get('text', '')}")

    if is_real_time:
        prompt += ("\n\nSearch for current news related to this content and use the most relevant, "
                   "credible results you find.")
    else:
        prompt += ("\n\nSelect only the most relevant and credible sources from the news data provided.")
        context = news_context(aggregate, videos)
        if context:
            prompt += "\n\n" + context

    return prompt + "\n\nFollow the structured format exactly."


def verify_system_prompt(search_result: SearchResult, articles: List[NewsArticle]) -> str:
    base = "You are an AI assistant specialized in news verification and content credibility assessment."
    evidence: List[str] = []
    if search_result.searchPerformed and search_result.sources:
        evidence.append("Web search results:\n" + "\n".join(
            f"{i}. {s.title} ({s.url})" for i, s in enumerate(search_result.sources, 1)
        ))
    if articles:
        evidence.append("Related news coverage:\n" + _article_lines(articles))

    if evidence:
        context = ("You have the following sources for additional context:\n\n"
                   + "\n\n".join(evidence)
                   + "\n\nUse them for evidence-based verification and cite them when making claims.")
    else:
        context = ("You are analyzing content without access to web search results. "
                   "Give your best assessment based on the content provided.")

    return f"""{base}

{context}

Use ONLY these verdict categories:
{VERDICT_CATEGORIES}

{RESPONSE_FORMAT}

If you cannot determine the truth with confidence, use "Questionable"."""
