# fakeverifier/llm.py
"""
Chat-completion calls against OpenAI (paid tier) or OpenRouter (free tier),
with per-model retries and fallback to the next model on 429.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import requests

from .config import settings
from .errors import FetchTimeoutError, LLMAuthError, LLMError, LLMRateLimitError, LLMResponseError, LLMTimeoutError
from .fetch import error_status, fetch_with_timeout, retry_with_backoff
from .model_selection import (
    ModelUsageTracker,
    Tier,
    get_model_config,
    get_model_for_use_case,
    get_model_params,
    get_rate_limit_message,
    get_upgrade_suggestion,
    mark_model_rate_limited,
    mark_model_used,
)

logger = logging.getLogger(__name__)

# 429 is handled by switching models rather than by waiting on the same one.
LLM_NON_RETRYABLE = (400, 401, 403, 429)


@dataclass
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class Completion:
    text: str
    model: str
    fallback_message: Optional[str] = None


def provider_for_tier(tier: Tier) -> ProviderConfig:
    provider = get_model_config(tier)["provider"]
    if provider == "openrouter":
        if not settings.OPENROUTER_API_KEY:
            raise LLMAuthError("OPENROUTER_API_KEY is required for free tier users")
        return ProviderConfig(
            name="openrouter",
            base_url=settings.OPENROUTER_BASE_URL,
            api_key=settings.OPENROUTER_API_KEY,
            headers={"HTTP-Referer": settings.APP_URL, "X-Title": "FakeVerifier"},
        )
    if not settings.OPENAI_API_KEY:
        raise LLMAuthError("OPENAI_API_KEY is required for paid tier users")
    return ProviderConfig(name="openai", base_url=settings.OPENAI_BASE_URL, api_key=settings.OPENAI_API_KEY)


def chat_completion(provider: ProviderConfig, model: str, messages: List[Dict[str, str]],
                    max_tokens: int = 2000, temperature: Optional[float] = None,
                    timeout: Optional[float] = None) -> str:
    payload = {"model": model, "messages": messages, "max_tokens": max_tokens}
    if temperature is not None:
        payload["temperature"] = temperature
    headers = {
        "Authorization": f"Bearer {provider.api_key}",
        "Content-Type": "application/json",
        **provider.headers,
    }
    timeout = timeout or settings.LLM_TIMEOUT_SECONDS
    try:
        resp = fetch_with_timeout(
            "POST", f"{provider.base_url.rstrip('/')}/chat/completions",
            timeout=timeout, headers=headers, json=payload,
        )
    except FetchTimeoutError as e:
        raise LLMTimeoutError(f"{provider.name}/{model} timed out after {timeout:g}s") from e
    resp.raise_for_status()

    data = resp.json()
    choices = data.get("choices") or []
    if not choices:
        raise LLMResponseError("No response from AI model")
    content = (choices[0].get("message") or {}).get("content")
    if not content or not content.strip():
        raise LLMResponseError("No response from AI model")
    if choices[0].get("finish_reason") == "length":
        logger.warning("%s/%s hit max tokens (%d)", provider.name, model, max_tokens)
    return content


def complete_with_fallback(tier: Tier, use_case: str, messages: List[Dict[str, str]],
                           tracker: Optional[ModelUsageTracker] = None,
                           sleep: Callable[[float], None] = time.sleep) -> Completion:
    """
    Try the tier's models in order. Each model gets LLM_MAX_RETRIES retries
    with backoff for transient failures; a 429 marks it rate limited and moves
    on to the next one. Raises LLMRateLimitError once the tier is exhausted.
    """
    tier = Tier(tier)
    provider = provider_for_tier(tier)
    attempted: List[str] = []

    while True:
        choice = get_model_for_use_case(tier, use_case, attempted, tracker=tracker)
        if choice.exhausted:
            break
        model = choice.model
        if choice.is_fallback:
            logger.info(choice.message)

        params = get_model_params(tier, model)
        try:
            text = retry_with_backoff(
                lambda: chat_completion(provider, model, messages, **params),
                max_retries=settings.LLM_MAX_RETRIES,
                base_delay=settings.RETRY_BASE_DELAY,
                max_delay=settings.RETRY_MAX_DELAY,
                non_retryable=LLM_NON_RETRYABLE,
                sleep=sleep,
                label=f"{provider.name}/{model}",
            )
        except LLMError:
            raise
        except requests.RequestException as e:
            status = error_status(e)
            if status == 429:
                mark_model_rate_limited(tier, model, tracker=tracker)
                attempted.append(model)
                continue
            if status in (401, 403):
                raise LLMAuthError(f"{provider.name} rejected the API key (HTTP {status})", status=status) from e
            raise LLMError(f"{provider.name}/{model} request failed: {e}") from e

        mark_model_used(tier, model, tracker=tracker)
        return Completion(text=text, model=model, fallback_message=choice.message if choice.is_fallback else None)

    last_model = attempted[-1] if attempted else choice.model
    raise LLMRateLimitError(
        get_rate_limit_message(tier, last_model),
        retry_after=60,
        upgrade_suggestion=get_upgrade_suggestion() if tier == Tier.FREE else None,
    )
