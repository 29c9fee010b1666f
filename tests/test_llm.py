from unittest.mock import patch

import pytest
import requests

from fakeverifier.config import settings
from fakeverifier.errors import FetchTimeoutError, LLMAuthError, LLMRateLimitError, LLMTimeoutError
from fakeverifier.llm import complete_with_fallback, provider_for_tier
from fakeverifier.model_selection import MODEL_CONFIG, ModelUsageTracker, Tier

MESSAGES = [{"role": "user", "content": "Is the sky green?"}]


def _completion(text):
    return {"choices": [{"message": {"content": text}, "finish_reason": "stop"}]}


def _http_error(make_response, status):
    resp = make_response(status)
    resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}", response=_status_only(status))
    return resp


def _status_only(status):
    resp = requests.Response()
    resp.status_code = status
    return resp


@pytest.fixture
def keys(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", "or-test")
    monkeypatch.setattr(settings, "LLM_MAX_RETRIES", 2)


def _posted_models(fetch):
    return [c.kwargs["json"]["model"] for c in fetch.call_args_list]


def test_missing_key_is_an_auth_error(monkeypatch):
    monkeypatch.setattr(settings, "OPENROUTER_API_KEY", None)
    with pytest.raises(LLMAuthError):
        provider_for_tier(Tier.FREE)


def test_free_tier_uses_openrouter_headers(keys):
    provider = provider_for_tier(Tier.FREE)
    assert provider.name == "openrouter"
    assert "HTTP-Referer" in provider.headers


def test_success_on_primary_model(keys, make_response):
    tracker = ModelUsageTracker()
    with patch("fakeverifier.llm.fetch_with_timeout",
               return_value=make_response(200, _completion("VERDICT: Real"))) as fetch:
        result = complete_with_fallback(Tier.PAID, "analysis", MESSAGES, tracker=tracker, sleep=lambda _: None)

    assert result.text == "VERDICT: Real"
    assert result.model == "gpt-4o"
    assert result.fallback_message is None
    headers = fetch.call_args.kwargs["headers"]
    assert headers["Authorization"] == "Bearer sk-test"


def test_429_falls_back_to_next_model(keys, make_response):
    tracker = ModelUsageTracker()
    responses = [_http_error(make_response, 429), make_response(200, _completion("VERDICT: Fake"))]
    with patch("fakeverifier.llm.fetch_with_timeout", side_effect=responses) as fetch:
        result = complete_with_fallback(Tier.PAID, "search", MESSAGES, tracker=tracker, sleep=lambda _: None)

    assert _posted_models(fetch) == ["gpt-4o-search-preview", "gpt-4o"]
    assert result.model == "gpt-4o"
    assert result.fallback_message == "Switched to fallback model: gpt-4o"
    assert not tracker.is_available(Tier.PAID, "gpt-4o-search-preview")


def test_exhausted_free_tier_raises_rate_limit_with_upgrade(keys, make_response):
    tracker = ModelUsageTracker()
    models = MODEL_CONFIG[Tier.FREE]["models"]["analysis"]
    with patch("fakeverifier.llm.fetch_with_timeout",
               side_effect=lambda *a, **kw: _http_error(make_response, 429)) as fetch:
        with pytest.raises(LLMRateLimitError) as exc_info:
            complete_with_fallback(Tier.FREE, "analysis", MESSAGES, tracker=tracker, sleep=lambda _: None)

    # one attempt per model, no retries on 429
    assert _posted_models(fetch) == models
    assert exc_info.value.retry_after == 60
    assert exc_info.value.upgrade_suggestion


def test_transient_errors_are_retried_on_same_model(keys, make_response):
    tracker = ModelUsageTracker()
    responses = [
        _http_error(make_response, 503),
        _http_error(make_response, 502),
        make_response(200, _completion("VERDICT: Questionable")),
    ]
    with patch("fakeverifier.llm.fetch_with_timeout", side_effect=responses) as fetch:
        result = complete_with_fallback(Tier.PAID, "analysis", MESSAGES, tracker=tracker, sleep=lambda _: None)

    assert _posted_models(fetch) == ["gpt-4o", "gpt-4o", "gpt-4o"]
    assert result.text == "VERDICT: Questionable"


def test_rejected_key_is_not_retried(keys, make_response):
    with patch("fakeverifier.llm.fetch_with_timeout",
               return_value=_http_error(make_response, 401)) as fetch:
        with pytest.raises(LLMAuthError):
            complete_with_fallback(Tier.PAID, "analysis", MESSAGES, tracker=ModelUsageTracker(),
                                   sleep=lambda _: None)
    assert fetch.call_count == 1


def test_timeout_surfaces_as_llm_timeout(keys):
    with patch("fakeverifier.llm.fetch_with_timeout",
               side_effect=FetchTimeoutError("https://api.openai.com/v1/chat/completions", 60)) as fetch:
        with pytest.raises(LLMTimeoutError):
            complete_with_fallback(Tier.PAID, "analysis", MESSAGES, tracker=ModelUsageTracker(),
                                   sleep=lambda _: None)
    assert fetch.call_count == settings.LLM_MAX_RETRIES + 1
