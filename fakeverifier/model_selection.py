# fakeverifier/model_selection.py
"""
Per-tier model lists and the process-wide rate-limit table used to fall back
from one model to the next when a provider answers 429.

A model is in one of two states: available, or rate-limited for the current
window (RATE_LIMIT_WINDOW_SECONDS since the 429). Callers exclude the models
they already tried in this request; when nothing is left the tier is
exhausted.
"""
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

RATE_LIMIT_WINDOW_SECONDS = 5 * 60


class Tier(str, Enum):
    FREE = "FREE"
    PAID = "PAID"


MODEL_CONFIG: Dict[Tier, Dict[str, Any]] = {
    Tier.FREE: {
        "provider": "openrouter",
        "models": {
            "default": [
                "qwen/qwen3-coder:free",
                "mistralai/mistral-7b-instruct:free",
                "meta-llama/llama-3.1-8b-instruct:free",
                "google/gemma-2-9b-it:free",
            ],
            "search": [
                "qwen/qwen3-coder:free",
                "mistralai/mistral-7b-instruct:free",
                "meta-llama/llama-3.1-8b-instruct:free",
            ],
            "analysis": [
                "qwen/qwen3-coder:free",
                "mistralai/mistral-7b-instruct:free",
                "meta-llama/llama-3.1-8b-instruct:free",
            ],
        },
        "max_tokens": 2000,
        "temperature": 0.3,
        "fallback_message": "Free tier rate limit reached. Upgrade to Pro for unlimited access to premium AI models.",
    },
    Tier.PAID: {
        "provider": "openai",
        "models": {
            "default": ["gpt-4o"],
            "search": ["gpt-4o-search-preview", "gpt-4o"],
            "analysis": ["gpt-4o"],
        },
        "max_tokens": 3000,
        "temperature": 0.3,
        "fallback_message": "Pro tier rate limit reached. Please wait a moment and try again.",
    },
}

# Search-preview models reject sampling parameters such as temperature.
SEARCH_MODELS = {"gpt-4o-search-preview"}


@dataclass
class ModelChoice:
    model: str
    is_fallback: bool = False
    message: Optional[str] = None
    exhausted: bool = False


def get_user_tier(has_subscription: bool, subscription: Optional[Mapping[str, Any]] = None) -> Tier:
    if not has_subscription or not subscription:
        return Tier.FREE
    if subscription.get("status") == "active" and not subscription.get("cancel_at_period_end"):
        return Tier.PAID
    return Tier.FREE


def get_model_config(tier: Tier) -> Dict[str, Any]:
    return MODEL_CONFIG[Tier(tier)]


class ModelUsageTracker:
    """(tier, model) -> last use and whether that use hit a rate limit.

    FastAPI serves sync endpoints from a thread pool, so every access goes
    through the lock.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._usage: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def mark(self, tier: Tier, model: str, rate_limited: bool) -> None:
        with self._lock:
            self._usage[(Tier(tier).value, model)] = {
                "last_used": self._clock(),
                "rate_limit_hit": rate_limited,
            }

    def is_available(self, tier: Tier, model: str) -> bool:
        with self._lock:
            usage = self._usage.get((Tier(tier).value, model))
            if usage is None or not usage["rate_limit_hit"]:
                return True
            return self._clock() - usage["last_used"] > RATE_LIMIT_WINDOW_SECONDS

    def reset(self) -> None:
        with self._lock:
            self._usage.clear()


usage_tracker = ModelUsageTracker()


def get_model_for_use_case(tier: Tier, use_case: str = "default",
                           excluded: Iterable[str] = (),
                           tracker: Optional[ModelUsageTracker] = None) -> ModelChoice:
    tracker = tracker or usage_tracker
    config = get_model_config(tier)
    models = config["models"].get(use_case) or config["models"]["default"]
    excluded = set(excluded)

    for model in models:
        if model in excluded or not tracker.is_available(tier, model):
            continue
        is_fallback = bool(excluded) or model != models[0]
        return ModelChoice(
            model=model,
            is_fallback=is_fallback,
            message=f"Switched to fallback model: {model}" if is_fallback else None,
        )

    return ModelChoice(model=models[0], is_fallback=True, message=config["fallback_message"], exhausted=True)


def mark_model_rate_limited(tier: Tier, model: str, tracker: Optional[ModelUsageTracker] = None) -> None:
    (tracker or usage_tracker).mark(tier, model, rate_limited=True)
    logger.warning("Model %s marked as rate limited for %s tier", model, Tier(tier).value)


def mark_model_used(tier: Tier, model: str, tracker: Optional[ModelUsageTracker] = None) -> None:
    (tracker or usage_tracker).mark(tier, model, rate_limited=False)


def get_model_params(tier: Tier, model: Optional[str] = None) -> Dict[str, Any]:
    config = get_model_config(tier)
    params: Dict[str, Any] = {"max_tokens": config["max_tokens"]}
    if model not in SEARCH_MODELS:
        params["temperature"] = config["temperature"]
    return params


def get_rate_limit_message(tier: Tier, model: str) -> str:
    if Tier(tier) == Tier.FREE:
        return (f"Free tier rate limit reached for {model}. "
                "Upgrade to Pro for unlimited access to premium AI models like GPT-4o.")
    return "Pro tier rate limit reached. Please wait a moment and try again."


def get_upgrade_suggestion() -> str:
    return ("Upgrade to Pro for unlimited access to premium AI models, "
            "faster response times, and priority support.")
