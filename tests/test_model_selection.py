from fakeverifier.model_selection import (
    MODEL_CONFIG,
    RATE_LIMIT_WINDOW_SECONDS,
    ModelUsageTracker,
    Tier,
    get_model_for_use_case,
    get_model_params,
    get_user_tier,
    mark_model_rate_limited,
    mark_model_used,
)


class Clock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_user_tier_from_subscription():
    assert get_user_tier(False) == Tier.FREE
    assert get_user_tier(True, {"status": "active"}) == Tier.PAID
    assert get_user_tier(True, {"status": "active", "cancel_at_period_end": True}) == Tier.FREE
    assert get_user_tier(True, {"status": "past_due"}) == Tier.FREE


def test_first_model_is_primary():
    choice = get_model_for_use_case(Tier.PAID, "search", tracker=ModelUsageTracker())
    assert choice.model == "gpt-4o-search-preview"
    assert not choice.is_fallback
    assert choice.message is None


def test_unknown_use_case_uses_default_list():
    choice = get_model_for_use_case(Tier.FREE, "summarize", tracker=ModelUsageTracker())
    assert choice.model == MODEL_CONFIG[Tier.FREE]["models"]["default"][0]


def test_rate_limited_model_is_skipped_until_window_passes():
    clock = Clock()
    tracker = ModelUsageTracker(clock=clock)
    mark_model_rate_limited(Tier.PAID, "gpt-4o-search-preview", tracker=tracker)

    choice = get_model_for_use_case(Tier.PAID, "search", tracker=tracker)
    assert choice.model == "gpt-4o"
    assert choice.is_fallback
    assert "gpt-4o" in choice.message

    clock.now += RATE_LIMIT_WINDOW_SECONDS + 1
    assert get_model_for_use_case(Tier.PAID, "search", tracker=tracker).model == "gpt-4o-search-preview"


def test_successful_use_clears_rate_limit():
    tracker = ModelUsageTracker()
    mark_model_rate_limited(Tier.PAID, "gpt-4o", tracker=tracker)
    mark_model_used(Tier.PAID, "gpt-4o", tracker=tracker)
    assert tracker.is_available(Tier.PAID, "gpt-4o")


def test_exhausted_when_every_model_excluded():
    models = MODEL_CONFIG[Tier.FREE]["models"]["analysis"]
    choice = get_model_for_use_case(Tier.FREE, "analysis", excluded=models, tracker=ModelUsageTracker())
    assert choice.exhausted
    assert choice.message == MODEL_CONFIG[Tier.FREE]["fallback_message"]


def test_tiers_are_tracked_separately():
    tracker = ModelUsageTracker()
    tracker.mark(Tier.FREE, "gpt-4o", rate_limited=True)
    assert tracker.is_available(Tier.PAID, "gpt-4o")
    assert not tracker.is_available(Tier.FREE, "gpt-4o")


def test_search_models_omit_temperature():
    assert "temperature" not in get_model_params(Tier.PAID, "gpt-4o-search-preview")
    assert get_model_params(Tier.PAID, "gpt-4o") == {"max_tokens": 3000, "temperature": 0.3}
    assert get_model_params(Tier.FREE)["max_tokens"] == 2000
