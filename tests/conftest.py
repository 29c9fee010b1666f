import os

# Settings are read at import time; keep tests away from any local .env and
# real provider keys.
os.environ["ENV_FILE"] = os.path.join(os.path.dirname(__file__), "missing.env")
os.environ.setdefault("APP_ENV", "test")
for key in (
    "OPENAI_API_KEY", "OPENROUTER_API_KEY", "NEWS_API_KEY", "NEWSAPI_AI_KEY",
    "FINLIGHT_API_KEY", "NYT_API_KEY", "YOUTUBE_API_KEY", "SERPAPI_KEY",
    "FIREBASE_CREDENTIALS", "GOOGLE_APPLICATION_CREDENTIALS",
):
    os.environ.pop(key, None)

from unittest.mock import MagicMock

import pytest

from fakeverifier.model_selection import usage_tracker
from fakeverifier.ratelimit import rate_limiter


@pytest.fixture(autouse=True)
def _reset_process_state():
    usage_tracker.reset()
    rate_limiter.reset()
    yield
    usage_tracker.reset()
    rate_limiter.reset()


def fake_response(status_code=200, payload=None, text="", headers=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.json.return_value = payload if payload is not None else {}
    resp.text = text
    resp.headers = headers or {}
    return resp


@pytest.fixture
def make_response():
    return fake_response
