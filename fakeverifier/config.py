from pydantic_settings import BaseSettings
from typing import List, Optional
import os

class Settings(BaseSettings):
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: str = "http://localhost:3000"
    APP_URL: str = "http://localhost:3000"

    # Firebase (auth + verification history)
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS: Optional[str] = None

    # LLM providers
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_TIMEOUT_SECONDS: float = 60.0
    LLM_MAX_RETRIES: int = 5

    # News / search providers
    NEWS_API_KEY: Optional[str] = None
    NEWSAPI_AI_KEY: Optional[str] = None
    FINLIGHT_API_KEY: Optional[str] = None
    NYT_API_KEY: Optional[str] = None
    YOUTUBE_API_KEY: Optional[str] = None
    SERPAPI_KEY: Optional[str] = None
    NEWS_SEARCH_ENABLED: bool = False
    SERPAPI_MONTHLY_LIMIT: int = 250
    CURATED_VIDEO_FALLBACK: bool = True

    # Outbound HTTP
    FETCH_TIMEOUT_SECONDS: float = 10.0
    HTTP_MAX_RETRIES: int = 2
    RETRY_BASE_DELAY: float = 1.0
    RETRY_MAX_DELAY: float = 10.0

    # Longest accepted `content` / `input`
    MAX_INPUT_CHARS: int = 2000

    # Per-IP limits on /api/verify
    RATE_LIMIT_PER_HOUR: int = 60
    RATE_LIMIT_BURST_PER_MINUTE: int = 10

    @property
    def origins(self) -> List[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("dev", "development")

settings = Settings(_env_file=os.getenv("ENV_FILE", ".env"), _env_file_encoding="utf-8")
