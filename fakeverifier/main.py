# fakeverifier/main.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .errors import (
    AuthError,
    ClientRateLimitedError,
    FetchTimeoutError,
    LLMAuthError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from .firebase import resolve_caller, save_verification
from .models import AnalysisIn, AnalysisResponse, ErrorResponse, VerifyIn, VerifyResponse
from .ratelimit import client_ip, rate_limiter
from .serpapi import serpapi_manager
from .verification import analyze_content, history_record, verify_input

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="FakeVerifier API (multi-source news verification)")

# --- Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


# Body field checked by each route and its contract messages
BODY_FIELDS = {
    "/api/ai-analysis": ("content", "Content is required and must be a string", "Content"),
    "/api/verify": ("input", "News input is required", "News input"),
}


def validation_message(path: str, errors: List[Dict[str, Any]]) -> str:
    if path not in BODY_FIELDS:
        return "Invalid request body"
    field, required, label = BODY_FIELDS[path]
    for err in errors:
        loc = tuple(err.get("loc") or ())
        if loc == ("body",) and err.get("type") == "missing":
            return required
        if loc[:2] != ("body", field):
            continue
        if err.get("type") == "string_too_long":
            limit = (err.get("ctx") or {}).get("max_length", settings.MAX_INPUT_CHARS)
            return f"{label} exceeds {limit} character limit"
        return required
    return "Invalid request body"


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": validation_message(request.url.path, exc.errors())}, status_code=400)


@app.exception_handler(ClientRateLimitedError)
async def client_rate_limited(request: Request, exc: ClientRateLimitedError):
    return too_many_requests(exc.result)


# --- Helper Functions ---
def error_response(exc: Exception) -> JSONResponse:
    if isinstance(exc, AuthError):
        return JSONResponse({"error": "Invalid authentication token"}, status_code=exc.status)
    if isinstance(exc, (LLMTimeoutError, FetchTimeoutError)):
        return JSONResponse(
            {"error": "Request timeout", "details": "The AI service took too long to respond. Please try again."},
            status_code=408,
        )
    if isinstance(exc, LLMRateLimitError):
        body = {"error": "Rate limit exceeded", "details": str(exc), "retryAfter": exc.retry_after}
        if exc.upgrade_suggestion:
            body["upgradeSuggestion"] = exc.upgrade_suggestion
        return JSONResponse(body, status_code=429, headers={"Retry-After": str(exc.retry_after)})
    if isinstance(exc, LLMAuthError):
        logger.error("LLM provider rejected credentials: %s", exc)
        return JSONResponse({"error": "AI service authentication failed"}, status_code=403)

    logger.exception("Verification failed")
    return JSONResponse(
        {
            "error": "Failed to analyze content",
            "details": str(exc) if settings.is_development else "Internal server error",
        },
        status_code=500,
    )


def too_many_requests(result) -> JSONResponse:
    return JSONResponse(
        {
            "error": "Too many requests",
            "details": "Rate limit exceeded. Please try again later.",
            "retryAfter": result.retry_after,
        },
        status_code=429,
        headers={
            "Retry-After": str(result.retry_after or 60),
            "X-RateLimit-Limit": str(settings.RATE_LIMIT_PER_HOUR),
            "X-RateLimit-Remaining": str(result.remaining),
            "X-RateLimit-Reset": datetime.fromtimestamp(result.reset_time, timezone.utc).isoformat(),
        },
    )


def limit_by_ip(request: Request) -> None:
    result = rate_limiter.check(
        client_ip(request.headers, request.client.host if request.client else None),
        limit=settings.RATE_LIMIT_PER_HOUR,
        window=60 * 60,
        burst_limit=settings.RATE_LIMIT_BURST_PER_MINUTE,
        burst_window=60,
    )
    if not result.allowed:
        raise ClientRateLimitedError(result)


ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (400, 401, 403, 408, 429, 500)
}


# --- Routes ---

@app.get("/health")
def health():
    return {
        "ok": True,
        "appEnv": settings.APP_ENV,
        "newsSearchEnabled": settings.NEWS_SEARCH_ENABLED,
        "searchQuota": serpapi_manager.quota_status(),
    }


@app.post("/api/ai-analysis", response_model=AnalysisResponse, responses=ERROR_RESPONSES)
def ai_analysis(payload: AnalysisIn = Body(...),
                authorization: Optional[str] = Header(None)):
    """
    Full analysis of text or a URL-bearing message:
    - aggregates ranked news and video coverage
    - picks a search or analysis model depending on how time-sensitive it is
    - returns the raw answer plus the parsed verdict and sections
    """
    content_type = payload.type or "news"
    try:
        _, tier = resolve_caller(authorization)
        return analyze_content(payload.content, content_type, tier)
    except Exception as e:
        return error_response(e)


@app.post("/api/verify", response_model=VerifyResponse, responses=ERROR_RESPONSES,
          dependencies=[Depends(limit_by_ip)])
def verify(payload: VerifyIn = Body(...),
           authorization: Optional[str] = Header(None)):
    text = payload.input
    try:
        uid, tier = resolve_caller(authorization)
        result = verify_input(text, tier)
    except Exception as e:
        return error_response(e)

    # history is best-effort, never fails the request
    if uid:
        save_verification(uid, history_record(text, result))
    return VerifyResponse(result=result)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fakeverifier.main:app", host="0.0.0.0", port=8000)
