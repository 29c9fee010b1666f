from typing import Optional


class FetchTimeoutError(Exception):
    """Outbound request exceeded its timeout (as opposed to a network failure)."""

    def __init__(self, url: str, timeout: float):
        self.url = url
        self.timeout = timeout
        super().__init__(f"Request to {url} timed out after {timeout:g}s")


class UpstreamHTTPError(Exception):
    """Non-2xx answer from a news or search provider."""

    def __init__(self, provider: str, status: int, detail: str = ""):
        self.provider = provider
        self.status = status
        msg = f"{provider} returned HTTP {status}"
        if detail:
            msg += f": {detail[:200]}"
        super().__init__(msg)


class AuthError(Exception):
    def __init__(self, message: str = "Invalid authentication token", status: int = 401):
        self.status = status
        super().__init__(message)


class LLMError(Exception):
    pass


class LLMTimeoutError(LLMError):
    pass


class LLMAuthError(LLMError):
    def __init__(self, message: str, status: int = 401):
        self.status = status
        super().__init__(message)


class LLMRateLimitError(LLMError):
    def __init__(self, message: str, retry_after: int = 60, upgrade_suggestion: Optional[str] = None):
        self.retry_after = retry_after
        self.upgrade_suggestion = upgrade_suggestion
        super().__init__(message)


class LLMResponseError(LLMError):
    pass


class ClientRateLimitedError(Exception):
    """A caller went over the per-IP request limit."""

    def __init__(self, result):
        self.result = result
        super().__init__(f"Rate limit exceeded, retry after {result.retry_after}s")
