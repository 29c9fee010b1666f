import logging
import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from readability import Document

from .errors import FetchTimeoutError
from .fetch import fetch_with_timeout

logger = logging.getLogger(__name__)

BLOCKED_DOMAINS = [
    "malware.com", "phishing.com", "scam.com", "virus.com",
    "localhost", "127.0.0.1", "0.0.0.0", "::1",
]
SUSPICIOUS_PATTERNS = [
    re.compile(p, re.I)
    for p in (r"\.exe$", r"\.bat$", r"\.cmd$", r"\.scr$", r"\.pif$", r"javascript:", r"data:", r"vbscript:")
]
URL_RE = re.compile(r"https?://[^\s]+")
MAX_TEXT_CHARS = 5000

HEADERS = {
    "User-Agent": "FakeVerifier-Bot/1.0",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def is_valid_url(url: str) -> bool:
    """http(s) URLs that are not local, not on the blocklist and not executables."""
    try:
        parsed = urlparse(url)
        hostname = (parsed.hostname or "").lower()
    except ValueError:
        return False

    if parsed.scheme not in ("http", "https") or not hostname:
        return False
    if any(d in hostname for d in BLOCKED_DOMAINS):
        return False
    if any(p.search(url) for p in SUSPICIOUS_PATTERNS):
        return False
    return True


def extract_urls(content: str) -> List[str]:
    return [u for u in URL_RE.findall(content or "") if is_valid_url(u)]


def extract_from_url(url: str) -> Optional[Dict[str, str]]:
    """Fetch and extract clean article text from a given URL.

    Returns None when the URL is rejected, unreachable or not an HTML page.
    """
    if not is_valid_url(url):
        return None
    try:
        resp = fetch_with_timeout("GET", url, headers=HEADERS)
    except (FetchTimeoutError, requests.RequestException) as e:
        logger.warning("Could not fetch %s: %s", url, e)
        return None

    if not resp.ok:
        logger.info("Skipping %s: HTTP %s", url, resp.status_code)
        return None
    if "text/html" not in (resp.headers.get("content-type") or ""):
        return None

    try:
        doc = Document(resp.text)
        title = doc.short_title()
        html = doc.summary()
    except Exception as e:
        logger.warning("Could not parse %s: %s", url, e)
        return None

    soup = BeautifulSoup(html, "lxml")
    text = " ".join(soup.get_text(" ").split())

    return {
        "title": (title or "").strip(),
        "text": text[:MAX_TEXT_CHARS],
        "url": url,
        "source": urlparse(url).netloc,
    }
