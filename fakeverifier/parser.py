# fakeverifier/parser.py
"""
Best-effort extraction of a verdict and itemized sections from the model's
free-text answer.

The model is asked for a fixed layout (VERDICT / CONFIDENCE / EXPLANATION /
REAL-TIME SOURCES / RED FLAGS / RECOMMENDATIONS / CURRENT CONTEXT /
AI-DETECTION) but nothing enforces it, so every step falls back to an empty
or default value instead of failing. All functions are pure.
"""
import re
from typing import Dict, List, Optional, Union

from .models import ParsedAIResponse

# Used when neither an explicit verdict, verdict keywords nor an indicator
# majority can be found in the answer.
DEFAULT_VERDICT = "questionable"
DEFAULT_CONFIDENCE = 75

LIST_SECTIONS = ("redFlags", "recommendations", "currentContext", "realTimeSources", "aiDetection")

# Headers may be decorated: "**RED FLAGS:**", "### Red flags", "5. RED FLAGS:"
_DECOR = r"^[\s#*>\d.)]*"
SECTION_HEADERS = [
    ("explanation", re.compile(_DECOR + r"explanation\b[\s*]*:?[\s*]*(.*)$", re.I)),
    ("redFlags", re.compile(_DECOR + r"red[\s-]flags\b[\s*]*:?[\s*]*(.*)$", re.I)),
    ("recommendations", re.compile(_DECOR + r"recommendations\b[\s*]*:?[\s*]*(.*)$", re.I)),
    ("currentContext", re.compile(_DECOR + r"current\s+context\b[\s*]*:?[\s*]*(.*)$", re.I)),
    ("realTimeSources", re.compile(_DECOR + r"real[\s-]time\s+sources\b[\s*]*:?[\s*]*(.*)$", re.I)),
    ("aiDetection", re.compile(_DECOR + r"ai[\s-]detection\b[\s*]*:?[\s*]*(.*)$", re.I)),
    # these close the previous section without opening a list
    ("", re.compile(_DECOR + r"(?:verdict|confidence)\b[\s*]*:(.*)$", re.I)),
]
BULLET_RE = re.compile(r"^(?:[-•]|\*\s|\d+[.)]\s)\s*")

VERDICT_RE = re.compile(
    r"verdict\W{0,8}(likely[\s-]+real|likely[\s-]+fake|ai[\s-]+generated|real|fake|questionable)\b",
    re.I,
)
CONFIDENCE_RE = re.compile(r"confidence\W{0,8}(\d{1,3})", re.I)
PERCENT_RE = re.compile(r"(\d{1,3})\s*%")
URL_RE = re.compile(r"https?://[^\s]+")

POSITIVE_INDICATORS = ["verified", "confirmed", "accurate", "true", "legitimate", "credible"]
NEGATIVE_INDICATORS = ["false", "misleading", "inaccurate", "unverified", "suspicious"]


def _has(word: str, text: str) -> bool:
    return re.search(r"\b" + re.escape(word) + r"\b", text) is not None


def _match_header(line: str):
    for section, pattern in SECTION_HEADERS:
        m = pattern.match(line)
        if m:
            return section, m.group(1).strip(" *")
    return None, None


def parse_ai_response(response: str) -> Dict[str, Union[str, List[str]]]:
    """Split the answer into explanation prose and bulleted section lists."""
    result: Dict[str, Union[str, List[str]]] = {"explanation": ""}
    for name in LIST_SECTIONS:
        result[name] = []

    explanation: List[str] = []
    current = ""
    for raw in (response or "").splitlines():
        line = raw.strip()
        if not line:
            continue

        section, rest = _match_header(line)
        if section is not None:
            current = section
            if rest and current == "explanation":
                explanation.append(rest)
            elif rest and current in LIST_SECTIONS:
                result[current].append(rest)
            continue

        bullet = BULLET_RE.match(line)
        if bullet:
            item = line[bullet.end():].strip()
            if current in LIST_SECTIONS and item:
                result[current].append(item)
            elif current == "explanation" and item:
                explanation.append(item)
        elif current == "explanation":
            explanation.append(line)

    result["explanation"] = " ".join(explanation)
    return result


def extract_confidence(response: str, default: int = DEFAULT_CONFIDENCE) -> int:
    m = CONFIDENCE_RE.search(response or "") or PERCENT_RE.search(response or "")
    if not m:
        return default
    return max(0, min(100, int(m.group(1))))


def extract_verdict(response: str) -> str:
    """
    1. explicit "VERDICT: <category>" (any case, markdown tolerated)
    2. verdict words in the prose, most specific first
    3. majority of positive vs negative indicator words
    4. DEFAULT_VERDICT
    """
    m = VERDICT_RE.search(response or "")
    if m:
        return re.sub(r"[\s-]+", "-", m.group(1).lower())

    text = (response or "").lower()
    # "real" inside the REAL-TIME SOURCES header is not a verdict word
    has_real = re.search(r"\breal\b(?![\s-]+time)", text) is not None
    has_fake = _has("fake", text)
    if re.search(r"\blikely[\s-]+real\b", text):
        return "likely-real"
    if re.search(r"\blikely[\s-]+fake\b", text):
        return "likely-fake"
    if has_real and not has_fake and not _has("questionable", text):
        return "real"
    if has_fake and not has_real:
        return "fake"
    if re.search(r"\bai[\s-]generated\b", text):
        return "ai-generated"
    if _has("questionable", text):
        return "questionable"

    positive = sum(1 for w in POSITIVE_INDICATORS if _has(w, text))
    negative = sum(1 for w in NEGATIVE_INDICATORS if _has(w, text))
    if positive > negative:
        return "real"
    if negative > positive:
        return "fake"
    return DEFAULT_VERDICT


def extract_sources(response: str) -> List[str]:
    sources: List[str] = []
    for url in URL_RE.findall(response or ""):
        url = url.rstrip(")].,>*")
        if url and url not in sources:
            sources.append(url)
    return sources


def parse_structured(response: str, default_confidence: Optional[int] = None) -> ParsedAIResponse:
    sections = parse_ai_response(response)
    return ParsedAIResponse(
        verdict=extract_verdict(response),
        confidence=extract_confidence(
            response, DEFAULT_CONFIDENCE if default_confidence is None else default_confidence
        ),
        **sections,
    )
