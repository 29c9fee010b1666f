from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal

from .config import settings

Verdict = Literal["real", "likely-real", "likely-fake", "fake", "questionable", "ai-generated"]


class AnalysisIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    content: str = Field(..., min_length=1, max_length=settings.MAX_INPUT_CHARS)
    type: Optional[str] = "news"


class VerifyIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    input: str = Field(..., min_length=1, max_length=settings.MAX_INPUT_CHARS)


class NewsArticle(BaseModel):
    title: str = ""
    source: str = "Unknown"
    url: Optional[str] = None
    publishedAt: Optional[str] = None
    description: Optional[str] = None
    api: str                # provenance badge: "News API" | "NewsAPI.ai" | "Finlight" | "NYT Top Stories"
    relevance: int = Field(0, ge=0, le=100)


class VideoResult(BaseModel):
    id: str
    title: str = ""
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    channelTitle: str = "News Source"
    publishedAt: Optional[str] = None
    url: Optional[str] = None
    embedUrl: Optional[str] = None
    source: str = "Unknown"
    platform: str = "News Site"
    relevance: int = Field(0, ge=0, le=100)
    synthetic: bool = False  # True for curated placeholders, never for retrieved results


class ParsedAIResponse(BaseModel):
    verdict: Verdict = "questionable"
    confidence: int = Field(75, ge=0, le=100)
    explanation: str = ""
    redFlags: List[str] = []
    recommendations: List[str] = []
    currentContext: List[str] = []
    realTimeSources: List[str] = []
    aiDetection: List[str] = []


class StructuredData(ParsedAIResponse):
    sources: List[str] = []


class AnalysisResponse(BaseModel):
    analysis: str
    model: str
    isRealTimeNews: bool
    timestamp: str
    newsData: List[NewsArticle] = []
    videoData: List[VideoResult] = []
    urlsAnalyzed: List[str] = []
    structuredData: StructuredData
    fallbackMessage: Optional[str] = None


class SearchSource(BaseModel):
    title: str = "Unknown"
    url: str = "#"
    snippet: str = ""
    publishedAt: str = ""
    source: str = "Unknown"


class SearchStatus(BaseModel):
    mode: Literal["ai-only", "ai-plus-web"]
    message: str


class SearchResult(BaseModel):
    searchPerformed: bool
    sources: List[SearchSource] = []
    reason: Optional[str] = None
    error: Optional[str] = None
    status: Optional[SearchStatus] = None


class VerifyResult(BaseModel):
    verdict: Verdict
    confidence: int = Field(..., ge=0, le=100)
    sourcesChecked: List[str] = []
    explanation: str
    userTier: Literal["FREE", "PAID"]
    model: str
    serpApiData: SearchResult
    newsData: List[NewsArticle] = []
    fallbackMessage: Optional[str] = None


class VerifyResponse(BaseModel):
    result: VerifyResult


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
