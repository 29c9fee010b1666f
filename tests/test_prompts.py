from fakeverifier.aggregator import NewsAggregate
from fakeverifier.models import NewsArticle, SearchResult, SearchSource, VideoResult
from fakeverifier.prompts import analysis_system_prompt, analysis_user_prompt, verify_system_prompt

ARTICLE = NewsArticle(title="Dam repairs finished", source="Reuters", publishedAt="2024-05-01", api="News API")


def test_system_prompt_carries_response_layout():
    prompt = analysis_system_prompt(False)
    for header in ("VERDICT:", "CONFIDENCE:", "EXPLANATION:", "RED FLAGS:", "AI-DETECTION:"):
        assert header in prompt
    assert "real-time search" in analysis_system_prompt(True)


def test_curated_videos_are_labelled():
    videos = [
        VideoResult(id="yt1", title="Dam footage", channelTitle="BBC News"),
        VideoResult(id="cnn-political-1", title="CNN Political Coverage", synthetic=True),
    ]
    prompt = analysis_user_prompt("Dam repaired", "text", False, [], None,
                                  NewsAggregate(keywords=["repaired"], articles=[ARTICLE]), videos)

    found, curated = prompt.split("Curated outlet pages")
    assert "Dam footage" in found
    assert "CNN Political Coverage" in curated
    assert "Dam repairs finished (Reuters)" in found


def test_real_time_prompt_leaves_out_news_context():
    prompt = analysis_user_prompt("Dam breaking news", "text", True, [], None,
                                  NewsAggregate(keywords=["dam"], articles=[ARTICLE]), [])
    assert "Dam repairs finished" not in prompt


def test_verify_prompt_without_evidence():
    prompt = verify_system_prompt(SearchResult(searchPerformed=False, reason="news_search_disabled"), [])
    assert "without access to web search" in prompt


def test_verify_prompt_cites_sources():
    search = SearchResult(searchPerformed=True, sources=[SearchSource(title="Dam fact check", url="https://f.example")])
    prompt = verify_system_prompt(search, [ARTICLE])
    assert "1. Dam fact check (https://f.example)" in prompt
    assert "Dam repairs finished (Reuters)" in prompt
