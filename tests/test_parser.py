from fakeverifier.parser import (
    DEFAULT_VERDICT,
    extract_confidence,
    extract_sources,
    extract_verdict,
    parse_ai_response,
    parse_structured,
)

FULL_ANSWER = """VERDICT: Likely Real
CONFIDENCE: 82%
EXPLANATION: The claim matches reporting from **Reuters** and the BBC.
Both outlets published the figures on the same day.

REAL-TIME SOURCES:
- Reuters (https://www.reuters.com/world/story-1)
- BBC News

RED FLAGS:
- Headline uses emotional language
• Figures are rounded

RECOMMENDATIONS:
1. Check the official statistics release
2. Compare with regional coverage

CURRENT CONTEXT:
- Parliament debated the topic last week

AI-DETECTION:
- No template-like phrasing detected
"""


def test_explicit_verdict_any_case():
    assert extract_verdict("VERDICT: Real") == "real"
    assert extract_verdict("verdict: real\nsomething fake about it") == "real"
    assert extract_verdict("**VERDICT:** Likely Fake") == "likely-fake"
    assert extract_verdict("Verdict - AI-Generated") == "ai-generated"


def test_keyword_fallback_and_default():
    assert extract_verdict("This story appears to be real.") == "real"
    assert extract_verdict("Overall this is likely fake news.") == "likely-fake"
    assert extract_verdict("The photo is fake.") == "fake"
    assert extract_verdict("Sources are credible and the quote is confirmed.") == "real"
    assert extract_verdict("The post is misleading and unverified.") == "fake"
    assert extract_verdict("No usable signal here.") == DEFAULT_VERDICT == "questionable"


def test_confidence_extraction_and_clamp():
    assert extract_confidence("CONFIDENCE: 82%") == 82
    assert extract_confidence("**Confidence:** 64") == 64
    assert extract_confidence("about 40% sure") == 40
    assert extract_confidence("confidence: 250") == 100
    assert extract_confidence("nothing numeric") == 75
    assert extract_confidence("nothing numeric", default=50) == 50


def test_red_flag_bullet_under_header():
    sections = parse_ai_response("Red Flags:\n- Some red flag")
    assert sections["redFlags"] == ["Some red flag"]


def test_sections_of_full_answer():
    sections = parse_ai_response(FULL_ANSWER)

    assert sections["explanation"] == (
        "The claim matches reporting from **Reuters** and the BBC. "
        "Both outlets published the figures on the same day."
    )
    assert sections["realTimeSources"] == ["Reuters (https://www.reuters.com/world/story-1)", "BBC News"]
    assert sections["redFlags"] == ["Headline uses emotional language", "Figures are rounded"]
    assert sections["recommendations"] == [
        "Check the official statistics release",
        "Compare with regional coverage",
    ]
    assert sections["currentContext"] == ["Parliament debated the topic last week"]
    assert sections["aiDetection"] == ["No template-like phrasing detected"]


def test_bullet_mentioning_header_words_stays_in_section():
    sections = parse_ai_response("RECOMMENDATIONS:\n- No red flags found, but check the date")
    assert sections["recommendations"] == ["No red flags found, but check the date"]
    assert sections["redFlags"] == []


def test_missing_sections_are_empty():
    parsed = parse_structured("I could not find anything.")
    assert parsed.explanation == ""
    assert parsed.redFlags == []
    assert parsed.confidence == 75


def test_extract_sources_trims_brackets_and_dedupes():
    text = "See (https://a.example/x) and [https://b.example/y] and https://a.example/x."
    assert extract_sources(text) == ["https://a.example/x", "https://b.example/y"]


def test_parsing_is_idempotent():
    first = parse_structured(FULL_ANSWER)
    second = parse_structured(FULL_ANSWER)
    assert first == second
    assert first.verdict == "likely-real"
    assert first.confidence == 82


def test_real_time_sources_header_is_not_a_verdict():
    answer = "The clip appears AI-generated.\nREAL-TIME SOURCES:\n- none found"
    assert extract_verdict(answer) == "ai-generated"
    assert extract_verdict("REAL-TIME SOURCES:\n- none found") == DEFAULT_VERDICT
    assert extract_verdict("Real time coverage calls it fake.") == "fake"
