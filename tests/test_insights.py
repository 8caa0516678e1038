from core.entities import Category, CategoryMetrics, ScoredItem
from core.schemas import ContentItem
from core.taxonomy import get_category
from processing.insights import (
    UNCATEGORIZED,
    categorize_business_insights,
    extract_insights,
    extract_llm_insights,
)

METRICS = CategoryMetrics(
    relevance_score=50.0,
    credibility_score=75.0,
    accuracy_score=75.0,
    final_score=62.5,
    passes_threshold=False,
)


def _category(items, category_id="financial-performance"):
    return Category(
        definition=get_category(category_id),
        content=tuple(ScoredItem(item=item, relevance=50.0, index=i) for i, item in enumerate(items)),
        metrics=METRICS,
    )


def test_cached_insights_are_returned_unchanged():
    category = _category([ContentItem(title="x")]).with_insights(["cached insight text"])
    assert extract_insights(category) == ["cached insight text"]


def test_structured_insights_are_deduplicated_and_capped():
    item = ContentItem(keyInsights=[
        "Revenue grew 20% in Q3",
        "short",
        "Revenue grew 20% in Q3",
        "Margins expanded to 40%",
        "Churn fell below 2%",
    ])
    other = ContentItem(keyPoints=[
        "Headcount doubled this year",
        "New office opened in Berlin",
        "Seventh insight is here",
    ])
    insights = extract_insights(_category([item, other]), limit=10)
    assert len(insights) == 5
    assert insights[0] == "Revenue grew 20% in Q3"
    assert insights.count("Revenue grew 20% in Q3") == 1
    assert "short" not in insights
    assert all(len(i) > 10 for i in insights)


def test_description_sentences_fill_in():
    item = ContentItem(
        description="Revenue increased sharply across all regions. Short one. "
        "The weather was pleasant and sunny today."
    )
    assert extract_insights(_category([item])) == ["Revenue increased sharply across all regions"]


def test_keywordless_category_uses_key_terms():
    item = ContentItem(description="This is a major shift for the industry. Nothing else matters here at all.")
    insights = extract_insights(_category([item], "all-results"), "")
    assert insights == ["This is a major shift for the industry"]


def test_no_sources_no_insights():
    assert extract_insights(_category([ContentItem(title="Nothing here")])) == []


def test_business_insight_buckets():
    buckets = categorize_business_insights([
        "Revenue grew 20%",
        "New competitor entered market",
        "The weather is nice",
    ])
    assert set(buckets) == {"market", "financial", "strategy", "competitive", "risk", UNCATEGORIZED}
    assert buckets["financial"] == ["Revenue grew 20%"]
    assert buckets["market"] == ["New competitor entered market"]
    assert buckets[UNCATEGORIZED] == ["The weather is nice"]
    assert buckets["risk"] == []


def test_business_insight_buckets_empty():
    buckets = categorize_business_insights(None)
    assert all(v == [] for v in buckets.values())
    assert len(buckets) == 6


def test_llm_insights_under_heading():
    text = (
        "Intro paragraph.\n\n"
        "## Key Insights\n"
        "- **Revenue** grew 20% year over year\n"
        "- Margins expanded to 40% overall\n"
        "- short\n"
        "\n"
        "## Next steps\n"
        "- Should not appear in output"
    )
    assert extract_llm_insights(text) == [
        "Revenue grew 20% year over year",
        "Margins expanded to 40% overall",
    ]


def test_llm_insights_stop_at_next_heading():
    text = "Key takeaways:\n- First takeaway is long enough\n## Other\n- Another long bullet here"
    assert extract_llm_insights(text) == ["First takeaway is long enough"]


def test_llm_insights_without_heading():
    assert extract_llm_insights("- A bullet without any heading above") == []
    assert extract_llm_insights(None) == []


def test_cached_insights_are_filtered_and_capped():
    cached = [f"Cached insight number {i}" for i in range(8)] + ["short", "Cached insight number 0"]
    insights = extract_insights(_category([ContentItem(title="x")]).with_insights(cached))
    assert len(insights) == 5
    assert "short" not in insights
    assert len(set(insights)) == 5
    assert all(len(i) > 10 for i in insights)


def test_description_sentence_bounds_are_exclusive():
    assert len("Revenue rose sharply") == 20
    item = ContentItem(description="Revenue rose sharply. Revenue increased sharply across every single region.")
    assert extract_insights(_category([item])) == ["Revenue increased sharply across every single region"]


def test_short_descriptions_are_ignored():
    item = ContentItem(description="Revenue increased sharply in all regions.")
    assert len(item.description) <= 50
    assert extract_insights(_category([item])) == []
