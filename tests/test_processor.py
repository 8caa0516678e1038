import copy

import pytest

from core.entities import WILDCARD, CategoryDefinition
from core.schemas import ContentItem
from processing import processor
from processing.processor import (
    categorize,
    extract_item_text,
    process_categories,
    select_for_display,
    sort_categories,
)


def _by_id(categories):
    return {c.id: c for c in categories}


def _revenue_results(count):
    return [
        {"title": f"Revenue update {i}", "snippet": "Revenue rose again", "link": f"https://s{i}.com"}
        for i in range(count)
    ]


def test_extract_item_text():
    assert extract_item_text(ContentItem(title="T", snippet="S", url="https://a.com")) == "T S"
    assert extract_item_text(ContentItem(text="hello")) == "hello"
    assert extract_item_text(ContentItem(metrics={"a": 1})) == '{"metrics": {"a": 1}}'


def test_wildcard_category_holds_every_item(search_results):
    categories = _by_id(process_categories(search_results, "revenue"))
    all_results = categories["all-results"]
    assert len(all_results.content) == len(search_results)
    assert all(s.relevance == 100 for s in all_results.content)


def test_no_empty_categories(search_results):
    for category in process_categories(search_results, "revenue"):
        assert category.content


def test_unclaimed_items_fall_back_to_structural_categories(search_results):
    categories = _by_id(process_categories(search_results, "revenue"))
    assert "financial-performance" in categories
    web_titles = [s.item.title for s in categories["web"].content]
    assert web_titles == ["Holiday photos"]


def test_plain_text_lands_in_text_category():
    assert [c.id for c in process_categories("zzz qqq")] == ["all-results", "text"]


def test_structural_relevance_override(search_results):
    categories = _by_id(process_categories(search_results, "revenue", structural_relevance=50))
    assert [s.relevance for s in categories["web"].content] == [50]


def test_duplicates_are_dropped_within_a_category():
    results = [
        {"title": "Revenue report", "snippet": "Revenue up", "link": "https://a.com"},
        {"title": "Revenue again", "snippet": "Revenue up", "link": "https://a.com"},
    ]
    categories = _by_id(process_categories(results, "revenue"))
    assert len(categories["financial-performance"].content) == 1
    assert len(categories["all-results"].content) == 2


def test_item_cap_spares_wildcard():
    categories = _by_id(process_categories(_revenue_results(20), "revenue"))
    assert len(categories["financial-performance"].content) == 15
    assert len(categories["all-results"].content) == 20

    categories = _by_id(process_categories(_revenue_results(20), "revenue", max_items_per_category=5))
    assert len(categories["financial-performance"].content) == 5


def test_category_content_sorted_by_relevance(search_results):
    for category in process_categories(search_results, "revenue"):
        relevances = [s.relevance for s in category.content]
        assert relevances == sorted(relevances, reverse=True)
        assert all(s.metrics is not None for s in category.content)


def test_categories_follow_taxonomy_order(search_results):
    ids = [c.id for c in process_categories(search_results, "revenue")]
    assert ids.index("financial-performance") < ids.index("all-results") < ids.index("web")


def test_categorization_is_idempotent(search_results):
    first = [c.to_dict() for c in process_categories(search_results, "revenue")]
    second = [c.to_dict() for c in process_categories(search_results, "revenue")]
    assert first == second


def test_input_is_not_mutated(search_results):
    original = copy.deepcopy(search_results)
    process_categories(search_results, "revenue")
    assert search_results == original


def test_failing_predicate_is_recorded():
    def broken(item):
        raise RuntimeError("bad predicate")

    categories = (
        CategoryDefinition(id="boom", name="Boom", keywords=(), predicate=broken),
        CategoryDefinition(id="everything", name="Everything", keywords=(WILDCARD,)),
    )
    report = categorize(["one", "two"], "q", categories=categories)
    assert [c.id for c in report.categories] == ["everything"]
    assert {e.stage for e in report.errors} == {"match"}
    assert [e.item_index for e in report.errors] == [0, 1]
    assert not report.ok


def test_categorize_never_raises(monkeypatch):
    def explode(raw):
        raise RuntimeError("normalization exploded")

    monkeypatch.setattr(processor, "normalize_content", explode)
    report = categorize("anything", "q")
    assert report.categories == []
    assert report.errors[0].stage == "categorize"


def test_empty_input():
    report = categorize(None, "q")
    assert report.categories == []
    assert report.item_count == 0
    assert report.ok


def test_sort_categories(search_results):
    categories = process_categories(search_results, "revenue")
    by_priority = sort_categories(categories)
    assert [c.priority for c in by_priority] == sorted(c.priority for c in categories)

    by_score = sort_categories(categories, by="final_score")
    scores = [c.metrics.final_score for c in by_score]
    assert scores == sorted(scores, reverse=True)

    with pytest.raises(ValueError):
        sort_categories(categories, by="name")


def test_select_for_display_puts_key_insights_first():
    categories = process_categories("Key insight: revenue grew 20% this quarter", "revenue")
    assert "key-insights" in [c.id for c in categories]
    shown = select_for_display(categories, max_categories=2)
    assert len(shown) == 2
    assert shown[0].id == "key-insights"


def test_serialized_content_keeps_item_metrics():
    results = [{"title": "Revenue report", "snippet": "Revenue rose", "metrics": {"views": 10}}]
    categories = _by_id(process_categories(results, "revenue"))
    entry = categories["all-results"].to_dict()["content"][0]
    assert entry["metrics"] == {"views": 10}
    assert "computed_metrics" in entry
