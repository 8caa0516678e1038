import pytest

from core.entities import CategoryDefinition
from core.schemas import ContentItem
from core.taxonomy import (
    BROAD_CATEGORIES,
    DEFAULT_TAXONOMY,
    KEY_INSIGHTS,
    SPECIFIC_CATEGORIES,
    categories_by_tier,
    context_weights,
    detect_query_context,
    get_category,
    is_business_query,
    is_code_item,
    is_image_item,
    is_text_item,
    is_web_item,
    validate_taxonomy,
)


def test_default_taxonomy_shape():
    ids = [c.id for c in DEFAULT_TAXONOMY]
    assert len(ids) == len(set(ids))
    assert len(SPECIFIC_CATEGORIES) == 18
    assert ids[0] == "key-insights"
    assert len(categories_by_tier("broad")) == len(BROAD_CATEGORIES) == 5


def test_key_insights_definition():
    assert KEY_INSIGHTS.always_evaluate
    assert KEY_INSIGHTS.priority == 0
    assert KEY_INSIGHTS.tier == "special"
    assert KEY_INSIGHTS.color == "#673AB7"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("plain words", 70),
        ("Growth of 20%", 80),
        ("• A key finding: 20%", 100),
        ("", 0),
    ],
)
def test_key_insights_score(text, expected):
    assert KEY_INSIGHTS.get_score(text, "") == expected


def test_only_all_results_is_wildcard():
    assert [c.id for c in DEFAULT_TAXONOMY if c.is_wildcard] == ["all-results"]


def test_validate_rejects_duplicate_ids():
    category = CategoryDefinition(id="dup", name="Dup", keywords=("a",))
    with pytest.raises(ValueError):
        validate_taxonomy([category, category])


def test_validate_rejects_keywordless_category():
    with pytest.raises(ValueError):
        validate_taxonomy([CategoryDefinition(id="empty", name="Empty", keywords=())])


def test_validate_accepts_structural_category():
    validate_taxonomy([
        CategoryDefinition(id="web", name="Web", keywords=(), predicate=lambda item: True)
    ])


def test_get_category():
    assert get_category("financial-performance").name == "Financial Performance"
    assert get_category("missing") is None
    assert get_category("x", [CategoryDefinition(id="x", name="X", keywords=("x",))]).id == "x"


def test_financial_category_formats_figures():
    category = get_category("financial-performance")
    assert category.format("Revenue hit $12.5M, up 40%") == "Revenue hit **$12.5M**, up **40%**"


def test_unformatted_category_returns_text():
    assert get_category("growth-strategy").format("plain text") == "plain text"
    assert get_category("growth-strategy").format("") == ""


def test_structural_predicates():
    web = ContentItem(title="Page", url="https://example.com/page")
    text = ContentItem(text="A plain answer")
    code = ContentItem(snippet="```python\nprint(1)\n```")
    image = ContentItem(title="Logo", link="https://example.com/logo.PNG?size=2")

    assert is_web_item(web) and not is_web_item(text)
    assert is_text_item(text) and not is_text_item(web)
    assert is_code_item(code) and is_code_item(ContentItem(type="code"))
    assert not is_code_item(text)
    assert is_image_item(image) and is_image_item(ContentItem(thumbnail="t.jpg"))
    assert not is_image_item(web)


@pytest.mark.parametrize(
    "query, context",
    [
        ("stock market earnings", "FINANCIAL"),
        ("vaccine side effect for patient", "MEDICAL"),
        ("deploy docker container to kubernetes", "TECHNICAL"),
        ("stock", "GENERAL"),
        ("hello", "GENERAL"),
        (None, "GENERAL"),
    ],
)
def test_detect_query_context(query, context):
    assert detect_query_context(query) == context


def test_context_weights_sum_to_one():
    weights = context_weights("stock market earnings")
    assert weights["accuracy"] == 0.40
    assert sum(weights.values()) == pytest.approx(1.0)


def test_is_business_query():
    assert is_business_query("Apple revenue outlook")
    assert not is_business_query("best hiking trails")
    assert not is_business_query(None)
