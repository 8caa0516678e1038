import pytest

from core.schemas import ContentItem
from ingestion.base import InputKind, build_item
from ingestion.source_factory import classify_input, create_input_adapter, normalize_content


@pytest.mark.parametrize(
    "raw, kind",
    [
        (None, InputKind.EMPTY),
        ("", InputKind.EMPTY),
        ("   ", InputKind.EMPTY),
        ([], InputKind.EMPTY),
        ("some text", InputKind.TEXT),
        ([{"type": "user", "content": "hi"}], InputKind.CHAT_HISTORY),
        ([{"title": "T", "link": "https://a.com"}], InputKind.SEARCH_RESULTS),
        ([{"name": "thing"}], InputKind.ITEM_ARRAY),
        ({"results": []}, InputKind.WRAPPED_OBJECT),
        ({"text": "hi"}, InputKind.SINGLE_OBJECT),
        (ContentItem(text="hi"), InputKind.SINGLE_OBJECT),
        (42, InputKind.UNSUPPORTED),
    ],
)
def test_classify_input(raw, kind):
    assert classify_input(raw) == kind


def test_chat_history_wins_over_search_results():
    raw = [{"title": "T", "snippet": "S"}, {"role": "assistant", "content": "answer"}]
    assert classify_input(raw) == InputKind.CHAT_HISTORY


def test_every_kind_has_an_adapter():
    for kind in InputKind:
        assert create_input_adapter(kind).kind == kind


def test_unknown_kind_raises():
    with pytest.raises(ValueError):
        create_input_adapter("nonsense")


@pytest.mark.parametrize("raw", [None, "", [], 42, 3.5, object()])
def test_empty_or_unsupported_yields_no_items(raw):
    assert normalize_content(raw) == []


def test_text_becomes_single_item():
    items = normalize_content("An answer from the model")
    assert len(items) == 1
    assert items[0].text == "An answer from the model"
    assert items[0].type == "text"


def test_chat_history_uses_latest_assistant_message():
    raw = [
        {"type": "user", "content": "question"},
        {"type": "assistant", "content": "first answer"},
        {"type": "user", "content": "follow up"},
        {"type": "assistant", "content": [{"title": "A", "snippet": "x"}, "plain"]},
    ]
    items = normalize_content(raw)
    assert len(items) == 2
    assert items[0].title == "A"
    assert items[1].text == "plain"


def test_chat_history_without_assistant():
    assert normalize_content([{"role": "user", "content": "question"}]) == []


def test_search_results_are_mapped():
    items = normalize_content([{"title": "T", "snippet": "S", "link": "https://x.com"}])
    assert len(items) == 1
    assert items[0].url == "https://x.com"
    assert items[0].description == "S"
    assert items[0].type == "search_result"


def test_wrapped_object_is_unwrapped():
    raw = {"results": [{"title": "T", "snippet": "S", "link": "https://x.com"}]}
    assert normalize_content(raw) == normalize_content(raw["results"])


def test_single_object():
    items = normalize_content({"text": "hi", "score": 3})
    assert len(items) == 1
    assert items[0].model_extra["score"] == 3


def test_invalid_entries_are_skipped():
    items = normalize_content([{"title": "T", "snippet": "S"}, 5, "loose text", None])
    assert [i.title for i in items] == ["T", None]
    assert items[1].text == "loose text"


def test_build_item_coerces_fields():
    item = build_item({"title": 123, "snippet": "x", "metrics": "bad", "keyInsights": "nope"})
    assert item.title == "123"
    assert item.metrics is None
    assert item.key_insights == []


def test_build_item_passthrough_and_rejects():
    existing = ContentItem(title="T")
    assert build_item(existing) is existing
    assert build_item("   ") is None
    assert build_item(7) is None


def test_normalization_does_not_mutate_input():
    raw = [{"title": "T", "snippet": "S", "link": "https://x.com"}]
    normalize_content(raw)
    assert raw == [{"title": "T", "snippet": "S", "link": "https://x.com"}]
