from processing.keywords import (
    KeywordMatcher,
    WeightedKeywordSet,
    match_keywords,
)


def test_match_keywords_scores_fraction_found():
    result = match_keywords("Cloud MARKET growth", ["cloud", "market", "medicine"])
    assert result.matched
    assert result.score == 2 / 3
    assert result.matches == ("cloud", "market")


def test_match_keywords_invalid_input():
    assert not match_keywords("", ["cloud"]).matched
    assert match_keywords(None, ["cloud"]).score == 0.0
    assert not match_keywords("cloud", "cloud").matched
    assert not match_keywords("cloud", []).matched


def test_match_set_reports_weighted_hits():
    result = KeywordMatcher().match_set("Revenue and profit margins", "financial")
    assert result.matched
    assert result.set_name == "financial"
    assert ("revenue", "high") in [(h.keyword, h.tier) for h in result.hits]
    assert result.score == sum(h.weight for h in result.hits)


def test_match_set_unknown_name():
    result = KeywordMatcher().match_set("revenue", "weather")
    assert not result.matched
    assert result.score == 0


def test_match_all_picks_primary_set():
    matched, primary = KeywordMatcher().match_all("company strategy")
    assert primary is not None
    assert primary.set_name == "business"
    assert primary.score == 6
    assert [m.set_name for m in matched][0] == "business"


def test_match_all_without_hits():
    matched, primary = KeywordMatcher().match_all("zzz qqq")
    assert matched == []
    assert primary is None


def test_additional_sets_extend_matcher():
    weather = WeightedKeywordSet(name="weather", high=("rain",), low=("cloudy",))
    matcher = KeywordMatcher(additional_sets=[weather])
    assert "weather" in matcher.set_names
    result = matcher.match_set("Rain and cloudy skies", "weather")
    assert result.score == 4
