import pytest

from search_operations.search.hybrid.core.analyzer import QueryAnalyzer, QueryKind, analyze_query


@pytest.mark.parametrize("query", ["", "a", "ab", "  ab  ", "42"])
def test_short_queries_never_use_vector(query):
    analysis = analyze_query(query)

    assert analysis.is_short
    assert analysis.use_vector is False
    assert analysis.kind == QueryKind.SHORT


@pytest.mark.parametrize("query", ["123", "2024-01-01", "!!!", "$$$ 100"])
def test_queries_without_letters_never_use_text(query):
    analysis = analyze_query(query)

    assert analysis.has_alpha is False
    assert analysis.use_text is False


def test_url_queries_skip_vector_but_keep_text():
    analysis = QueryAnalyzer().analyze("HTTPS://stripe.com/docs")

    assert analysis.is_url_like
    assert analysis.use_vector is False
    assert analysis.use_text is True
    assert analysis.kind == QueryKind.URL


def test_keyword_and_phrase_kinds():
    assert analyze_query("finance").kind == QueryKind.KEYWORD
    assert analyze_query("stripe payment docs").kind == QueryKind.PHRASE


def test_regular_query_runs_both_channels():
    analysis = analyze_query("finance")

    assert analysis.use_vector and analysis.use_text
    assert analysis.runs_any_channel
    assert analysis.to_dict()["kind"] == "keyword"


def test_blank_query_runs_no_channel():
    assert analyze_query("   ").runs_any_channel is False
