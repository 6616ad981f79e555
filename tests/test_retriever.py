"""Tier cascade behaviour."""

import pytest

from conftest import FakeStrategy, make_experience
from prepcoach.errors import RetrievalError
from prepcoach.pipeline.retriever import KeywordSearchStrategy, Retriever, SearchQuery

QUERY = SearchQuery(text="Tell me about AWS Config", embedding=[0.1, 0.2, 0.3])
DOC = make_experience("6840090d", "AWS Config Infrastructure", "Technical debt cleanup", [0.1, 0.2, 0.3])


def test_primary_success_is_terminal():
    primary = FakeStrategy("vector", results=[DOC])
    keyword = FakeStrategy("keyword", results=[DOC, DOC])
    result = Retriever([primary, keyword]).retrieve(QUERY)

    assert result.tier == "vector"
    assert result.used_fallback is False
    assert len(result.experiences) == 1
    assert keyword.calls == []


def test_empty_primary_result_is_terminal():
    primary = FakeStrategy("vector", results=[])
    keyword = FakeStrategy("keyword", results=[DOC])
    result = Retriever([primary, keyword]).retrieve(QUERY)

    assert result.tier == "vector"
    assert result.experiences == []
    assert keyword.calls == []


def test_primary_failure_falls_back_to_keyword():
    primary = FakeStrategy("vector", error=RuntimeError("index not provisioned"))
    keyword = FakeStrategy("keyword", results=[DOC])
    sample = FakeStrategy("sample", results=[DOC, DOC])
    result = Retriever([primary, keyword, sample]).retrieve(QUERY)

    assert result.tier == "keyword"
    assert result.used_fallback is True
    assert result.failed_tiers == ["vector"]
    assert len(result.experiences) == 1
    assert sample.calls == []


def test_two_failures_reach_sample():
    result = Retriever([
        FakeStrategy("vector", error=RuntimeError("down")),
        FakeStrategy("keyword", error=RuntimeError("no fts index")),
        FakeStrategy("sample", results=[]),
    ]).retrieve(QUERY)

    assert result.tier == "sample"
    assert result.used_fallback is True
    assert result.experiences == []


def test_last_tier_failure_raises():
    with pytest.raises(RetrievalError) as excinfo:
        Retriever([
            FakeStrategy("vector", error=RuntimeError("down")),
            FakeStrategy("sample", error=ConnectionError("store unreachable")),
        ]).retrieve(QUERY)

    assert excinfo.value.tier == "sample"
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_limit_is_passed_to_tiers():
    docs = [make_experience(str(i), "t", "c") for i in range(10)]
    result = Retriever([FakeStrategy("vector", results=docs)], limit=4).retrieve(QUERY)
    assert len(result.experiences) == 4


def test_keyword_tier_needs_text():
    strategy = KeywordSearchStrategy(store=None)
    with pytest.raises(RetrievalError):
        strategy.search(SearchQuery(text="  ", embedding=[1.0]), 5)


def test_retriever_needs_strategies():
    with pytest.raises(ValueError):
        Retriever([])
