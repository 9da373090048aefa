from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tgsearch.contracts.search_v1 import MessageResult
from tgsearch.orchestrators.search.scoring import (
    calculate_relevance,
    sort_by_relevance,
)


def _result(message_id: int, score: float) -> MessageResult:
    return MessageResult(
        message_id=message_id,
        sender_id=1,
        sender_name="Alice",
        text="text",
        date="2024-01-01T00:00:00+00:00",
        group_id="g",
        group_title="Group",
        relevance_score=score,
    )


@pytest.mark.parametrize(
    "text,query",
    [("", "bitcoin"), ("bitcoin", ""), ("   ", "bitcoin"), ("bitcoin", "   ")],
)
def test_empty_inputs_score_zero(text, query):
    assert calculate_relevance(text, query) == 0.0


def test_unrelated_text_scores_zero():
    assert calculate_relevance("weather is nice today", "bitcoin") == 0.0


def test_exact_phrase_at_start_collects_every_component():
    score = calculate_relevance("Bitcoin price rising", "bitcoin price")
    # exact + position + first word + full word ratio + density 2/3
    assert score == pytest.approx(0.4 + 0.1 + 0.3 + 0.15 + 0.05 * 2 / 3)


def test_matching_is_case_insensitive():
    assert calculate_relevance("BITCOIN news", "bitcoin") == calculate_relevance(
        "bitcoin news", "BITCOIN"
    )


def test_exact_phrase_outranks_scattered_words():
    exact = calculate_relevance("we discussed the bitcoin price", "bitcoin price")
    scattered = calculate_relevance("price of gold, not bitcoin", "bitcoin price")
    assert exact > scattered > 0


def test_earlier_match_scores_higher():
    early = calculate_relevance("hello bitcoin and more words here", "bitcoin")
    late = calculate_relevance("hello and more words here bitcoin", "bitcoin")
    assert early > late


def test_partial_word_match_counts_half_ratio():
    score = calculate_relevance("nothing about eth here", "eth btc")
    # "eth" matches (ratio 1/2) with density 1/4; no exact phrase, first word misses.
    assert score == pytest.approx(0.5 * 0.15 + 0.25 * 0.05)


@pytest.mark.property
@given(text=st.text(max_size=200), query=st.text(max_size=40))
def test_score_is_always_within_unit_interval(text, query):
    score = calculate_relevance(text, query)
    assert 0.0 <= score <= 1.0


def test_sort_by_relevance_is_descending_and_stable():
    results = [_result(1, 0.2), _result(2, 0.9), _result(3, 0.2), _result(4, 0.9)]
    ordered = [r.message_id for r in sort_by_relevance(results)]
    assert ordered == [2, 4, 1, 3]
