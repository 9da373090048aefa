"""Local relevance heuristic, applied uniformly so results from different sources are comparable.

Score = exact phrase (+0.4) + match position (up to +0.1)
      + query word in first text word (+0.3)
      + word match ratio (up to +0.15) + occurrence density (up to +0.05),
clamped to [0, 1].
"""

from collections.abc import Iterable

from tgsearch.contracts.search_v1 import MessageResult

EXACT_MATCH_WEIGHT = 0.4
POSITION_WEIGHT = 0.1
FIRST_WORD_WEIGHT = 0.3
WORD_RATIO_WEIGHT = 0.15
DENSITY_WEIGHT = 0.05


def calculate_relevance(text: str, query: str) -> float:
    """Score one message text against a query. Case-insensitive, in [0, 1]."""
    if not text or not query:
        return 0.0

    normalized_text = text.lower().strip()
    normalized_query = query.lower().strip()
    if not normalized_text or not normalized_query:
        return 0.0

    score = 0.0

    position = normalized_text.find(normalized_query)
    if position >= 0:
        score += EXACT_MATCH_WEIGHT
        score += (1 - position / len(normalized_text)) * POSITION_WEIGHT

    query_words = normalized_query.split()
    text_words = normalized_text.split()

    if any(qw in text_words[0] for qw in query_words):
        score += FIRST_WORD_WEIGHT

    matched_words = 0
    total_matches = 0
    for query_word in set(query_words):
        occurrences = sum(1 for tw in text_words if query_word in tw)
        if occurrences:
            matched_words += 1
            total_matches += occurrences

    word_match_ratio = matched_words / len(set(query_words))
    density = min(total_matches / len(text_words), 1.0)
    score += word_match_ratio * WORD_RATIO_WEIGHT + density * DENSITY_WEIGHT

    return min(max(score, 0.0), 1.0)


def sort_by_relevance(results: Iterable[MessageResult]) -> list[MessageResult]:
    """Highest relevance first; ties keep their input order."""
    return sorted(results, key=lambda r: -(r.relevance_score or 0.0))
