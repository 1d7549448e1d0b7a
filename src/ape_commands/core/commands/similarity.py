"""
Edit-distance helpers for typo-tolerant command suggestions.
"""

from typing import Iterable, List, Tuple


def levenshtein_distance(a: str, b: str) -> int:
    """Classic insert/delete/substitute edit distance."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + cost,
            ))
        previous = current

    return previous[-1]


def normalized_distance(a: str, b: str) -> float:
    """Edit distance divided by the longer length; 0.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return levenshtein_distance(a, b) / longest


def rank_candidates(
    query: str,
    candidates: Iterable[str],
    threshold: float = 0.5,
    limit: int = 5,
) -> List[str]:
    """
    Return the candidates closest to ``query``.

    Only candidates with a normalized distance strictly below ``threshold``
    are kept. Results are ordered by distance; equal distances keep the
    order in which ``candidates`` yielded them, so the output is
    deterministic for a given registry state.
    """
    query = query.lower()
    scored: List[Tuple[float, int, str]] = []
    seen = set()

    for position, candidate in enumerate(candidates):
        if candidate in seen:
            continue
        seen.add(candidate)

        distance = normalized_distance(query, candidate.lower())
        if distance < threshold:
            scored.append((distance, position, candidate))

    scored.sort(key=lambda item: (item[0], item[1]))
    return [candidate for _, _, candidate in scored[:limit]]
