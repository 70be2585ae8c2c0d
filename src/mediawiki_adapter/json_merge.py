"""
Merging and counting helpers for continued API results
"""

import copy
from typing import Any


def merge_json(a: Any, b: Any) -> Any:
    """
    Merge result b into accumulator a and return the merged value

    Objects merge key by key, arrays are concatenated in order, and any
    other pair is replaced by b. Dicts and lists in a are updated in place;
    nothing from b is aliased, so later merges never change b.

    Args:
        a: Accumulator so far (None before the first page)
        b: Next page of results

    Returns:
        The merged accumulator
    """
    if isinstance(a, dict) and isinstance(b, dict):
        for key, value in b.items():
            a[key] = merge_json(a.get(key), value)
        return a

    if isinstance(a, list) and isinstance(b, list):
        a.extend(copy.deepcopy(b))
        return a

    return copy.deepcopy(b)


def count_query_results(result: Any) -> int:
    """
    Length of the first list found under result["query"], or 0 if unknown
    """
    if not isinstance(result, dict):
        return 0

    query = result.get('query')
    if not isinstance(query, dict):
        return 0

    for part in query.values():
        if isinstance(part, list):
            return len(part)
    return 0
