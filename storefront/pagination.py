"""
Pagination and text search helpers for list endpoints.
"""
import math
from typing import Any, Iterable, List, Optional, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_pagination(page: Any = None, limit: Any = None) -> Tuple[int, int, int]:
    """Clamp raw page/limit input and return (page, limit, skip)"""
    page = max(1, _to_int(page, DEFAULT_PAGE))
    limit = max(1, min(MAX_LIMIT, _to_int(limit, DEFAULT_LIMIT)))
    return page, limit, (page - 1) * limit


def get_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def search_terms(search: Optional[str]) -> List[str]:
    if not search:
        return []
    return [term.lower() for term in search.split() if term.strip()]


def search_score(terms: List[str], fields: Iterable[Optional[str]]) -> int:
    """Number of terms found in the fields (case-insensitive)"""
    haystack = " ".join(f.lower() for f in fields if f)
    return sum(term in haystack for term in terms)


def matches_search(terms: List[str], fields: Iterable[Optional[str]]) -> bool:
    """True when any term appears in at least one of the fields"""
    return search_score(terms, fields) > 0
