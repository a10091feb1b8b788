"""
Pagination helpers for list endpoints (page/limit query parameters).
"""

import math
from typing import Dict, List, Tuple

from fieldlines.utils.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def normalize_page(page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Tuple[int, int, int]:
    """
    Clamp page/limit to sane values.

    Returns:
        (page, limit, offset)
    """
    page = max(1, page or 1)
    limit = min(max(1, limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def page_response(key: str, items: List, total: int, page: int, limit: int) -> Dict:
    return {
        key: items,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total else 0,
    }
