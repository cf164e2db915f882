# eventflow/services/pagination.py
"""
Page/limit pagination over Tortoise querysets.

Pages are 1-based; `pages` is ceil(total / limit). Callers must order the
queryset by a total order (e.g. created_at then id) so that walking every
page yields each row exactly once.
"""
import math
from typing import Any

from tortoise.queryset import QuerySet


def page_meta(page: int, limit: int, total: int) -> dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


async def paginate(qs: QuerySet, page: int, limit: int) -> tuple[list[Any], dict[str, int]]:
    """
    Fetch one page of a queryset together with its pagination metadata.

    Args:
        qs: Filtered and ordered queryset
        page: 1-based page number
        limit: Page size

    Returns:
        Tuple of (rows on the requested page, pagination dict)
    """
    total = await qs.count()
    rows = await qs.offset((page - 1) * limit).limit(limit)
    return rows, page_meta(page, limit, total)
