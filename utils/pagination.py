import math
from typing import Any, Callable, Dict


def build_pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    """Pagination block returned alongside list data"""
    total_pages = math.ceil(total / limit) if total > 0 else 0
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': total_pages,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


def paginate_query(query, page: int, limit: int, serializer: Callable) -> Dict[str, Any]:
    """Run an ordered query for one page (skip = (page-1) * limit)"""
    result = query.paginate(page=page, per_page=limit, error_out=False, count=True)
    return {
        'data': [serializer(item) for item in result.items],
        'pagination': build_pagination_meta(page, limit, result.total or 0),
    }
