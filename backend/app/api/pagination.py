from typing import Any, Sequence


def paginate(items: Sequence[Any], page: int, limit: int) -> tuple[list[Any], dict[str, Any]]:
    """Slice an already-filtered list and describe the page."""
    total = len(items)
    start = (page - 1) * limit
    end = start + limit
    return list(items[start:end]), {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": (total + limit - 1) // limit,
        "hasNext": end < total,
        "hasPrev": page > 1,
    }
