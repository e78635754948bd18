import math


def paginate(page, limit: int, total: int) -> dict:
    """Clamp a 1-based page number to [1, number_pages] and compute the offset.

    ``page`` may be any request value; junk falls back to the first page. An
    empty result still has one (empty) page.
    """
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1

    total = int(total or 0)
    number_pages = max(1, math.ceil(total / limit))
    page = min(max(page, 1), number_pages)

    return {
        "page": page,
        "limit": limit,
        "offset": (page - 1) * limit,
        "total": total,
        "number_pages": number_pages,
    }
