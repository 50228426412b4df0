"""
Page/limit pagination shared by the admin listings.
"""

from django.core.paginator import EmptyPage, Paginator

from core.exceptions import InvalidInput

MAX_PAGE_SIZE = 200


def paginate(queryset, page: int = 1, limit: int = 20) -> tuple[list, dict]:
    """
    Slice an ordered queryset into one page.

    A page past the end is empty rather than an error.

    Returns:
        tuple: (items on the page, ``{"page", "limit", "total", "pages"}``)
    """
    try:
        page = int(page)
        limit = int(limit)
    except (TypeError, ValueError):
        raise InvalidInput("Page and limit must be integers.")
    if page < 1 or limit < 1:
        raise InvalidInput("Page and limit must be positive integers.")
    limit = min(limit, MAX_PAGE_SIZE)

    paginator = Paginator(queryset, limit)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []

    total = paginator.count
    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": paginator.num_pages if total else 0,
    }
