"""
Page-number pagination shared by list endpoints.

Services return a django.core.paginator Page so they stay HTTP-agnostic;
views read the query parameters and render the page with these helpers.

Query parameters:
    page: 1-based page number (default 1)
    page_size: Items per page (default 20, max 100)
"""

from __future__ import annotations

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def page_params(request) -> tuple[int, int]:
    """Return (page, page_size) from the request, clamped to sane bounds."""
    page = _positive_int(request.query_params.get("page"), 1)
    page_size = _positive_int(request.query_params.get("page_size"), DEFAULT_PAGE_SIZE)
    return page, min(page_size, MAX_PAGE_SIZE)


def page_payload(page, serializer_class, context=None) -> dict:
    """Serialize a Paginator page into the list response envelope."""
    return {
        "count": page.paginator.count,
        "page": page.number,
        "total_pages": page.paginator.num_pages,
        "results": serializer_class(page.object_list, many=True, context=context or {}).data,
    }
