"""Query-string helpers shared by the listing routes."""

from collections.abc import Callable
from typing import Any

from fastapi import Request

from portfolio.services.listing_service import PagedResult


def paging_args(request: Request) -> dict[str, Any]:
    """``page`` plus ``page_size`` (``limit`` accepted as an alias), unparsed.

    Values are validated by the listing service so bad input maps to InvalidQuery.
    """
    params = request.query_params
    page_size = params.get("page_size")
    if page_size is None:
        page_size = params.get("limit")
    return {"page": params.get("page"), "page_size": page_size}


def page_to_dict(result: PagedResult, items: list[Any]) -> dict[str, Any]:
    return {
        "items": items,
        "total_count": result.total_count,
        "page_count": result.page_count,
        "current_page": result.current_page,
        "page_size": result.page_size,
    }


def serialize_page(result: PagedResult, serializer: Callable[[Any], Any]) -> dict[str, Any]:
    return page_to_dict(result, [serializer(item) for item in result.items])
