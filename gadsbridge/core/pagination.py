"""GADS Bridge — Cursor pagination helpers.

Google Ads paginates with an opaque page token; callers see it as
``next_cursor`` and hand it back as ``paging.cursor``.
"""

from typing import Generic, List, Optional, Tuple, TypeVar

from pydantic import BaseModel

from gadsbridge.config import settings

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    rows: List[T]
    next_cursor: Optional[str] = None
    total_results: Optional[int] = None


def normalize_pagination_params(
    limit: Optional[int] = None, cursor: Optional[str] = None
) -> Tuple[int, Optional[str]]:
    """Return ``(limit, page_token)`` with the limit defaulted and capped."""
    page_size = limit or settings.default_page_size
    return min(page_size, settings.max_page_size), cursor or None


def create_paginated_response(
    rows: List[T],
    next_page_token: Optional[str] = None,
    total_results: Optional[int] = None,
) -> PaginatedResponse[T]:
    return PaginatedResponse(
        rows=rows,
        next_cursor=next_page_token or None,
        total_results=total_results,
    )
