"""
Page/limit query parameters shared by list endpoints.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Query

from .config import get_settings
from .responses import validation_error


@dataclass(frozen=True)
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def get_page_params(
    page: int = Query(1, description="1-based page number"),
    limit: Optional[int] = Query(None, description="Items per page"),
) -> PageParams:
    """Validate page and limit against the configured bounds."""
    settings = get_settings()
    if limit is None:
        limit = settings.default_page_size

    if page < 1:
        validation_error("page must be at least 1", {"field": "page"})
    if limit < 1 or limit > settings.max_page_size:
        validation_error(
            f"limit must be between 1 and {settings.max_page_size}",
            {"field": "limit"},
        )
    return PageParams(page=page, limit=limit)
