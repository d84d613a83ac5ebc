"""
Response envelope and pagination shared by every router.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from fastapi import Query

from quota_console.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE


def api_success(data: Any = None, message: str = "") -> dict:
    return {"success": True, "message": message, "data": data}


def api_error(message: str) -> dict:
    return {"success": False, "message": message, "data": None}


@dataclass
class PageInfo:
    page: int
    page_size: int
    total: int = 0
    items: List[Any] = field(default_factory=list)

    @property
    def start_idx(self) -> int:
        return (self.page - 1) * self.page_size

    def to_dict(self) -> dict:
        return {
            "page": self.page,
            "page_size": self.page_size,
            "total": self.total,
            "items": self.items,
        }


def get_page_info(
    page: Optional[int] = Query(None),
    p: Optional[int] = Query(None),
    page_size: Optional[int] = Query(None),
    size: Optional[int] = Query(None)
) -> PageInfo:
    """
    Pagination from the query string.

    Accepts page or p for the page number and page_size or size for the page
    size. Pages below 1 become 1; sizes outside 1..MAX_PAGE_SIZE fall back
    to the default.
    """
    number = page if page is not None else p
    per_page = page_size if page_size is not None else size

    if number is None or number < 1:
        number = 1
    if per_page is None or per_page < 1 or per_page > MAX_PAGE_SIZE:
        per_page = DEFAULT_PAGE_SIZE
    return PageInfo(page=number, page_size=per_page)
