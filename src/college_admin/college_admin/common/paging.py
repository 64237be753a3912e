from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from ..core.constants import MAX_PAGE_SIZE


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @classmethod
    def of(cls, page: Any = 1, limit: Any = 10, *, default_limit: int = 10) -> "PageRequest":
        try:
            p = max(int(page or 1), 1)
        except (TypeError, ValueError):
            p = 1
        try:
            n = int(limit or default_limit)
        except (TypeError, ValueError):
            n = default_limit
        return cls(page=p, limit=min(max(n, 1), MAX_PAGE_SIZE))

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page:
    items: Sequence[Any]
    total: int
    request: PageRequest

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.request.limit) if self.total else 0

    def meta(self) -> dict:
        return {
            "count": len(self.items),
            "total": self.total,
            "totalPages": self.total_pages,
            "currentPage": self.request.page,
        }
