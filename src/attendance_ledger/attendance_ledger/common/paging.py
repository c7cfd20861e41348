from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int
    total_pages: int = field(init=False)

    def __post_init__(self):
        pages = (self.total + self.limit - 1) // self.limit if self.limit else 0
        object.__setattr__(self, "total_pages", pages)
