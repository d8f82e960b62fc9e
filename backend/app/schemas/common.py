# backend/app/schemas/common.py
from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope. Failures are rendered by app.core.errors."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int

    @classmethod
    def build(cls, *, page: int, page_size: int, total_count: int) -> "Pagination":
        total_pages = (total_count + page_size - 1) // page_size if page_size else 0
        return cls(page=page, page_size=page_size, total_count=total_count, total_pages=total_pages)
