from __future__ import annotations

from dataclasses import dataclass

from app.core.config import settings
from app.core.error_codes import ErrorCode
from app.core.exceptions import ValidationError


@dataclass(frozen=True)
class PageMeta:
    total: int
    page: int
    limit: int
    page_count: int


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    limit: int = settings.feed_default_limit

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError(ErrorCode.INVALID_FIELD.value, "page must be >= 1")
        if not 1 <= self.limit <= settings.feed_max_limit:
            raise ValidationError(
                ErrorCode.INVALID_FIELD.value,
                f"limit must be between 1 and {settings.feed_max_limit}",
            )

    @classmethod
    def from_query(cls, page: int | None, limit: int | None) -> PageParams:
        return cls(
            page=1 if page is None else page,
            limit=settings.feed_default_limit if limit is None else limit,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> PageMeta:
        page_count = -(-total // self.limit)
        return PageMeta(total=total, page=self.page, limit=self.limit, page_count=page_count)
