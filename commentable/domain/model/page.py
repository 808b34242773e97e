"""Paginated results and threaded views."""

import math
from typing import Generic, Optional, TypeVar

from pydantic import Field

from commentable.domain.model.comment import Comment
from commentable.domain.model.common import DomainModel

T = TypeVar("T")


class PageMeta(DomainModel):
    """Pagination metadata for one page of a listing."""

    count: int = Field(ge=0)
    page: int = Field(ge=1)
    items: int = Field(ge=1)
    pages: int = Field(ge=1)
    prev: Optional[int] = None
    next: Optional[int] = None

    @classmethod
    def build(cls, count: int, page: int, items: int) -> "PageMeta":
        """Compute page count and neighbours for a listing of `count` rows."""
        pages = max(1, math.ceil(count / items))
        return cls(
            count=count,
            page=page,
            items=items,
            pages=pages,
            prev=page - 1 if page > 1 else None,
            next=page + 1 if page < pages else None,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.items


class Page(DomainModel, Generic[T]):
    """One page of an ordered listing."""

    meta: PageMeta
    results: list[T]


class CommentNode(DomainModel):
    """A comment with its nested replies.

    Depth is relative to the root set of the listing the node came from.
    """

    comment: Comment
    depth: int = Field(ge=0)
    replies: list["CommentNode"] = Field(default_factory=list)
