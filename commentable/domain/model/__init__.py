"""Domain model entities for threaded comments."""

from commentable.domain.model.comment import Comment
from commentable.domain.model.page import CommentNode, Page, PageMeta

__all__ = [
    "Comment",
    "CommentNode",
    "Page",
    "PageMeta",
]
