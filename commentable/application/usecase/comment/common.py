"""Response items shared by the comment use cases."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from commentable.domain.model import Comment, CommentNode, PageMeta


class CommentItem(BaseModel):
    """Comment item in response."""

    comment_id: str
    commentable_type: str
    commentable_id: str
    author_id: str
    body: str
    parent_id: Optional[str]
    left_bound: int
    right_bound: int
    reply_count: int
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentItem":
        return cls(
            comment_id=str(comment.id),
            commentable_type=comment.commentable_type,
            commentable_id=comment.commentable_id,
            author_id=str(comment.author_id),
            body=comment.body,
            parent_id=str(comment.parent_id) if comment.parent_id else None,
            left_bound=comment.left_bound,
            right_bound=comment.right_bound,
            reply_count=comment.descendant_count,
            created_at=comment.created_at,
        )


class ThreadItem(CommentItem):
    """Comment with its nested replies."""

    depth: int
    replies: list["ThreadItem"]

    @classmethod
    def from_node(cls, node: CommentNode) -> "ThreadItem":
        """Convert a reply tree without recursion."""
        root = cls._single(node)
        stack = [(node, root)]
        while stack:
            source, target = stack.pop()
            for child in source.replies:
                item = cls._single(child)
                target.replies.append(item)
                stack.append((child, item))
        return root

    @classmethod
    def _single(cls, node: CommentNode) -> "ThreadItem":
        base = CommentItem.from_comment(node.comment).model_dump()
        return cls(**base, depth=node.depth, replies=[])


class PageInfo(BaseModel):
    """Pagination metadata in response."""

    count: int
    page: int
    items: int
    pages: int
    prev: Optional[int]
    next: Optional[int]

    @classmethod
    def from_meta(cls, meta: PageMeta) -> "PageInfo":
        return cls(**meta.model_dump())
