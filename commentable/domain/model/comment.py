"""Comment entity.

Comments are threaded discussions on any commentable entity. Their place in
the forest of their commentable is stored as a nested-set interval
(left_bound, right_bound): a comment is a descendant of another exactly when
its interval lies strictly inside the other's.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, model_validator

from commentable.domain.model.common import DomainModel
from commentable.domain.value import CommentableRef, CommentId, UserId


class Comment(DomainModel):
    """Comment entity.

    Threading is managed through:
    - parent_id: Direct parent comment (None for roots)
    - left_bound/right_bound: Nested-set interval within the forest scope,
      assigned and shifted only by the mutation protocol
    """

    id: CommentId
    commentable_type: str
    commentable_id: str
    author_id: UserId
    body: str = Field(min_length=1, max_length=10000)
    parent_id: Optional[CommentId] = None
    left_bound: int = Field(ge=1)
    right_bound: int = Field(ge=2)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def validate_bounds(self) -> "Comment":
        """Left bound must be strictly smaller than right bound."""
        if self.left_bound >= self.right_bound:
            raise ValueError(
                f"left_bound ({self.left_bound}) must be smaller than "
                f"right_bound ({self.right_bound})"
            )
        return self

    @property
    def scope(self) -> CommentableRef:
        """Forest scope this comment belongs to."""
        return CommentableRef(type_tag=self.commentable_type, id=self.commentable_id)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return self.right_bound - self.left_bound == 1

    @property
    def descendant_count(self) -> int:
        """Number of comments below this one (each occupies two bounds)."""
        return (self.right_bound - self.left_bound - 1) // 2

    def contains(self, other: "Comment") -> bool:
        """Whether other is a strict descendant of this comment."""
        return (
            self.commentable_type == other.commentable_type
            and self.commentable_id == other.commentable_id
            and self.left_bound < other.left_bound
            and other.right_bound < self.right_bound
        )
