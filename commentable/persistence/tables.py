"""SQLAlchemy table definitions for threaded comments.

These table definitions are used with SQLAlchemy Core statements.
They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# COMMENTS TABLE (nested set per commentable)
# ============================================================================
comments_table = Table(
    "comments",
    metadata,
    Column("id", UUID(as_uuid=True), primary_key=True),
    Column("commentable_type", String(64), nullable=False),
    Column("commentable_id", String(128), nullable=False),
    Column("author_id", UUID(as_uuid=True), nullable=False),
    Column(
        "parent_id",
        UUID(as_uuid=True),
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("body", Text, nullable=False),
    Column("left_bound", Integer, nullable=False),
    Column("right_bound", Integer, nullable=False),
    Column(
        "created_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("NOW()"),
    ),
    CheckConstraint("left_bound >= 1", name="left_bound_positive"),
    CheckConstraint("left_bound < right_bound", name="bounds_ordered"),
    CheckConstraint("length(body) > 0", name="body_not_empty"),
)

# Range queries on the forest of one commentable
Index(
    "idx_comments_scope_left_bound",
    comments_table.c.commentable_type,
    comments_table.c.commentable_id,
    comments_table.c.left_bound,
)
Index(
    "idx_comments_scope_right_bound",
    comments_table.c.commentable_type,
    comments_table.c.commentable_id,
    comments_table.c.right_bound,
)
Index(
    "idx_comments_scope_created_at",
    comments_table.c.commentable_type,
    comments_table.c.commentable_id,
    comments_table.c.created_at,
)
Index(
    "idx_comments_author_created_at",
    comments_table.c.author_id,
    comments_table.c.created_at,
)
Index("idx_comments_parent_id", comments_table.c.parent_id)
