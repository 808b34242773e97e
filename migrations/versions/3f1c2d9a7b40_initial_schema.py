"""initial_schema

Create the comments table: one nested-set forest per commentable
(commentable_type, commentable_id), threaded through left/right bounds.

Revision ID: 3f1c2d9a7b40
Revises:
Create Date: 2026-10-18 10:12:44.518302

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1c2d9a7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # COMMENTS table
    # ========================================================================
    op.create_table(
        "comments",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("commentable_type", sa.String(64), nullable=False),
        sa.Column("commentable_id", sa.String(128), nullable=False),
        sa.Column("author_id", sa.UUID(), nullable=False),
        sa.Column("parent_id", sa.UUID(), nullable=True),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("left_bound", sa.Integer(), nullable=False),
        sa.Column("right_bound", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["parent_id"], ["comments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("left_bound >= 1", name="left_bound_positive"),
        sa.CheckConstraint("left_bound < right_bound", name="bounds_ordered"),
        sa.CheckConstraint("length(body) > 0", name="body_not_empty"),
    )

    # Range scans within one forest
    op.create_index(
        "idx_comments_scope_left_bound",
        "comments",
        ["commentable_type", "commentable_id", "left_bound"],
    )
    op.create_index(
        "idx_comments_scope_right_bound",
        "comments",
        ["commentable_type", "commentable_id", "right_bound"],
    )
    op.create_index(
        "idx_comments_scope_created_at",
        "comments",
        ["commentable_type", "commentable_id", "created_at"],
    )
    op.create_index(
        "idx_comments_author_created_at", "comments", ["author_id", "created_at"]
    )
    op.create_index("idx_comments_parent_id", "comments", ["parent_id"])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_comments_parent_id", table_name="comments")
    op.drop_index("idx_comments_author_created_at", table_name="comments")
    op.drop_index("idx_comments_scope_created_at", table_name="comments")
    op.drop_index("idx_comments_scope_right_bound", table_name="comments")
    op.drop_index("idx_comments_scope_left_bound", table_name="comments")
    op.drop_table("comments")
