"""Strongly typed identifiers for comment entities.

Using NewType for strong typing prevents mixing up different entity IDs
and makes the code more self-documenting.
"""

from typing import NewType
from uuid import UUID

CommentId = NewType("CommentId", UUID)
UserId = NewType("UserId", UUID)
