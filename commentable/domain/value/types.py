"""Domain value objects for threaded comments.

Value objects are immutable and defined by their values, not identity.
They encapsulate validation rules and business logic.
"""

import re
from enum import Enum

from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator

from commentable.domain.error import ValidationError
from commentable.domain.value.common import ValueObject

TYPE_TAG_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9_.]{0,63}$")
COMMENTABLE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


class CommentOrder(str, Enum):
    """Order for flat comment listings (roots, submissions, author)."""

    NEWEST = "newest"  # created_at DESC
    OLDEST = "oldest"  # created_at ASC


class CommentableRef(ValueObject):
    """Identity of an entity that owns a comment forest.

    The pair (type_tag, id) is the forest scope: every comment belongs to
    exactly one scope and intervals are only comparable within it.
    """

    type_tag: str
    id: str

    @field_validator("type_tag")
    @classmethod
    def validate_type_tag(cls, v: str) -> str:
        """Validate type tag format."""
        if not TYPE_TAG_PATTERN.match(v):
            raise ValueError(
                "Commentable type must be 1-64 characters, start with a letter "
                "and contain only letters, digits, '_' or '.'"
            )
        return v

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: object) -> str:
        """Stringify and validate the owner id (integer and UUID ids allowed)."""
        value = str(v)
        if not COMMENTABLE_ID_PATTERN.match(value):
            raise ValueError(
                "Commentable id must be 1-128 characters of letters, digits, '_' or '-'"
            )
        return value

    def __str__(self) -> str:
        return f"{self.type_tag}:{self.id}"

    @classmethod
    def of(cls, type_tag: str, commentable_id: object) -> "CommentableRef":
        """Build a reference from untrusted input.

        Raises:
            ValidationError: If the type tag or id is malformed
        """
        try:
            return cls(type_tag=type_tag, id=commentable_id)
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ValidationError(f"Invalid commentable reference: {messages}") from e
