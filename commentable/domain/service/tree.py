"""Nested-set position index.

Every comment stores an interval (left_bound, right_bound) inside its forest.
All tree questions are answered with range comparisons on those bounds:

- C descends from P  <=>  P.left < C.left and C.right < P.right
- depth(C)           =   number of comments whose interval contains C's
- a pre-ordered listing is a listing sorted by left_bound

Nothing here touches storage; repositories run the same comparisons as SQL
predicates and these helpers work on the rows they return.
"""

from typing import Iterable, Optional, Sequence

from commentable.domain.error import ConsistencyError
from commentable.domain.model import Comment, CommentNode


def is_root(comment: Comment) -> bool:
    """Whether the comment starts a thread."""
    return comment.parent_id is None


def insertion_point(parent: Optional[Comment], max_right_bound: int = 0) -> int:
    """Left bound for a new leaf.

    A reply goes right after the parent's last child, which is the parent's
    current right bound. A root goes after the last root of the forest.

    Args:
        parent: Parent comment, None for a new root
        max_right_bound: Largest right bound in the forest (0 if empty)

    Returns:
        Left bound of the new comment; its right bound is this + 1
    """
    if parent is not None:
        return parent.right_bound
    return max_right_bound + 1


def ancestors_of(comment: Comment, forest: Iterable[Comment]) -> list[Comment]:
    """Comments containing the given one, root to leaf."""
    ancestors = [c for c in forest if c.contains(comment)]
    ancestors.sort(key=lambda c: c.left_bound)
    return ancestors


def descendants_of(comment: Comment, forest: Iterable[Comment]) -> list[Comment]:
    """Comments inside the given one, in pre-order."""
    descendants = [c for c in forest if comment.contains(c)]
    descendants.sort(key=lambda c: c.left_bound)
    return descendants


def depth_of(comment: Comment, forest: Iterable[Comment]) -> int:
    """Number of ancestors of the comment."""
    return sum(1 for c in forest if c.contains(comment))


def annotate_depths(preorder: Sequence[Comment]) -> list[tuple[Comment, int]]:
    """Pair each comment of a pre-ordered listing with its depth.

    Depth is counted within the listing, so a listing that starts at some
    subtree root reports depths relative to that root. Groups of subtrees
    may appear in any order (e.g. newest root first) as long as each group
    is itself pre-ordered.
    """
    annotated: list[tuple[Comment, int]] = []
    open_intervals: list[Comment] = []
    for comment in preorder:
        while open_intervals and not open_intervals[-1].contains(comment):
            open_intervals.pop()
        annotated.append((comment, len(open_intervals)))
        open_intervals.append(comment)
    return annotated


def limit_depth(preorder: Sequence[Comment], depth: Optional[int]) -> list[Comment]:
    """Drop comments nested deeper than `depth` levels (None keeps all)."""
    if depth is None:
        return list(preorder)
    return [c for c, d in annotate_depths(preorder) if d <= depth]


def build_threads(preorder: Sequence[Comment]) -> list[CommentNode]:
    """Nest a pre-ordered listing into reply trees."""
    threads: list[CommentNode] = []
    stack: list[CommentNode] = []
    for comment in preorder:
        while stack and not stack[-1].comment.contains(comment):
            stack.pop()
        node = CommentNode(comment=comment, depth=len(stack), replies=[])
        if stack:
            stack[-1].replies.append(node)
        else:
            threads.append(node)
        stack.append(node)
    return threads


def flatten_threads(threads: Sequence[CommentNode]) -> list[Comment]:
    """Pre-order listing of nested reply trees."""
    flat: list[Comment] = []
    pending = list(reversed(threads))
    while pending:
        node = pending.pop()
        flat.append(node.comment)
        pending.extend(reversed(node.replies))
    return flat


def verify_forest(comments: Iterable[Comment], contiguous: bool = True) -> None:
    """Check the nested-set invariants of one forest.

    Args:
        comments: Every comment of a single forest, in any order
        contiguous: Also require the bounds to be exactly 1..2n

    Raises:
        ConsistencyError: On the first violation found
    """
    ordered = sorted(comments, key=lambda c: c.left_bound)
    if not ordered:
        return

    scope = (ordered[0].commentable_type, ordered[0].commentable_id)
    seen_bounds: set[int] = set()
    stack: list[Comment] = []

    for comment in ordered:
        if (comment.commentable_type, comment.commentable_id) != scope:
            raise ConsistencyError(
                f"Comment {comment.id} belongs to another forest than {scope}"
            )
        if comment.left_bound >= comment.right_bound:
            raise ConsistencyError(f"Comment {comment.id} has an empty interval")
        for bound in (comment.left_bound, comment.right_bound):
            if bound in seen_bounds:
                raise ConsistencyError(
                    f"Bound {bound} is used twice (comment {comment.id})"
                )
            seen_bounds.add(bound)

        while stack and stack[-1].right_bound < comment.left_bound:
            stack.pop()
        if stack and comment.right_bound > stack[-1].right_bound:
            raise ConsistencyError(
                f"Comment {comment.id} partially overlaps comment {stack[-1].id}"
            )

        expected_parent = stack[-1].id if stack else None
        if comment.parent_id != expected_parent:
            raise ConsistencyError(
                f"Comment {comment.id} has parent {comment.parent_id} "
                f"but its interval lies in {expected_parent}"
            )
        stack.append(comment)

    if contiguous and seen_bounds != set(range(1, 2 * len(ordered) + 1)):
        raise ConsistencyError(f"Bounds of forest {scope} are not contiguous")
