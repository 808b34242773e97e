"""Unit tests for the nested-set position index."""

import pytest

from commentable.domain.error import ConsistencyError
from commentable.domain.service import tree
from tests.factories import make_comment, make_ref


def _sample_forest():
    """Two threads:

    A (1,8)          D (9,12)
      B (2,5)          E (10,11)
        C (3,4)
      F (6,7)
    """
    a = make_comment(1, 8, minute=0)
    b = make_comment(2, 5, parent=a, minute=1)
    c = make_comment(3, 4, parent=b, minute=2)
    f = make_comment(6, 7, parent=a, minute=3)
    d = make_comment(9, 12, minute=4)
    e = make_comment(10, 11, parent=d, minute=5)
    return a, b, c, f, d, e


class TestInsertionPoint:
    """Tests for insertion_point."""

    def test_first_root_of_empty_forest(self):
        assert tree.insertion_point(None, max_right_bound=0) == 1

    def test_root_goes_after_last_root(self):
        assert tree.insertion_point(None, max_right_bound=12) == 13

    def test_reply_goes_at_parent_right_bound(self):
        parent = make_comment(2, 5)
        assert tree.insertion_point(parent, max_right_bound=12) == 5


class TestRelations:
    """Tests for ancestor, descendant and depth lookups."""

    def test_ancestors_root_first(self):
        a, b, c, f, d, e = _sample_forest()
        forest = [e, d, c, b, a, f]

        assert tree.ancestors_of(c, forest) == [a, b]
        assert tree.ancestors_of(a, forest) == []

    def test_descendants_in_preorder(self):
        a, b, c, f, d, e = _sample_forest()
        forest = [e, f, d, c, b, a]

        assert tree.descendants_of(a, forest) == [b, c, f]
        assert tree.descendants_of(c, forest) == []

    def test_depth_counts_containing_intervals(self):
        a, b, c, f, d, e = _sample_forest()
        forest = [a, b, c, f, d, e]

        assert tree.depth_of(a, forest) == 0
        assert tree.depth_of(f, forest) == 1
        assert tree.depth_of(c, forest) == 2

    def test_other_forest_is_never_related(self):
        a, *_ = _sample_forest()
        stranger = make_comment(2, 3, scope=make_ref("post", "2"))

        assert not a.contains(stranger)
        assert tree.depth_of(stranger, [a]) == 0


class TestDepthLimiting:
    """Tests for annotate_depths and limit_depth."""

    def test_annotate_handles_newest_root_first(self):
        a, b, c, f, d, e = _sample_forest()
        listing = [d, e, a, b, c, f]

        depths = [depth for _, depth in tree.annotate_depths(listing)]

        assert depths == [0, 1, 0, 1, 2, 1]

    def test_depth_zero_keeps_roots_only(self):
        a, b, c, f, d, e = _sample_forest()

        assert tree.limit_depth([a, b, c, f, d, e], 0) == [a, d]

    def test_depth_one_drops_grandchildren(self):
        a, b, c, f, d, e = _sample_forest()

        assert tree.limit_depth([a, b, c, f, d, e], 1) == [a, b, f, d, e]

    def test_no_limit_keeps_everything(self):
        forest = list(_sample_forest())

        assert tree.limit_depth(forest, None) == forest


class TestThreads:
    """Tests for build_threads and flatten_threads."""

    def test_build_nests_replies(self):
        a, b, c, f, d, e = _sample_forest()

        threads = tree.build_threads([a, b, c, f, d, e])

        assert [t.comment for t in threads] == [a, d]
        assert [r.comment for r in threads[0].replies] == [b, f]
        assert threads[0].replies[0].replies[0].comment == c
        assert threads[0].replies[0].replies[0].depth == 2
        assert threads[1].replies[0].comment == e

    def test_flatten_restores_preorder(self):
        forest = list(_sample_forest())

        assert tree.flatten_threads(tree.build_threads(forest)) == forest

    def test_deep_chain_does_not_recurse(self):
        depth = 3000
        chain = []
        parent = None
        for level in range(depth):
            parent = make_comment(
                level + 1, 2 * depth - level, parent=parent, minute=level
            )
            chain.append(parent)

        threads = tree.build_threads(chain)

        assert len(tree.flatten_threads(threads)) == depth


class TestVerifyForest:
    """Tests for verify_forest."""

    def test_valid_forest_passes(self):
        tree.verify_forest(_sample_forest())

    def test_empty_forest_passes(self):
        tree.verify_forest([])

    def test_duplicate_bound_fails(self):
        a = make_comment(1, 4)
        b = make_comment(2, 4, parent=a)

        with pytest.raises(ConsistencyError, match="used twice"):
            tree.verify_forest([a, b])

    def test_partial_overlap_fails(self):
        a = make_comment(1, 4)
        b = make_comment(3, 6)

        with pytest.raises(ConsistencyError, match="partially overlaps"):
            tree.verify_forest([a, b], contiguous=False)

    def test_parent_mismatch_fails(self):
        a = make_comment(1, 4)
        b = make_comment(2, 3)  # inside a but stored as a root

        with pytest.raises(ConsistencyError, match="has parent"):
            tree.verify_forest([a, b])

    def test_gap_fails_when_contiguous(self):
        a = make_comment(1, 2)
        b = make_comment(5, 6)

        with pytest.raises(ConsistencyError, match="not contiguous"):
            tree.verify_forest([a, b])
        tree.verify_forest([a, b], contiguous=False)

    def test_mixed_forests_fail(self):
        a = make_comment(1, 2)
        b = make_comment(3, 4, scope=make_ref("post", "other"))

        with pytest.raises(ConsistencyError, match="another forest"):
            tree.verify_forest([a, b])
