"""
Tests for quaternary priority trees and tree growth.
"""

import numpy as np
import pytest

from devogrow.organism import materialize
from devogrow.state import TreeState
from devogrow.tree import (
    Internal,
    Leaf,
    candidates,
    decorate,
    grow_tree,
    iter_nodes,
    neighbor_scorer,
    random_tree,
    to_devo_tree,
    tree_body_mask,
    tree_cell_values,
)
from devogrow.voxel import Voxel, area_ratio


def grown(tree, n, **kwargs) -> TreeState:
    return grow_tree(TreeState(root=to_devo_tree(tree)), n, **kwargs)


class TestGenotypeTree:
    """Tests for the tagged-union genotype."""

    def test_internal_needs_four_slots(self):
        """Internal nodes have exactly one slot per direction."""
        with pytest.raises(ValueError, match="4 child slots"):
            Internal(0.0, (None, None))

    def test_iter_nodes_preorder(self):
        """Nodes come in pre-order: parent, then N, E, S, W."""
        tree = Internal(0.0, (Leaf(1.0), None, Leaf(2.0), None))
        assert [n.priority for n in iter_nodes(tree)] == [0.0, 1.0, 2.0]

    def test_decorate(self):
        """Children sit at parent coordinate plus direction offset."""
        root = to_devo_tree(Internal(0.0, (Leaf(1.0), None, Leaf(2.0), None)))
        decorate(root)

        assert (root.x, root.y) == (0, 0)
        assert (root.children[0].x, root.children[0].y) == (0, -1)
        assert (root.children[2].x, root.children[2].y) == (0, 1)

    def test_random_tree(self, rng):
        """Random trees carry the requested number of values."""
        assert isinstance(random_tree(rng, 0, 2), Leaf)
        tree = random_tree(rng, 3, 2, p_child=1.0)
        assert all(len(n.values) == 2 for n in iter_nodes(tree))
        assert len(list(iter_nodes(tree))) == 1 + 4 + 16 + 64


class TestGrowTree:
    """Tests for priority-driven tree growth."""

    def test_first_node_is_root(self):
        """The first enabled node is the root at (0, 0)."""
        state = grown(Internal(0.0, (Leaf(1.0), Leaf(5.0), None, None)), 1)

        assert state.n_enabled == 1
        np.testing.assert_array_equal(tree_body_mask(state), [[True]])

    def test_highest_priority_first(self):
        """The highest-priority candidate is enabled next."""
        state = grown(Internal(0.0, (Leaf(1.0), Leaf(5.0), None, None)), 2)
        np.testing.assert_array_equal(tree_body_mask(state), [[True, True]])

    def test_lowest_priority_first(self):
        """With max_first=False the lowest priority wins."""
        state = grown(Internal(0.0, (Leaf(1.0), Leaf(5.0), None, None)), 2, max_first=False)
        np.testing.assert_array_equal(tree_body_mask(state), [[True], [True]])

    def test_normalized(self):
        """Coordinates are translated so the enabled minimum is (0, 0)."""
        state = grown(Internal(0.0, (Leaf(1.0), Leaf(5.0), None, None)), 3)
        root = state.root

        assert (root.x, root.y) == (0, 1)
        np.testing.assert_array_equal(tree_body_mask(state), [[True, False], [True, True]])

    def test_leaf_without_sprout_holds(self):
        """A lone leaf cannot grow without sprouting."""
        state = grown(Leaf(0.0), 3, sprout=False)
        assert state.n_enabled == 1

    def test_leaf_sprouts(self):
        """Sprouted leaves inherit their parent's priority and values."""
        state = grown(Leaf(0.5, (0.25,)), 2, sprout=True)
        nodes = state.enabled_nodes()

        assert state.n_enabled == 2
        assert all(n.values == (0.25,) for n in nodes)
        assert abs(nodes[0].x - nodes[1].x) + abs(nodes[0].y - nodes[1].y) == 1

    def test_occupied_coordinates_skipped(self):
        """Two branches reaching the same cell enable it only once."""
        tree = Internal(
            0.0,
            (
                Internal(0.0, (None, Leaf(9.0), None, None)),
                Internal(0.0, (Leaf(8.0), None, None, None)),
                None,
                None,
            ),
        )
        state = grown(tree, 5)

        assert state.n_enabled == 4
        assert tree_body_mask(state).all()

    def test_candidates_preorder(self):
        """Candidates list the disabled children of enabled nodes in pre-order."""
        root = to_devo_tree(Internal(0.0, (Leaf(1.0), None, Leaf(2.0), None)))
        decorate(root)
        root.enabled = True
        found = candidates(root)

        assert [c.priority for c in found] == [1.0, 2.0]
        assert len(candidates(root, sprout=True)) == 4

    def test_cell_values(self):
        """Per-cell values are laid out on the body grid."""
        state = grown(Internal(0.0, (None, Leaf(1.0, (7.0,)), None, None), (3.0,)), 2)
        values = tree_cell_values(state, 1)

        assert values.shape == (1, 2, 1)
        np.testing.assert_array_equal(values[..., 0], [[3.0, 7.0]])


class TestConditionedGrowth:
    """Tests for neighbour-conditioned ordering."""

    @pytest.fixture
    def previous_body(self):
        cells = np.zeros((3, 3), dtype=bool)
        cells[1, 1] = cells[2, 2] = True
        body = materialize(cells, Voxel(area_ratio=1.0))
        body[2, 2] = Voxel(area_ratio=3.0)
        return body

    def test_scorer(self, previous_body):
        """Scores aggregate the selection function over adjacent voxels."""
        score_max = neighbor_scorer(previous_body, (1, 1), area_ratio, True)
        score_min = neighbor_scorer(previous_body, (1, 1), area_ratio, False)

        assert score_max(1, 0) == 3.0
        assert score_min(1, 0) == 1.0
        assert score_max(-1, -1) == 0.0

    def test_score_before_priority(self, previous_body):
        """The neighbour score outranks the priority."""
        state = TreeState(root=to_devo_tree(Internal(0.0, (Leaf(5.0), Leaf(1.0), None, None))))
        state.root.enabled = True
        scorer = neighbor_scorer(previous_body, (1, 1), area_ratio, True)
        grow_tree(state, 2, scorer=scorer)

        assert state.root.children[1].enabled
        assert not state.root.children[0].enabled

    def test_tied_scores_fall_back_to_priority(self, previous_body):
        """Equal scores leave the decision to the priority."""
        state = TreeState(root=to_devo_tree(Internal(0.0, (Leaf(5.0), Leaf(1.0), None, None))))
        state.root.enabled = True
        scorer = neighbor_scorer(previous_body, (1, 1), area_ratio, False)
        grow_tree(state, 2, scorer=scorer, score_max_first=False)

        assert state.root.children[0].enabled
