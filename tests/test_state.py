"""
Tests for cross-stage development states.
"""

import numpy as np

from devogrow.state import DevoNode, OccupancyState, PhaseState, TreeState


class TestOccupancyState:
    """Tests for OccupancyState."""

    def test_empty(self):
        """An empty state has the grid shape and no enabled cell."""
        state = OccupancyState.empty(4, 3)

        assert state.shape == (3, 4)
        assert state.n_enabled == 0

    def test_clone(self):
        """Clone creates independent copy."""
        state = OccupancyState.empty(2, 2)
        cloned = state.clone()
        cloned.enabled[0, 0] = True

        assert cloned.n_enabled == 1
        assert state.n_enabled == 0


class TestPhaseState:
    """Tests for PhaseState."""

    def test_nan_means_absent(self):
        """Cells with a phase are enabled, NaN cells are not."""
        state = PhaseState.empty(3, 2)
        state.phases[1, 2] = 0.0

        assert state.shape == (2, 3)
        assert state.n_enabled == 1
        assert state.enabled[1, 2]

    def test_clone(self):
        """Clone creates independent copy."""
        state = PhaseState.empty(2, 2)
        cloned = state.clone()
        cloned.phases[0, 0] = 1.0

        assert np.isnan(state.phases[0, 0])


class TestTreeState:
    """Tests for TreeState."""

    def test_counts_enabled_nodes(self):
        """Only enabled nodes under enabled ancestors are counted."""
        root = DevoNode(enabled=True)
        root.children[1] = DevoNode(x=1, enabled=True)
        root.children[2] = DevoNode(y=1)
        state = TreeState(root=root)

        assert state.n_enabled == 2
        assert [(n.x, n.y) for n in state.enabled_nodes()] == [(0, 0), (1, 0)]

    def test_walk_preorder(self):
        """Walk visits the node, then its N, E, S, W subtrees."""
        root = DevoNode(priority=0.0)
        root.children[3] = DevoNode(priority=3.0)
        root.children[0] = DevoNode(priority=1.0)
        root.children[0].children[1] = DevoNode(priority=2.0)

        assert [n.priority for n in root.walk()] == [0.0, 1.0, 2.0, 3.0]

    def test_clone(self):
        """Clone copies the whole tree."""
        root = DevoNode(enabled=True)
        root.children[0] = DevoNode()
        state = TreeState(root=root)
        cloned = state.clone()
        cloned.root.children[0].enabled = True

        assert cloned.n_enabled == 2
        assert state.n_enabled == 1

    def test_children_not_shared(self):
        """Every node gets its own child slots."""
        a, b = DevoNode(), DevoNode()
        a.children[0] = DevoNode()

        assert b.children == [None, None, None, None]
