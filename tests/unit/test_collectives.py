#!/usr/bin/env python3
"""
Tests for replica group validation.
"""

import numpy as np
import pytest
from shapeinfer.inference.collectives import verify_replica_groups, group_size
from shapeinfer.shared.errors import InvalidReplicaGroups


class TestReplicaGroupsAccepted:
    """Grids that partition [0, N)."""

    def test_two_pairs(self):
        assert verify_replica_groups([[0, 1], [2, 3]], True) == [[0, 1], [2, 3]]

    def test_numpy_grid(self):
        verify_replica_groups(np.array([[1, 0], [3, 2]]), True)

    def test_padded_groups_when_sizes_may_differ(self):
        rows = verify_replica_groups([[0, 1, 2], [3, -1, -1]], False)
        assert group_size(rows) == 3

    def test_uneven_groups_when_sizes_may_differ(self):
        verify_replica_groups([[0, 1], [2]], False)

    def test_expected_group_size(self):
        verify_replica_groups([[0, 1], [2, 3]], True, expected_group_size=2)


class TestReplicaGroupsRejected:
    """Each rule on its own, then several at once."""

    def test_not_two_dimensional(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([0, 1], True)
        assert "rank 2" in exc.value.message

    def test_empty(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([], True)
        assert "empty" in exc.value.message

    def test_only_padding_ids(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[-1, -1], [-1]], False)
        assert "empty" in exc.value.message

    def test_duplicate_id(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1], [1, 2]], True)
        assert "replica id #1 seen more than once" in exc.value.message

    def test_missing_id(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1], [2, 4]], True)
        assert "replica id #3 not seen in replica groups" in exc.value.message

    def test_unequal_sizes(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1], [2]], True)
        assert "same size" in exc.value.message

    def test_padding_not_allowed_when_sizes_equal(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1], [2, -1]], True)
        assert "Invalid replica id -1" in exc.value.message

    def test_group_size_mismatch(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1, 2, 3]], True, expected_group_size=2)
        assert "group size of replica_groups must be 2" in exc.value.message

    def test_all_violations_reported(self):
        with pytest.raises(InvalidReplicaGroups) as exc:
            verify_replica_groups([[0, 1], [1]], True, expected_group_size=2)
        err = exc.value
        assert "same size" in err.message
        assert any("seen more than once" in note for note in err.notes)
        assert any("group size" in note for note in err.notes)
