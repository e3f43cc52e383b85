#!/usr/bin/env python3
"""
Tests for collective communication op rules.
"""

from tests.test_utils import tensor, scalar, unranked, reducer, infer_ok, infer_err
from shapeinfer.ir.ops import AllReduceOp, AllToAllOp, ReduceScatterOp, CollectivePermuteOp
from shapeinfer.ir.region import Region
from shapeinfer.shared.errors import (
    IncompatibleShape, InvalidAttributeValue, InvalidDimensionMapping, InvalidReplicaGroups,
    ReducerSignatureMismatch, AttributeArityMismatch,
)
from shapeinfer.shared.types import BF16, F32, I32

GROUPS = [[0, 1], [2, 3]]


class TestAllReduce:
    def test_all_reduce(self):
        op = AllReduceOp(tensor(F32, 8, 4), GROUPS, reducer(F32))
        assert infer_ok(op) == [tensor(F32, 8, 4)]

    def test_accumulator_element_type(self):
        body = Region([scalar(F32), scalar(BF16)], [scalar(F32)])
        op = AllReduceOp(tensor(BF16, 8), GROUPS, body)
        assert infer_ok(op) == [tensor(F32, 8)]

    def test_uneven_groups_allowed(self):
        op = AllReduceOp(tensor(F32, 8), [[0, 1, 2], [3, -1, -1]], reducer(F32))
        assert infer_ok(op) == [tensor(F32, 8)]

    def test_only_padding_ids_rejected(self):
        op = AllReduceOp(tensor(F32, 8), [[-1, -1]], reducer(F32))
        err = infer_err(op, InvalidReplicaGroups)
        assert "empty" in err.message

    def test_bad_groups(self):
        op = AllReduceOp(tensor(F32, 8), [[0, 1], [1, 2]], reducer(F32))
        infer_err(op, InvalidReplicaGroups)

    def test_bad_body(self):
        op = AllReduceOp(tensor(F32, 8), GROUPS, reducer(I32))
        infer_err(op, ReducerSignatureMismatch)


class TestAllToAll:
    def test_split_and_concat(self):
        op = AllToAllOp(tensor(F32, 4, 6), split_dimension=0, concat_dimension=1,
                        split_count=2, replica_groups=[[0, 1]])
        assert infer_ok(op) == [tensor(F32, 2, 12)]

    def test_same_dimension(self):
        op = AllToAllOp(tensor(F32, 4, 6), split_dimension=1, concat_dimension=1,
                        split_count=2, replica_groups=[[0, 1]])
        assert infer_ok(op) == [tensor(F32, 4, 6)]

    def test_indivisible_split(self):
        op = AllToAllOp(tensor(F32, 5, 6), split_dimension=0, concat_dimension=1,
                        split_count=2, replica_groups=[[0, 1]])
        infer_err(op, IncompatibleShape)

    def test_group_size_must_match_split_count(self):
        op = AllToAllOp(tensor(F32, 4, 6), split_dimension=0, concat_dimension=1,
                        split_count=2, replica_groups=[[0, 1, 2, 3]])
        infer_err(op, InvalidReplicaGroups)

    def test_dimension_out_of_range(self):
        op = AllToAllOp(tensor(F32, 4), split_dimension=0, concat_dimension=1,
                        split_count=2, replica_groups=[[0, 1]])
        infer_err(op, InvalidDimensionMapping)

    def test_split_count(self):
        op = AllToAllOp(tensor(F32, 4), split_dimension=0, concat_dimension=0,
                        split_count=0, replica_groups=[[0, 1]])
        infer_err(op, InvalidAttributeValue)


class TestReduceScatter:
    def test_reduce_scatter(self):
        op = ReduceScatterOp(tensor(F32, 8, 4), 0, GROUPS, reducer(F32))
        assert infer_ok(op) == [tensor(F32, 4, 4)]

    def test_dynamic_scatter_extent(self):
        op = ReduceScatterOp(tensor(F32, None, 4), 0, GROUPS, reducer(F32))
        assert infer_ok(op) == [tensor(F32, None, 4)]

    def test_declared_result(self):
        op = ReduceScatterOp(tensor(F32, None, 4), 0, GROUPS, reducer(F32),
                             result=tensor(F32, 3, 4))
        assert infer_ok(op) == [tensor(F32, 3, 4)]

    def test_indivisible(self):
        op = ReduceScatterOp(tensor(F32, 5, 4), 0, GROUPS, reducer(F32))
        infer_err(op, IncompatibleShape)

    def test_scalar_operand(self):
        infer_err(ReduceScatterOp(scalar(F32), 0, GROUPS, reducer(F32)), IncompatibleShape)

    def test_unranked(self):
        op = ReduceScatterOp(unranked(F32), 1, GROUPS, reducer(F32))
        assert infer_ok(op) == [unranked(F32)]

    def test_groups_must_be_same_size(self):
        op = ReduceScatterOp(tensor(F32, 8), 0, [[0, 1], [2]], reducer(F32))
        infer_err(op, InvalidReplicaGroups)


class TestCollectivePermute:
    def test_permute(self):
        op = CollectivePermuteOp(tensor(F32, 3), [[0, 1], [1, 2], [2, 0]])
        assert infer_ok(op) == [tensor(F32, 3)]

    def test_duplicate_target(self):
        infer_err(CollectivePermuteOp(tensor(F32, 3), [[0, 1], [2, 1]]), InvalidAttributeValue)

    def test_negative_id(self):
        infer_err(CollectivePermuteOp(tensor(F32, 3), [[0, -1]]), InvalidAttributeValue)

    def test_pairs_shape(self):
        infer_err(CollectivePermuteOp(tensor(F32, 3), [[0, 1, 2]]), AttributeArityMismatch)
