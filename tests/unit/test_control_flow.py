#!/usr/bin/env python3
"""
Tests for control flow, tuple and token rules.
"""

from tests.test_utils import tensor, scalar, unranked, infer_ok, infer_err
from shapeinfer.ir.ops import (
    IfOp, CaseOp, WhileOp, TupleOp, GetTupleElementOp, OptimizationBarrierOp, ReturnOp,
    AfterAllOp, CreateTokenOp, SendOp, OutfeedOp, PartitionIdOp, ReplicaIdOp,
)
from shapeinfer.ir.region import Region
from shapeinfer.shared.errors import (
    IncompatibleShape, IncompatibleElementType, InvalidAttributeValue, InvalidOperand,
    InvalidRegion,
)
from shapeinfer.shared.types import F32, I1, I32, I64, UI32, TOKEN, TupleType


class TestIfCase:
    """Branch results unify to the most specific common type."""

    def test_if_refines(self):
        op = IfOp(scalar(I1), Region([], [tensor(F32, 2, None)]), Region([], [tensor(F32, None, 3)]))
        assert infer_ok(op) == [tensor(F32, 2, 3)]

    def test_if_ranked_wins(self):
        op = IfOp(scalar(I1), Region([], [unranked(F32)]), Region([], [tensor(F32, 4)]))
        assert infer_ok(op) == [tensor(F32, 4)]

    def test_if_predicate(self):
        op = IfOp(scalar(I32), Region([], [scalar(F32)]), Region([], [scalar(F32)]))
        infer_err(op, InvalidOperand)

    def test_if_branch_shapes(self):
        op = IfOp(scalar(I1), Region([], [tensor(F32, 2)]), Region([], [tensor(F32, 3)]))
        infer_err(op, IncompatibleShape)

    def test_if_branch_element_types(self):
        op = IfOp(scalar(I1), Region([], [tensor(F32, 2)]), Region([], [tensor(I32, 2)]))
        infer_err(op, IncompatibleElementType)

    def test_if_result_counts(self):
        op = IfOp(scalar(I1), Region([], [scalar(F32)]), Region([], []))
        infer_err(op, IncompatibleShape)

    def test_branch_arguments(self):
        op = IfOp(scalar(I1), Region([scalar(F32)], [scalar(F32)]), Region([], [scalar(F32)]))
        infer_err(op, InvalidRegion)

    def test_case(self):
        branches = [Region([], [tensor(F32, None), TOKEN]),
                    Region([], [tensor(F32, 5), TOKEN]),
                    Region([], [unranked(F32), TOKEN])]
        assert infer_ok(CaseOp(scalar(I32), branches)) == [tensor(F32, 5), TOKEN]

    def test_case_index_type(self):
        infer_err(CaseOp(scalar(I64), [Region([], [])]), InvalidOperand)

    def test_case_without_branches(self):
        infer_err(CaseOp(scalar(I32), []), InvalidRegion)


class TestWhile:
    def _cond(self, *types):
        return Region(types, [scalar(I1)])

    def test_while(self):
        carried = [scalar(I32), tensor(F32, None)]
        body = Region(carried, [scalar(I32), tensor(F32, 4)])
        op = WhileOp(carried, self._cond(*carried), body)
        assert infer_ok(op) == [scalar(I32), tensor(F32, 4)]

    def test_cond_result(self):
        carried = [scalar(I32)]
        op = WhileOp(carried, Region(carried, [scalar(I32)]), Region(carried, carried))
        infer_err(op, InvalidRegion)

    def test_body_result_count(self):
        carried = [scalar(I32)]
        op = WhileOp(carried, self._cond(*carried), Region(carried, []))
        infer_err(op, InvalidRegion)

    def test_body_result_type(self):
        carried = [scalar(I32)]
        op = WhileOp(carried, self._cond(*carried), Region(carried, [scalar(F32)]))
        infer_err(op, InvalidRegion)


class TestTuples:
    def test_tuple_and_element(self):
        values = [scalar(F32), TOKEN]
        (t,) = infer_ok(TupleOp(values))
        assert t == TupleType(values)
        assert infer_ok(GetTupleElementOp(t, 1)) == [TOKEN]

    def test_get_tuple_element_out_of_range(self):
        infer_err(GetTupleElementOp(TupleType([scalar(F32)]), 1), InvalidAttributeValue)

    def test_get_tuple_element_of_tensor(self):
        infer_err(GetTupleElementOp(scalar(F32), 0), InvalidOperand)

    def test_optimization_barrier(self):
        values = [tensor(F32, 2), TOKEN]
        assert infer_ok(OptimizationBarrierOp(values)) == values

    def test_return_has_no_results(self):
        assert infer_ok(ReturnOp([tensor(F32, 2)])) == []
        assert infer_ok(ReturnOp()) == []

    def test_return_rejects_element_types(self):
        infer_err(ReturnOp([F32]), InvalidOperand)


class TestTokensAndIds:
    def test_token_producers(self):
        assert infer_ok(AfterAllOp([TOKEN, TOKEN])) == [TOKEN]
        assert infer_ok(AfterAllOp()) == [TOKEN]
        assert infer_ok(CreateTokenOp()) == [TOKEN]
        assert infer_ok(SendOp([tensor(F32, 2)], TOKEN)) == [TOKEN]
        assert infer_ok(OutfeedOp([tensor(F32, 2)], TOKEN, "cfg")) == [TOKEN]

    def test_after_all_requires_tokens(self):
        infer_err(AfterAllOp([scalar(F32)]), InvalidOperand)

    def test_send_requires_token(self):
        infer_err(SendOp([tensor(F32, 2)], scalar(F32)), InvalidOperand)

    def test_ids(self):
        assert infer_ok(PartitionIdOp()) == [scalar(UI32)]
        assert infer_ok(ReplicaIdOp()) == [scalar(UI32)]
