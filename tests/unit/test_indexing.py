#!/usr/bin/env python3
"""
Tests for gather/scatter dimension mappings and dynamic slicing.
"""

import pytest
from tests.test_utils import tensor, scalar, unranked
from shapeinfer.inference.indexing import (
    infer_gather_shape, verify_gather, infer_gather, infer_dynamic_gather, verify_scatter,
    infer_dynamic_slice, infer_dynamic_update_slice,
)
from shapeinfer.ir.dimension_numbers import GatherDimensionMapping, ScatterDimensionMapping
from shapeinfer.shared.errors import (
    InvalidDimensionMapping, InvalidAttributeValue, IncompatibleShape,
    IncompatibleElementType, InvalidOperand,
)
from shapeinfer.shared.types import F32, I32, I64


def _gather_dn(**kwargs):
    defaults = dict(offset_dims=(1,), collapsed_slice_dims=(0, 1),
                    start_index_map=(0, 1, 2), index_vector_dim=1)
    defaults.update(kwargs)
    return GatherDimensionMapping(**defaults)


class TestGatherShapeComposition:
    """The result composition helper on its own."""

    def test_offset_then_batch_positions(self):
        slice_sizes = [1, 1, 3]
        indices_shape = [5, 3]
        shape = infer_gather_shape(
            2, lambda i: indices_shape[i], lambda i: slice_sizes[i], 3,
            offset_dims=[1], collapsed_slice_dims=[1], operand_batching_dims=[],
            index_vector_dim=1)
        assert shape == [5, 1]

    def test_skips_index_vector_dim(self):
        indices_shape = [3, 4, 7]
        slice_sizes = [1, 6]
        shape = infer_gather_shape(
            3, lambda i: indices_shape[i], lambda i: slice_sizes[i], 2,
            offset_dims=[2], collapsed_slice_dims=[0], operand_batching_dims=[],
            index_vector_dim=1)
        assert shape == [3, 7, 6]


class TestGather:
    """Full gather validation and inference."""

    def test_collapsed_rows(self):
        result = infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), _gather_dn(), [1, 1, 3])
        assert result == tensor(F32, 5, 3)

    def test_slice_dims_must_cover_operand(self):
        dn = _gather_dn(collapsed_slice_dims=(1,))
        with pytest.raises(InvalidDimensionMapping):
            infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), dn, [1, 1, 3])

    def test_implicit_index_vector_dim(self):
        dn = GatherDimensionMapping(offset_dims=(1,), collapsed_slice_dims=(0,),
                                    start_index_map=(0,), index_vector_dim=1)
        result = infer_gather(tensor(F32, 10, 8), tensor(I32, 4), dn, [1, 8])
        assert result == tensor(F32, 4, 8)

    def test_start_index_map_size(self):
        dn = _gather_dn(start_index_map=(0, 1))
        with pytest.raises(InvalidDimensionMapping):
            infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), dn, [1, 1, 3])

    def test_unsorted_offset_dims(self):
        dn = GatherDimensionMapping(offset_dims=(2, 1), collapsed_slice_dims=(0,),
                                    start_index_map=(0,), index_vector_dim=1)
        with pytest.raises(InvalidDimensionMapping):
            infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 2, 1), dn, [1, 4, 5])

    def test_slice_size_exceeds_operand(self):
        with pytest.raises(InvalidAttributeValue):
            infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), _gather_dn(), [1, 1, 6])

    def test_collapsed_slice_size_above_one(self):
        with pytest.raises(InvalidDimensionMapping):
            infer_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), _gather_dn(), [2, 1, 3])

    def test_float_indices_rejected(self):
        with pytest.raises(IncompatibleElementType):
            infer_gather(tensor(F32, 3, 4, 5), tensor(F32, 5, 3), _gather_dn(), [1, 1, 3])

    def test_unranked_indices(self):
        result = infer_gather(tensor(F32, 3, 4, 5), unranked(I32), _gather_dn(), [1, 1, 3])
        assert result == unranked(F32)

    def test_dynamic_batch_extent(self):
        result = infer_gather(tensor(F32, 3, 4, 5), tensor(I32, None, 3), _gather_dn(),
                              [1, 1, 3])
        assert result == tensor(F32, None, 3)

    def test_batching_dims(self):
        dn = GatherDimensionMapping(offset_dims=(2,), collapsed_slice_dims=(1,),
                                    start_index_map=(1,), index_vector_dim=2,
                                    operand_batching_dims=(0,),
                                    start_indices_batching_dims=(0,))
        result = infer_gather(tensor(F32, 2, 9, 4), tensor(I32, 2, 3, 1), dn, [1, 1, 4])
        assert result == tensor(F32, 2, 3, 4)

    def test_batching_extent_mismatch(self):
        dn = GatherDimensionMapping(offset_dims=(2,), collapsed_slice_dims=(1,),
                                    start_index_map=(1,), index_vector_dim=2,
                                    operand_batching_dims=(0,),
                                    start_indices_batching_dims=(0,))
        with pytest.raises(IncompatibleShape):
            infer_gather(tensor(F32, 2, 9, 4), tensor(I32, 5, 3, 1), dn, [1, 1, 4])

    def test_verify_without_slice_sizes(self):
        verify_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3), _gather_dn(), None)


class TestDynamicGather:
    def test_unknown_slice_values(self):
        result = infer_dynamic_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3),
                                      tensor(I32, 3), _gather_dn())
        assert result == tensor(F32, 5, None)

    def test_known_slice_values(self):
        result = infer_dynamic_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3),
                                      tensor(I32, 3), _gather_dn(), [1, 1, 2])
        assert result == tensor(F32, 5, 2)

    def test_slice_sizes_rank(self):
        with pytest.raises(IncompatibleShape):
            infer_dynamic_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3),
                                 tensor(I32, 3, 1), _gather_dn())

    def test_slice_sizes_length(self):
        with pytest.raises(InvalidDimensionMapping):
            infer_dynamic_gather(tensor(F32, 3, 4, 5), tensor(I32, 5, 3),
                                 tensor(I32, 2), _gather_dn())


def _scatter_dn(**kwargs):
    defaults = dict(update_window_dims=(1,), inserted_window_dims=(0,),
                    scatter_dims_to_operand_dims=(0,), index_vector_dim=1)
    defaults.update(kwargs)
    return ScatterDimensionMapping(**defaults)


class TestScatter:
    """Row scatter: updates [N, 8] into operand [10, 8] at indices [N, 1]."""

    def test_valid(self):
        verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [tensor(F32, 4, 8)],
                       _scatter_dn())

    def test_updates_rank(self):
        with pytest.raises(IncompatibleShape):
            verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [tensor(F32, 4, 8, 1)],
                           _scatter_dn())

    def test_window_exceeds_operand(self):
        with pytest.raises(IncompatibleShape):
            verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [tensor(F32, 4, 9)],
                           _scatter_dn())

    def test_scatter_dim_mismatch(self):
        with pytest.raises(IncompatibleShape):
            verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [tensor(F32, 5, 8)],
                           _scatter_dn())

    def test_operand_rank_coverage(self):
        with pytest.raises(InvalidDimensionMapping):
            verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [tensor(F32, 4, 8)],
                           _scatter_dn(inserted_window_dims=()))

    def test_input_update_count(self):
        with pytest.raises(InvalidOperand):
            verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [], _scatter_dn())

    def test_unranked_updates(self):
        verify_scatter([tensor(F32, 10, 8)], tensor(I32, 4, 1), [unranked(F32)],
                       _scatter_dn())


class TestDynamicSlice:
    """dynamic_slice and dynamic_update_slice."""

    def test_slice_sizes_give_shape(self):
        result = infer_dynamic_slice(tensor(F32, 8, 6), [scalar(I32), scalar(I32)], [2, 3])
        assert result == tensor(F32, 2, 3)

    def test_absent_slice_sizes_keep_operand(self):
        operand = tensor(F32, 8, 6)
        assert infer_dynamic_slice(operand, [scalar(I32), scalar(I32)], None) == operand

    def test_index_count(self):
        with pytest.raises(InvalidOperand):
            infer_dynamic_slice(tensor(F32, 8, 6), [scalar(I32)], [2, 3])

    def test_mixed_index_types(self):
        with pytest.raises(IncompatibleElementType):
            infer_dynamic_slice(tensor(F32, 8, 6), [scalar(I32), scalar(I64)], [2, 3])

    def test_non_scalar_index(self):
        with pytest.raises(InvalidOperand):
            infer_dynamic_slice(tensor(F32, 8, 6), [tensor(I32, 1), scalar(I32)], [2, 3])

    def test_size_too_large(self):
        with pytest.raises(InvalidAttributeValue):
            infer_dynamic_slice(tensor(F32, 8, 6), [scalar(I32), scalar(I32)], [2, 7])

    def test_negative_size(self):
        with pytest.raises(InvalidAttributeValue):
            infer_dynamic_slice(tensor(F32, 8, 6), [scalar(I32), scalar(I32)], [-1, 3])

    def test_update_slice(self):
        operand = tensor(F32, 8, 6)
        result = infer_dynamic_update_slice(operand, tensor(F32, 2, 6),
                                            [scalar(I32), scalar(I32)])
        assert result == operand

    def test_update_too_large(self):
        with pytest.raises(IncompatibleShape):
            infer_dynamic_update_slice(tensor(F32, 8, 6), tensor(F32, 9, 6),
                                       [scalar(I32), scalar(I32)])

    def test_update_element_type(self):
        with pytest.raises(IncompatibleElementType):
            infer_dynamic_update_slice(tensor(F32, 8, 6), tensor(I32, 2, 6),
                                       [scalar(I32), scalar(I32)])
