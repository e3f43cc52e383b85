#!/usr/bin/env python3
"""
Tests for reduction body signature validation.
"""

import pytest
from tests.test_utils import tensor, scalar, reducer
from shapeinfer.inference.reducer import verify_reducer_shape
from shapeinfer.ir.region import Region
from shapeinfer.shared.errors import ReducerSignatureMismatch, InvalidOperand
from shapeinfer.shared.types import BF16, F32, I32, TupleType


class TestReducerAccepted:
    def test_single_input(self):
        body = reducer(F32)
        result = verify_reducer_shape(body, [tensor(F32, 4, 5)], [scalar(F32)], 1, ())
        assert result == [scalar(F32)]

    def test_variadic(self):
        body = Region([scalar(F32), scalar(I32), scalar(F32), scalar(I32)],
                      [scalar(F32), scalar(I32)])
        result = verify_reducer_shape(body, [tensor(F32, 4), tensor(I32, 4)],
                                      [scalar(F32), scalar(I32)], 2, ())
        assert result == [scalar(F32), scalar(I32)]

    def test_relaxed_precision_for_reduce(self):
        """An f32 accumulator may reduce bf16 data."""
        body = Region([scalar(F32), scalar(BF16)], [scalar(F32)])
        verify_reducer_shape(body, [tensor(BF16, 8)], [scalar(BF16)], 1, (), op_name="reduce")

    def test_windowed_parameter_shape(self):
        body = Region([tensor(F32, 2), tensor(F32, 2)], [tensor(F32, 2)])
        verify_reducer_shape(body, [tensor(F32, 8, 8)], [tensor(F32, 2)], 1, (3, 2),
                             op_name="reduce_window")


class TestReducerRejected:
    """One test per reason tag."""

    def _reject(self, body, num_inputs=1, inputs=None, inits=None, **kwargs):
        inputs = inputs or [tensor(F32, 4)] * num_inputs
        inits = inits or [scalar(F32)] * num_inputs
        with pytest.raises(ReducerSignatureMismatch) as exc:
            verify_reducer_shape(body, inputs, inits, num_inputs, (), **kwargs)
        return exc.value

    def test_parameter_count(self):
        body = Region([scalar(F32)] * 3, [scalar(F32)])
        err = self._reject(body)
        assert err.reason == "parameter-count"
        assert err.parameter_index is None
        assert err.message == "Reduction-region must take 2 parameters, but takes 3 parameter(s)"

    def test_result_count(self):
        body = Region([scalar(F32)] * 2, [scalar(F32)] * 2)
        assert self._reject(body).reason == "result-count"

    def test_result_kind(self):
        body = Region([scalar(F32)] * 2, [TupleType([scalar(F32)])])
        assert self._reject(body).reason == "result-kind"

    def test_accumulator_type(self):
        body = Region([scalar(I32), scalar(F32)], [scalar(F32)])
        err = self._reject(body)
        assert err.reason == "accumulator-type"
        assert err.parameter_index == 0

    def test_operand_type(self):
        body = Region([scalar(F32), scalar(I32)], [scalar(F32)])
        err = self._reject(body)
        assert err.reason == "operand-type"
        assert err.parameter_index == 1

    def test_init_type(self):
        err = self._reject(reducer(F32), inits=[scalar(I32)])
        assert err.reason == "init-type"

    def test_element_type(self):
        err = self._reject(reducer(F32), inputs=[tensor(I32, 4)])
        assert err.reason == "element-type"

    def test_precision_is_strict_outside_reductions(self):
        body = Region([scalar(F32), scalar(BF16)], [scalar(F32)])
        err = self._reject(body, inputs=[tensor(BF16, 4)], inits=[scalar(F32)], op_name="sort")
        assert err.reason == "operand-type"

    def test_shape(self):
        body = Region([tensor(F32, 5), tensor(F32, 5)], [tensor(F32, 5)])
        with pytest.raises(ReducerSignatureMismatch) as exc:
            verify_reducer_shape(body, [tensor(F32, 8, 8)], [tensor(F32, 5)], 1, (3, 2),
                                 op_name="reduce_window")
        assert exc.value.reason == "shape"

    def test_input_init_count(self):
        with pytest.raises(InvalidOperand):
            verify_reducer_shape(reducer(F32), [tensor(F32, 4)], [], 1, ())
