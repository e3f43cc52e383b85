#!/usr/bin/env python3
"""
Tests for the type model: element types, tensor descriptors, tuples and tokens.
"""

import pytest
from shapeinfer.shared.types import (
    TypeKind, IntegerType, FloatType, ComplexType, QuantizedType, TensorType,
    TupleType, TokenType, format_dims, is_dynamic,
    I1, I8, I32, UI32, BF16, F32, F64, C64, TOKEN,
)


class TestElementTypes:
    """Element types are values: equal by content, printable, with a bitwidth."""

    def test_integer_equality_and_str(self):
        assert IntegerType(32) == I32
        assert IntegerType(32, signed=False) == UI32
        assert I32 != UI32
        assert str(I32) == "i32"
        assert str(UI32) == "ui32"

    def test_unsupported_integer_width(self):
        with pytest.raises(ValueError):
            IntegerType(7)

    def test_float_widths(self):
        assert F32.bitwidth == 32
        assert BF16.bitwidth == 16
        assert FloatType("f64") == F64

    def test_unknown_float_name(self):
        with pytest.raises(ValueError):
            FloatType("f128")

    def test_complex_component(self):
        assert C64 == ComplexType(F32)
        assert C64.bitwidth == 32
        assert str(C64) == "complex<f32>"
        with pytest.raises(ValueError):
            ComplexType(I32)

    def test_bool_is_not_integer_kind(self):
        assert I1.kind == TypeKind.BOOLEAN
        assert I1.bitwidth == 1

    def test_quantized(self):
        q = QuantizedType(I8, F32, scale=0.5, zero_point=3)
        assert q.bitwidth == 8
        assert q.is_element
        assert "i8:f32" in str(q)


class TestTensorType:
    """Ranked, partially dynamic and unranked tensors."""

    def test_ranked_static(self):
        t = TensorType(F32, [2, 3])
        assert t.shape == (2, 3)
        assert t.has_rank and t.rank == 2
        assert t.has_static_shape
        assert t.num_elements == 6
        assert str(t) == "tensor<2x3xf32>"

    def test_dynamic_extent(self):
        t = TensorType(F32, (2, None))
        assert t.is_dynamic_dim(1)
        assert not t.is_dynamic_dim(0)
        assert not t.has_static_shape
        assert t.num_elements is None
        assert str(t) == "tensor<2x?xf32>"

    def test_unranked(self):
        t = TensorType(F32)
        assert not t.has_rank
        assert t.rank is None
        assert t.dim(3) is None
        assert str(t) == "tensor<*xf32>"

    def test_scalar(self):
        t = TensorType(I32, ())
        assert t.rank == 0
        assert t.num_elements == 1
        assert str(t) == "tensor<i32>"

    def test_negative_extent_rejected(self):
        with pytest.raises(ValueError):
            TensorType(F32, (2, -1))

    def test_non_element_element_type_rejected(self):
        with pytest.raises(ValueError):
            TensorType(TensorType(F32, ()), (2,))

    def test_with_shape_and_element_type(self):
        t = TensorType(F32, (4,))
        assert t.with_shape((None,)) == TensorType(F32, (None,))
        assert t.with_element_type(I32) == TensorType(I32, (4,))

    def test_value_equality_and_hash(self):
        assert TensorType(F32, [1, 2]) == TensorType(F32, (1, 2))
        assert len({TensorType(F32, (1,)), TensorType(F32, [1])}) == 1


class TestAggregateTypes:
    """Tuples and tokens."""

    def test_tuple(self):
        t = TupleType([TensorType(F32, ()), TOKEN])
        assert len(t) == 2
        assert t.kind == TypeKind.TUPLE
        assert not t.is_element

    def test_token_singleton_value(self):
        assert TokenType() == TOKEN
        assert str(TOKEN) == "!token"


class TestFormatting:
    def test_format_dims(self):
        assert format_dims((2, None, 3)) == "[2, ?, 3]"
        assert format_dims(None) == "*"

    def test_is_dynamic(self):
        assert is_dynamic(None)
        assert not is_dynamic(0)
