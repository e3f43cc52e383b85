#!/usr/bin/env python3
"""
Tests for the error taxonomy and the Result type carried across the engine boundary.
"""

import pytest
from shapeinfer.shared.errors import (
    InferenceError, ERROR_KINDS, IncompatibleShape, InvalidReplicaGroups,
    ReducerSignatureMismatch,
)
from shapeinfer.shared.source_location import SourceLocation
from shapeinfer.utils.base import Result, ResultTag


class TestErrorKinds:
    """Every kind is an InferenceError with its own stable code."""

    def test_codes_are_unique(self):
        codes = [kind.error_code for kind in ERROR_KINDS]
        assert len(set(codes)) == len(codes)
        assert codes == [f"E06{i:02d}" for i in range(1, 12)]

    def test_all_kinds_subclass_base(self):
        for kind in ERROR_KINDS:
            assert issubclass(kind, InferenceError)

    def test_kind_name(self):
        assert IncompatibleShape("x").kind == "IncompatibleShape"


class TestErrorFormatting:
    """String rendering of errors with and without location and notes."""

    def test_message_only(self):
        err = IncompatibleShape("shapes differ")
        assert str(err) == "error[E0604]: shapes differ"

    def test_location_and_notes(self):
        loc = SourceLocation(file="model.mlir", line=3, column=7, op_name="stablehlo.add")
        err = InvalidReplicaGroups("first", location=loc, notes=["second", "third"])
        out = str(err)
        assert out.startswith("error[E0607]: first")
        assert " --> model.mlir:3:7 (stablehlo.add)" in out
        assert "  = note: second" in out
        assert "  = note: third" in out

    def test_with_location_keeps_existing(self):
        first = SourceLocation(file="a", line=1)
        second = SourceLocation(file="b", line=2)
        err = IncompatibleShape("x", location=first)
        assert err.with_location(second).location == first

    def test_with_location_attaches(self):
        loc = SourceLocation(file="a", line=1)
        assert IncompatibleShape("x").with_location(loc).location == loc

    def test_reducer_mismatch_fields(self):
        err = ReducerSignatureMismatch("bad", parameter_index=1, reason="operand-type")
        assert err.parameter_index == 1
        assert err.reason == "operand-type"
        assert err.error_code == "E0608"


class TestResult:
    """Ok/Err discrimination and unwrapping."""

    def test_ok(self):
        r = Result.ok([1])
        assert r.is_ok() and not r.is_err()
        assert r.tag == ResultTag.OK
        assert r.unwrap() == [1]
        assert r.unwrap_or(None) == [1]

    def test_err_reraises(self):
        err = IncompatibleShape("boom")
        r = Result.err(err)
        assert r.is_err()
        assert r.error is err
        assert r.unwrap_or("fallback") == "fallback"
        with pytest.raises(IncompatibleShape):
            r.unwrap()

    def test_error_on_ok(self):
        with pytest.raises(ValueError):
            Result.ok(1).error
