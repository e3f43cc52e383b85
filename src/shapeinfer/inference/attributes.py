"""
Attribute Decoder

Turns raw attribute payloads (python sequences or numpy arrays, as handed
over by the IR collaborator) into typed integer/boolean vectors and
matrices. Rank and element count are validated here, before any rule looks
at the values; absent optional attributes are default-filled here too.
"""

import logging
from typing import Any, List, Optional, Tuple

import numpy as np

from ..shared.errors import AttributeArityMismatch, MalformedAttribute

logger = logging.getLogger(__name__)


def is_absent(attr: Any) -> bool:
    """None and empty payloads both count as "attribute not given"."""
    if attr is None:
        return True
    if isinstance(attr, np.ndarray):
        return attr.size == 0
    try:
        return len(attr) == 0
    except TypeError:
        return False


def _as_array(attr: Any, name: str) -> np.ndarray:
    try:
        return np.asarray(attr)
    except ValueError:
        # numpy refuses ragged nesting
        raise MalformedAttribute(f"{name} must be a rectangular array, got {attr!r}")


def _require_integer(array: np.ndarray, name: str) -> None:
    if array.size and not (np.issubdtype(array.dtype, np.integer)
                           or np.issubdtype(array.dtype, np.bool_)):
        raise MalformedAttribute(f"{name} must hold integers, got dtype {array.dtype}")


def decode_1d(attr: Any, name: str, arity: Optional[int] = None,
              default: Optional[int] = None) -> Tuple[int, ...]:
    """
    Decode a 1-D integer attribute.

    A None payload decodes to ``(default,) * arity`` when both are given and
    to ``()`` otherwise. Any other payload, empty ones included, must be 1-D
    integer data and, when ``arity`` is given, hold exactly ``arity`` values.
    """
    if attr is None:
        if default is not None and arity is not None:
            logger.debug(f"{name} absent, defaulting to {default}")
            return (default,) * arity
        return ()
    array = _as_array(attr, name)
    if array.ndim != 1:
        raise MalformedAttribute(f"{name} has rank {array.ndim} instead of required rank 1.")
    _require_integer(array, name)
    if arity is not None and array.shape[0] != arity:
        raise AttributeArityMismatch(
            f"{name} must have {arity} elements, but got {array.shape[0]}.")
    return tuple(int(v) for v in array.tolist())


def decode_bool_1d(attr: Any, name: str, arity: Optional[int] = None) -> Tuple[bool, ...]:
    """Decode a 1-D boolean attribute; absent decodes to all False."""
    if is_absent(attr):
        return (False,) * (arity or 0)
    array = _as_array(attr, name)
    if array.ndim != 1:
        raise MalformedAttribute(f"{name} has rank {array.ndim} instead of required rank 1.")
    if not np.issubdtype(array.dtype, np.bool_):
        raise MalformedAttribute(f"{name} must hold booleans, got dtype {array.dtype}")
    if arity is not None and array.shape[0] != arity:
        raise AttributeArityMismatch(
            f"{name} must have {arity} elements, but got {array.shape[0]}.")
    return tuple(bool(v) for v in array.tolist())


def decode_padding(attr: Any, arity: int, name: str = "padding") -> Tuple[Tuple[int, int], ...]:
    """Decode an ``[arity, 2]`` (low, high) padding attribute; absent decodes to zeros."""
    if is_absent(attr):
        return ((0, 0),) * arity
    array = _as_array(attr, name)
    if array.ndim != 2 or array.shape[1] != 2:
        raise MalformedAttribute(
            f"expects the shape of {name}-attribute to be {{N, 2}}, but got "
            f"{{{', '.join(str(s) for s in array.shape)}}}.")
    _require_integer(array, name)
    if array.shape[0] != arity:
        raise AttributeArityMismatch(
            f"{name} must have {arity} elements, but got {array.shape[0]}.")
    return tuple((int(lo), int(hi)) for lo, hi in array.tolist())


def decode_2d(attr: Any, name: str, columns: Optional[int] = None) -> Tuple[Tuple[int, ...], ...]:
    """Decode a rectangular 2-D integer attribute (e.g. source-target pairs)."""
    if is_absent(attr):
        return ()
    array = _as_array(attr, name)
    if array.ndim != 2:
        raise MalformedAttribute(f"{name} has rank {array.ndim} instead of required rank 2.")
    _require_integer(array, name)
    if columns is not None and array.shape[1] != columns:
        raise AttributeArityMismatch(
            f"{name} must have rows of size {columns}, but got rows of size {array.shape[1]}.")
    return tuple(tuple(int(v) for v in row) for row in array.tolist())


def decode_rows(attr: Any, name: str = "replica groups") -> Optional[List[List[int]]]:
    """
    Decode a 2-D attribute whose rows may differ in length.

    Returns None when the payload is not two levels deep (a scalar, a flat
    list, or a rank 3+ array); the caller reports that in its own terms.
    """
    if attr is None:
        return None
    if isinstance(attr, np.ndarray):
        if attr.ndim != 2:
            return None
        _require_integer(attr, name)
        return [[int(v) for v in row] for row in attr.tolist()]
    rows: List[List[int]] = []
    try:
        for row in attr:
            values = np.asarray(row)
            if values.ndim != 1:
                return None
            _require_integer(values, name)
            rows.append([int(v) for v in values.tolist()])
    except (TypeError, ValueError):
        return None
    return rows

