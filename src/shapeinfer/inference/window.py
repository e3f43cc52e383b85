"""
Window Inference

Sliding-window arithmetic shared by convolution, reduce_window and
select_and_scatter: validation of window attributes and the per-dimension
output extent formula.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence, Tuple

from ..shared.errors import AttributeArityMismatch, NonPositiveWindowAttribute, IncompatibleShape
from ..shared.types import Extent, format_dims
from ..utils.config import DEFAULT_WINDOW_STRIDE, DEFAULT_DILATION
from .attributes import decode_1d, decode_bool_1d, decode_padding

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WindowDimension:
    """
    One spatial dimension of a window.

    ``size`` is None when the window extent is unknown (a dynamic kernel
    dimension). Padding may be negative.
    """
    size: Extent = 1
    stride: int = 1
    padding_low: int = 0
    padding_high: int = 0
    window_dilation: int = 1
    base_dilation: int = 1
    window_reversal: bool = False


def dilated_bound(bound: Extent, dilation: int) -> Extent:
    """Extent after inserting ``dilation - 1`` holes between elements: b + (b-1)(d-1)."""
    if bound is None:
        return None
    return bound + (bound - 1) * (dilation - 1)


def strided_bound(bound: Extent, window_size: Extent, stride: int) -> Extent:
    """Number of window placements; None when unknown or the window does not fit."""
    if bound is None or window_size is None:
        return None
    if bound < window_size:
        return None
    return (bound - window_size) // stride + 1


def _check_arity(values: Sequence[Any], attr_name: str, num_dims: int) -> None:
    if values and len(values) != num_dims:
        raise AttributeArityMismatch(
            f"expects {attr_name} to have same dimension-size as size of window "
            f"dimensions ({num_dims}), but got: {len(values)}.")


def verify_window_attributes_and_infer_window_dimensions(
        window_dimensions: Sequence[Extent],
        window_strides: Sequence[int] = (),
        padding: Sequence[Tuple[int, int]] = (),
        lhs_dilation: Sequence[int] = (),
        rhs_dilation: Sequence[int] = (),
        window_reversal: Sequence[bool] = ()) -> List[WindowDimension]:
    """
    Validate decoded window attributes and build one WindowDimension per
    spatial dimension.

    Every non-empty vector must match ``len(window_dimensions)``; empty
    vectors take their defaults (stride 1, padding 0, dilation 1, no
    reversal). Known window sizes, strides and both dilations must be >= 1.
    ``lhs_dilation`` is the base dilation, ``rhs_dilation`` the window
    dilation.
    """
    num_dims = len(window_dimensions)
    _check_arity(window_strides, "window-strides", num_dims)
    _check_arity(lhs_dilation, "base-dilation factors", num_dims)
    _check_arity(rhs_dilation, "window-dilation factors", num_dims)
    _check_arity(window_reversal, "window-reversal", num_dims)
    _check_arity(padding, "padding-entries", num_dims)

    window = []
    for i, size in enumerate(window_dimensions):
        if size is not None and size < 1:
            raise NonPositiveWindowAttribute(
                f"expects window to have positive value for {i}-th window dimension, "
                f"but got {size}.")
        stride = window_strides[i] if window_strides else DEFAULT_WINDOW_STRIDE
        if stride < 1:
            raise NonPositiveWindowAttribute(
                f"expects window to have positive stride for {i}-th window dimension, "
                f"but got {stride}.")
        base_dilation = lhs_dilation[i] if lhs_dilation else DEFAULT_DILATION
        if base_dilation < 1:
            raise NonPositiveWindowAttribute(
                f"expects window to have positive base dilation factor for {i}-th "
                f"window dimension, but got {base_dilation}.")
        window_dilation = rhs_dilation[i] if rhs_dilation else DEFAULT_DILATION
        if window_dilation < 1:
            raise NonPositiveWindowAttribute(
                f"expects window to have positive window dilation factor for {i}-th "
                f"window dimension, but got {window_dilation}.")
        low, high = padding[i] if padding else (0, 0)
        window.append(WindowDimension(
            size=size,
            stride=stride,
            padding_low=low,
            padding_high=high,
            window_dilation=window_dilation,
            base_dilation=base_dilation,
            window_reversal=bool(window_reversal[i]) if window_reversal else False,
        ))
    return window


def infer_window_output_shape(base_shape: Sequence[Extent],
                              window: Sequence[WindowDimension]) -> Tuple[Extent, ...]:
    """
    Output extent of every windowed dimension.

    paddedDilatedBase = low + dilated(base, base_dilation) + high and
    dilatedWindow = dilated(size, window_dilation); the extent is
    (paddedDilatedBase - dilatedWindow) // stride + 1, or None when the base
    or the window size is unknown or the window does not fit.
    """
    if len(base_shape) != len(window):
        raise IncompatibleShape(
            f"expects base shape {format_dims(base_shape)} to have one extent per "
            f"window dimension ({len(window)}).")
    output = []
    for i, (base, dim) in enumerate(zip(base_shape, window)):
        if base is None:
            output.append(None)
            continue
        padded_dilated_base = dim.padding_low + dilated_bound(base, dim.base_dilation) + dim.padding_high
        dilated_window = dilated_bound(dim.size, dim.window_dilation)
        extent = strided_bound(padded_dilated_base, dilated_window, dim.stride)
        if extent is None and dilated_window is not None:
            logger.debug(f"window dimension {i} does not fit its base "
                         f"({padded_dilated_base} < {dilated_window}), extent unknown")
        output.append(extent)
    return tuple(output)


def decode_window(window_dimensions: Any, num_dims: int, window_strides: Any = None,
                  padding: Any = None, base_dilations: Any = None,
                  window_dilations: Any = None,
                  window_reversal: Any = None) -> List[WindowDimension]:
    """Decode raw window attribute payloads and validate them in one step."""
    if isinstance(window_dimensions, (list, tuple)) and any(d is None for d in window_dimensions):
        sizes: Sequence[Extent] = tuple(window_dimensions)
    else:
        sizes = decode_1d(window_dimensions, "window_dimensions")
    if len(sizes) != num_dims:
        raise AttributeArityMismatch(
            f"expects window-dimensions size to be {num_dims}, but got {len(sizes)}.")
    return verify_window_attributes_and_infer_window_dimensions(
        sizes,
        decode_1d(window_strides, "window_strides"),
        decode_padding(padding, num_dims),
        decode_1d(base_dilations, "base_dilations"),
        decode_1d(window_dilations, "window_dilations"),
        decode_bool_1d(window_reversal, "window_reversal"),
    )
