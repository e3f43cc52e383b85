"""
Indexing Inference

Shape inference and dimension-mapping validation for the gather/scatter
family and for dynamic_slice / dynamic_update_slice.

Gather result composition: offset_dims pick result positions that are
filled, in order, from the slice sizes left after dropping collapsed and
operand-batching dimensions. Every other result position is a batch
position, filled from the start indices shape in order, skipping the index
vector dimension.
"""

import logging
from typing import Callable, List, Optional, Sequence

from ..shared.errors import (
    InvalidDimensionMapping, InvalidAttributeValue, IncompatibleShape,
    IncompatibleElementType, InvalidOperand,
)
from ..shared.types import Extent, TensorType
from ..ir.dimension_numbers import GatherDimensionMapping, ScatterDimensionMapping
from .compat import compatible_extents, compatible_shapes, require_tensor, is_integer

logger = logging.getLogger(__name__)


# ============================================================================
# Dimension-set checks
# ============================================================================

def _check_sorted(dims: Sequence[int], name: str) -> None:
    if list(dims) != sorted(dims):
        raise InvalidDimensionMapping(f"expects {name} to be sorted, got: {list(dims)}")


def _check_unique(dims: Sequence[int], name: str) -> None:
    if len(set(dims)) != len(dims):
        raise InvalidDimensionMapping(f"expects {name} to not repeat, got: {list(dims)}")


def _check_in_range(dims: Sequence[int], bound: Optional[int], name: str, of: str) -> None:
    for d in dims:
        if d < 0 or (bound is not None and d >= bound):
            raise InvalidDimensionMapping(
                f"Expects each element of {name} to be in range [0, {of}) i.e. "
                f"[0, {bound if bound is not None else '?'}). got: {d}.")


def _check_disjoint(a: Sequence[int], b: Sequence[int], name_a: str, name_b: str) -> None:
    common = sorted(set(a) & set(b))
    if common:
        raise InvalidDimensionMapping(f"has duplicated dimension from {name_a} and {name_b}: {common[0]}")


def _batch_rank(indices_rank: int, index_vector_dim: int) -> int:
    """Number of batch dimensions of the start indices."""
    return indices_rank - 1 if index_vector_dim < indices_rank else indices_rank


def _index_vector_extent(indices: TensorType, index_vector_dim: int) -> Extent:
    if not indices.has_rank:
        return None
    if index_vector_dim == indices.rank:
        return 1
    return indices.shape[index_vector_dim]


def _check_index_vector_dim(indices: TensorType, index_vector_dim: int, what: str) -> None:
    if index_vector_dim < 0 or (indices.has_rank and index_vector_dim > indices.rank):
        raise InvalidDimensionMapping(
            f"index_vector_dim {index_vector_dim} is out of bounds for {what} with rank "
            f"{indices.rank}")


def _check_indices_batching(indices: TensorType, batching_dims: Sequence[int],
                            operand_batching_dims: Sequence[int], index_vector_dim: int,
                            name: str, operand_name: str) -> None:
    _check_unique(batching_dims, name)
    if indices.has_rank:
        _check_in_range(batching_dims, indices.rank, name, "rank-of('indices')")
    if index_vector_dim in batching_dims:
        raise InvalidDimensionMapping(
            f"expects {name} not to include index_vector_dim {index_vector_dim}.")
    if len(batching_dims) != len(operand_batching_dims):
        raise InvalidDimensionMapping(
            f"{operand_name} and {name} must have the same size.")


def _check_batching_extents(operand: TensorType, indices: TensorType,
                            operand_batching_dims: Sequence[int],
                            indices_batching_dims: Sequence[int]) -> None:
    for operand_dim, indices_dim in zip(operand_batching_dims, indices_batching_dims):
        a, b = operand.dim(operand_dim), indices.dim(indices_dim)
        if not compatible_extents(a, b):
            raise IncompatibleShape(
                f"operand batching dimension {operand_dim} and indices batching dimension "
                f"{indices_dim} must have the same size, got {a} and {b}")


# ============================================================================
# Gather
# ============================================================================

def infer_gather_shape(result_rank: int,
                       get_start_indices_dim: Callable[[int], Extent],
                       get_slice_dim: Callable[[int], Extent],
                       slice_rank: int,
                       offset_dims: Sequence[int],
                       collapsed_slice_dims: Sequence[int],
                       operand_batching_dims: Sequence[int],
                       index_vector_dim: int) -> List[Extent]:
    """
    Compose the gather result extents.

    Slice dimensions that are collapsed or operand-batching are dropped;
    the remaining slice sizes feed offset_dims positions in order. Other
    result positions read the start indices shape in order, stepping over
    ``index_vector_dim``.
    """
    dropped = set(collapsed_slice_dims) | set(operand_batching_dims)
    adjusted_slice_sizes = [get_slice_dim(i) for i in range(slice_rank) if i not in dropped]
    offset_set = set(offset_dims)

    shape: List[Extent] = []
    offset_dims_seen = 0
    batch_dims_seen = 0
    for i in range(result_rank):
        if i in offset_set:
            shape.append(adjusted_slice_sizes[offset_dims_seen])
            offset_dims_seen += 1
        else:
            if batch_dims_seen == index_vector_dim:
                batch_dims_seen += 1
            shape.append(get_start_indices_dim(batch_dims_seen))
            batch_dims_seen += 1
    return shape


def verify_gather(operand: TensorType, start_indices: TensorType,
                  dimension_numbers: GatherDimensionMapping,
                  slice_sizes: Optional[Sequence[Extent]]) -> None:
    """
    Validate a gather configuration.

    ``slice_sizes`` may be None (a dynamic_gather with unknown sizes); its
    length then comes from nothing and only the mapping itself is checked.
    """
    dn = dimension_numbers
    operand_rank = operand.rank
    if operand_rank is None and slice_sizes is not None:
        operand_rank = len(slice_sizes)

    _check_index_vector_dim(start_indices, dn.index_vector_dim, "start_indices")

    index_vector_extent = _index_vector_extent(start_indices, dn.index_vector_dim)
    if index_vector_extent is not None and len(dn.start_index_map) != index_vector_extent:
        raise InvalidDimensionMapping(
            f"start_index_map size ({len(dn.start_index_map)}) is not equal to size of "
            f"index dimension ({dn.index_vector_dim}) of start_indices ({index_vector_extent})")

    _check_sorted(dn.offset_dims, "offset_dims")
    _check_unique(dn.offset_dims, "offset_dims")
    for d in dn.offset_dims:
        if d < 0:
            raise InvalidDimensionMapping(f"expects offset_dims to not be negative, got: {d}")

    _check_sorted(dn.collapsed_slice_dims, "collapsed_slice_dims")
    _check_unique(dn.collapsed_slice_dims, "collapsed_slice_dims")
    _check_in_range(dn.collapsed_slice_dims, operand_rank, "collapsed_slice_dims",
                    "operand_rank")

    _check_sorted(dn.operand_batching_dims, "operand_batching_dims")
    _check_unique(dn.operand_batching_dims, "operand_batching_dims")
    _check_in_range(dn.operand_batching_dims, operand_rank, "operand_batching_dims",
                    "operand_rank")
    _check_disjoint(dn.collapsed_slice_dims, dn.operand_batching_dims,
                    "collapsed_slice_dims", "operand_batching_dims")

    _check_unique(dn.start_index_map, "start_index_map")
    _check_in_range(dn.start_index_map, operand_rank, "start_index_map", "operand_rank")
    _check_disjoint(dn.start_index_map, dn.operand_batching_dims,
                    "start_index_map", "operand_batching_dims")

    _check_indices_batching(start_indices, dn.start_indices_batching_dims,
                            dn.operand_batching_dims, dn.index_vector_dim,
                            "start_indices_batching_dims", "operand_batching_dims")

    if slice_sizes is None:
        return

    if operand.has_rank and len(slice_sizes) != operand.rank:
        raise InvalidDimensionMapping(
            f"slice_sizes size ({len(slice_sizes)}) not equal to (implied) operand rank "
            f"({operand.rank})")
    slice_rank = len(slice_sizes)
    mapped = len(dn.offset_dims) + len(dn.collapsed_slice_dims) + len(dn.operand_batching_dims)
    if mapped != slice_rank:
        raise InvalidDimensionMapping(
            f"offset_dims size ({len(dn.offset_dims)}) plus collapse_slice_dims size "
            f"({len(dn.collapsed_slice_dims)}) plus operand_batching_dims size "
            f"({len(dn.operand_batching_dims)}) is not equal to operand rank ({slice_rank})")

    for i, size in enumerate(slice_sizes):
        if size is None:
            continue
        if size < 0:
            raise InvalidAttributeValue(f"slice size ({size}) is out of bounds for operand dimension ({i})")
        bound = operand.dim(i)
        if bound is not None and size > bound:
            raise InvalidAttributeValue(
                f"slice size ({size}) is out of bounds for operand dimension ({bound}) at index {i}")

    for name, dims in (("collapsed", dn.collapsed_slice_dims),
                       ("batching", dn.operand_batching_dims)):
        for d in dims:
            size = slice_sizes[d]
            if size is not None and size > 1:
                raise InvalidDimensionMapping(
                    f"slice_sizes {name} dimension {d} should <= 1 but got {size}")

    _check_batching_extents(operand, start_indices, dn.operand_batching_dims,
                            dn.start_indices_batching_dims)


def infer_gather(operand: TensorType, start_indices: TensorType,
                 dimension_numbers: GatherDimensionMapping,
                 slice_sizes: Sequence[Extent]) -> TensorType:
    """Validate and infer the result type of a gather."""
    operand = require_tensor(operand, "operand")
    start_indices = require_tensor(start_indices, "start_indices")
    if not (is_integer(start_indices.element_type)):
        raise IncompatibleElementType(
            f"expects start_indices to have integer element type, got {start_indices.element_type}")
    verify_gather(operand, start_indices, dimension_numbers, slice_sizes)

    dn = dimension_numbers
    if not start_indices.has_rank:
        logger.debug("gather with unranked start_indices, result unranked")
        return TensorType(operand.element_type)

    batch_rank = _batch_rank(start_indices.rank, dn.index_vector_dim)
    result_rank = len(dn.offset_dims) + batch_rank
    for d in dn.offset_dims:
        if d >= result_rank:
            raise InvalidDimensionMapping(
                f"Expects each element of offset_dims to be in range [0, implied-result-rank) "
                f"i.e. [0, {result_rank}). got: {d}.")

    shape = infer_gather_shape(
        result_rank,
        start_indices.dim,
        lambda i: slice_sizes[i],
        len(slice_sizes),
        dn.offset_dims,
        dn.collapsed_slice_dims,
        dn.operand_batching_dims,
        dn.index_vector_dim,
    )
    return TensorType(operand.element_type, shape)


def infer_dynamic_gather(operand: TensorType, start_indices: TensorType,
                         slice_sizes: TensorType,
                         dimension_numbers: GatherDimensionMapping,
                         slice_size_values: Optional[Sequence[int]] = None) -> TensorType:
    """
    Gather whose slice sizes arrive as a 1-D integer tensor operand.

    When the values of that operand are not known the slice extents are
    unknown, and so are the result's offset dimensions.
    """
    operand = require_tensor(operand, "operand")
    slice_sizes = require_tensor(slice_sizes, "slice_sizes")
    if slice_sizes.has_rank and slice_sizes.rank != 1:
        raise IncompatibleShape(f"slice_sizes should be rank 1, got rank {slice_sizes.rank}")
    if not is_integer(slice_sizes.element_type):
        raise IncompatibleElementType(
            f"slice_sizes must have integer element type, got {slice_sizes.element_type}")

    num_slice_sizes = slice_sizes.dim(0) if slice_sizes.has_rank else None
    if num_slice_sizes is None and operand.has_rank:
        num_slice_sizes = operand.rank
    if num_slice_sizes is not None and operand.has_rank and num_slice_sizes != operand.rank:
        raise InvalidDimensionMapping(
            f"slice_sizes size ({num_slice_sizes}) not equal to (implied) operand rank "
            f"({operand.rank})")

    if slice_size_values is not None:
        sizes: Optional[Sequence[Extent]] = tuple(slice_size_values)
        if num_slice_sizes is not None and len(sizes) != num_slice_sizes:
            raise InvalidDimensionMapping(
                f"slice_sizes holds {len(sizes)} values but has extent {num_slice_sizes}")
    elif num_slice_sizes is not None:
        sizes = (None,) * num_slice_sizes
    else:
        sizes = None

    if sizes is None:
        start_indices = require_tensor(start_indices, "start_indices")
        verify_gather(operand, start_indices, dimension_numbers, None)
        return TensorType(operand.element_type)
    return infer_gather(operand, start_indices, dimension_numbers, sizes)


# ============================================================================
# Scatter
# ============================================================================

def validate_scatter_dimension_numbers(operand: TensorType, scatter_indices: TensorType,
                                       dimension_numbers: ScatterDimensionMapping) -> None:
    """Validate a scatter mapping against the operand and scatter indices ranks."""
    dn = dimension_numbers
    operand_rank = operand.rank

    _check_index_vector_dim(scatter_indices, dn.index_vector_dim, "scatter_indices")

    _check_sorted(dn.update_window_dims, "update_window_dims")
    _check_unique(dn.update_window_dims, "update_window_dims")
    for d in dn.update_window_dims:
        if d < 0:
            raise InvalidDimensionMapping(
                f"Expects each element of update_window_dims to be non-negative, got: {d}.")

    _check_sorted(dn.inserted_window_dims, "inserted_window_dims")
    _check_unique(dn.inserted_window_dims, "inserted_window_dims")
    _check_in_range(dn.inserted_window_dims, operand_rank, "inserted_window_dims",
                    "rank-of('operand')")

    _check_sorted(dn.input_batching_dims, "input_batching_dims")
    _check_unique(dn.input_batching_dims, "input_batching_dims")
    _check_in_range(dn.input_batching_dims, operand_rank, "input_batching_dims",
                    "rank-of('operand')")
    _check_disjoint(dn.inserted_window_dims, dn.input_batching_dims,
                    "inserted_window_dims", "input_batching_dims")

    index_vector_extent = _index_vector_extent(scatter_indices, dn.index_vector_dim)
    if index_vector_extent is not None and len(dn.scatter_dims_to_operand_dims) != index_vector_extent:
        raise InvalidDimensionMapping(
            f"Scatter op has {len(dn.scatter_dims_to_operand_dims)} elements in "
            f"scatter_dims_to_operand_dims and the bound of dimension "
            f"index_vector_dim={dn.index_vector_dim} of scatter_indices is "
            f"{index_vector_extent}. These two numbers must be equal.")
    _check_unique(dn.scatter_dims_to_operand_dims, "scatter_dims_to_operand_dims")
    _check_in_range(dn.scatter_dims_to_operand_dims, operand_rank,
                    "scatter_dims_to_operand_dims", "rank-of('operand')")
    _check_disjoint(dn.scatter_dims_to_operand_dims, dn.input_batching_dims,
                    "scatter_dims_to_operand_dims", "input_batching_dims")

    _check_indices_batching(scatter_indices, dn.scatter_indices_batching_dims,
                            dn.input_batching_dims, dn.index_vector_dim,
                            "scatter_indices_batching_dims", "input_batching_dims")

    if operand_rank is not None:
        mapped = (len(dn.update_window_dims) + len(dn.inserted_window_dims)
                  + len(dn.input_batching_dims))
        if mapped != operand_rank:
            raise InvalidDimensionMapping(
                f"Expects rank-of operand to match size-of('update_window_dims') + "
                f"size-of('inserted_window_dims') + size-of('input_batching_dims') i.e. "
                f"{mapped} but got {operand_rank}.")


def verify_scatter(inputs: Sequence[TensorType], scatter_indices: TensorType,
                   updates: Sequence[TensorType],
                   dimension_numbers: ScatterDimensionMapping) -> None:
    """Validate the operand, indices and updates shapes of a scatter."""
    if not inputs:
        raise InvalidOperand("expects at least one input")
    if len(inputs) != len(updates):
        raise InvalidOperand(
            f"Not all inputs have a corresponding update: {len(inputs)} inputs and "
            f"{len(updates)} updates")
    inputs = [require_tensor(t, "scatter input") for t in inputs]
    updates = [require_tensor(t, "scatter update") for t in updates]
    scatter_indices = require_tensor(scatter_indices, "scatter_indices")
    if not is_integer(scatter_indices.element_type):
        raise IncompatibleElementType(
            f"expects scatter_indices to have integer element type, got "
            f"{scatter_indices.element_type}")

    for t in inputs[1:]:
        if not compatible_shapes(inputs[0].shape, t.shape):
            raise IncompatibleShape(f"Not all inputs have compatible shapes: {inputs[0]} and {t}")
    for t in updates[1:]:
        if not compatible_shapes(updates[0].shape, t.shape):
            raise IncompatibleShape(f"Not all updates have compatible shapes: {updates[0]} and {t}")

    operand = next((t for t in inputs if t.has_rank), inputs[0])
    update = next((t for t in updates if t.has_rank), updates[0])
    dn = dimension_numbers

    validate_scatter_dimension_numbers(operand, scatter_indices, dn)

    if not scatter_indices.has_rank or not update.has_rank:
        return

    batch_rank = _batch_rank(scatter_indices.rank, dn.index_vector_dim)
    expected_updates_rank = len(dn.update_window_dims) + batch_rank
    if update.rank != expected_updates_rank:
        raise IncompatibleShape(
            f"expects updates tensor must be of rank {expected_updates_rank} "
            f"( == rank-of('scatter_indices') - 1 + size-of('update_window_dims'), where "
            f"'scatter_indices' is expanded by a trailing 1 dimension if "
            f"'index_vector_dim' == rank-of('scatter_indices')), but got {update.rank}.")
    _check_in_range(dn.update_window_dims, update.rank, "update_window_dims",
                    "rank-of('updates')")

    if operand.has_rank:
        skipped = set(dn.inserted_window_dims) | set(dn.input_batching_dims)
        window_bounds = [operand.dim(i) for i in range(operand.rank) if i not in skipped]
        for bound, update_dim in zip(window_bounds, dn.update_window_dims):
            extent = update.dim(update_dim)
            if bound is not None and extent is not None and extent > bound:
                raise IncompatibleShape(
                    f"Expects bounds of the window dimensions of updates to not exceed the "
                    f"bounds of the corresponding dimensions of operand. For dimension "
                    f"{update_dim}, updates bound is {extent}, operand bound is {bound}.")

    window_set = set(dn.update_window_dims)
    scatter_dims_seen = 0
    for i in range(update.rank):
        if i in window_set:
            continue
        if scatter_dims_seen == dn.index_vector_dim:
            scatter_dims_seen += 1
        extent, bound = update.dim(i), scatter_indices.dim(scatter_dims_seen)
        if not compatible_extents(extent, bound):
            raise IncompatibleShape(
                f"Expects bounds of the scatter dimensions of updates to be same as the "
                f"bounds of the corresponding dimensions of scatter indices. For scatter "
                f"dimension {i}, expected bound is {bound}, but got {extent}.")
        scatter_dims_seen += 1

    if operand.has_rank:
        _check_batching_extents(operand, scatter_indices, dn.input_batching_dims,
                                dn.scatter_indices_batching_dims)


# ============================================================================
# Dynamic slice / dynamic update slice
# ============================================================================

def _verify_start_indices(operand: TensorType, start_indices: Sequence[TensorType]) -> None:
    if operand.has_rank and len(start_indices) != operand.rank:
        raise InvalidOperand(
            f"has mismatched number of start indices ({len(start_indices)}) and the rank "
            f"of operand ({operand.rank})")
    element_types = set()
    for i, index in enumerate(start_indices):
        index = require_tensor(index, f"start index {i}")
        if index.has_rank and index.rank != 0:
            raise InvalidOperand(f"start index {i} must be a 0-dimensional tensor, got {index}")
        if not is_integer(index.element_type):
            raise IncompatibleElementType(
                f"start index {i} must have integer element type, got {index.element_type}")
        element_types.add(index.element_type)
    if len(element_types) > 1:
        raise IncompatibleElementType(
            f"start indices must have same element type, got "
            f"{sorted(str(t) for t in element_types)}")


def infer_dynamic_slice(operand: TensorType, start_indices: Sequence[TensorType],
                        slice_sizes: Optional[Sequence[int]]) -> TensorType:
    """
    Result of dynamic_slice: the operand's element type with shape
    ``slice_sizes``; without slice sizes the operand shape is kept.
    """
    operand = require_tensor(operand, "operand")
    _verify_start_indices(operand, start_indices)
    if slice_sizes is None:
        return operand
    if operand.has_rank and len(slice_sizes) != operand.rank:
        raise InvalidDimensionMapping(
            f"has mismatched number of slice sizes ({len(slice_sizes)}) and the rank of "
            f"operand ({operand.rank})")
    for i, size in enumerate(slice_sizes):
        if size < 0:
            raise InvalidAttributeValue(f"has negative size index to dynamic slice: {size}")
        bound = operand.dim(i) if operand.has_rank else None
        if bound is not None and size > bound:
            raise InvalidAttributeValue(
                f"has slice size {size} greater than dimension size {bound} in dimension "
                f"{i} of operand")
    return TensorType(operand.element_type, slice_sizes)


def infer_dynamic_update_slice(operand: TensorType, update: TensorType,
                               start_indices: Sequence[TensorType]) -> TensorType:
    """Result of dynamic_update_slice: the operand type, once the update fits."""
    operand = require_tensor(operand, "operand")
    update = require_tensor(update, "update")
    if operand.element_type != update.element_type:
        raise IncompatibleElementType(
            f"expects update to have element type {operand.element_type}, got "
            f"{update.element_type}")
    if operand.has_rank and update.has_rank:
        if operand.rank != update.rank:
            raise IncompatibleShape(
                f"update rank does not match operand rank: {update.rank} vs {operand.rank}.")
        for i, (bound, extent) in enumerate(zip(operand.shape, update.shape)):
            if bound is not None and extent is not None and extent > bound:
                raise IncompatibleShape(
                    f"expects size at dimension {i} of update to be in range [0, {bound}]. "
                    f"Got: {extent}.")
    _verify_start_indices(operand, start_indices)
    return operand
