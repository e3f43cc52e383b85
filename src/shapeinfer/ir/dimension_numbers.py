"""
Dimension-number attribute bundles

Structured attributes that tell gather/scatter, convolution and dot_general
which operand dimensions play which role.
"""

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class GatherDimensionMapping:
    """
    Dimension mapping of gather and dynamic_gather.

    offset_dims index the result, collapsed_slice_dims / start_index_map /
    operand_batching_dims index the operand, index_vector_dim and
    start_indices_batching_dims index the start indices.
    """
    offset_dims: Tuple[int, ...] = ()
    collapsed_slice_dims: Tuple[int, ...] = ()
    start_index_map: Tuple[int, ...] = ()
    index_vector_dim: int = 0
    operand_batching_dims: Tuple[int, ...] = ()
    start_indices_batching_dims: Tuple[int, ...] = ()

    def __post_init__(self):
        for name in ('offset_dims', 'collapsed_slice_dims', 'start_index_map',
                     'operand_batching_dims', 'start_indices_batching_dims'):
            object.__setattr__(self, name, tuple(int(d) for d in getattr(self, name)))


@dataclass(frozen=True)
class ScatterDimensionMapping:
    """Dimension mapping of scatter (the gather mapping seen from the update side)."""
    update_window_dims: Tuple[int, ...] = ()
    inserted_window_dims: Tuple[int, ...] = ()
    scatter_dims_to_operand_dims: Tuple[int, ...] = ()
    index_vector_dim: int = 0
    input_batching_dims: Tuple[int, ...] = ()
    scatter_indices_batching_dims: Tuple[int, ...] = ()

    def __post_init__(self):
        for name in ('update_window_dims', 'inserted_window_dims',
                     'scatter_dims_to_operand_dims', 'input_batching_dims',
                     'scatter_indices_batching_dims'):
            object.__setattr__(self, name, tuple(int(d) for d in getattr(self, name)))


@dataclass(frozen=True)
class ConvDimensionNumbers:
    """Role of each dimension of convolution input, kernel and output."""
    input_batch_dimension: int = 0
    input_feature_dimension: int = 1
    input_spatial_dimensions: Tuple[int, ...] = field(default=())
    kernel_input_feature_dimension: int = 0
    kernel_output_feature_dimension: int = 1
    kernel_spatial_dimensions: Tuple[int, ...] = field(default=())
    output_batch_dimension: int = 0
    output_feature_dimension: int = 1
    output_spatial_dimensions: Tuple[int, ...] = field(default=())

    def __post_init__(self):
        for name in ('input_spatial_dimensions', 'kernel_spatial_dimensions',
                     'output_spatial_dimensions'):
            object.__setattr__(self, name, tuple(int(d) for d in getattr(self, name)))


@dataclass(frozen=True)
class DotDimensionNumbers:
    """Batching and contracting dimensions of dot_general."""
    lhs_batching_dimensions: Tuple[int, ...] = ()
    rhs_batching_dimensions: Tuple[int, ...] = ()
    lhs_contracting_dimensions: Tuple[int, ...] = ()
    rhs_contracting_dimensions: Tuple[int, ...] = ()

    def __post_init__(self):
        for name in ('lhs_batching_dimensions', 'rhs_batching_dimensions',
                     'lhs_contracting_dimensions', 'rhs_contracting_dimensions'):
            object.__setattr__(self, name, tuple(int(d) for d in getattr(self, name)))
