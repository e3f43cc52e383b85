"""
Operation descriptors of the tensor IR
"""

from .region import Region
from .dimension_numbers import (
    GatherDimensionMapping, ScatterDimensionMapping,
    ConvDimensionNumbers, DotDimensionNumbers,
)
from .ops import *  # noqa: F401,F403
from .ops import __all__ as _ops_all

__all__ = [
    "Region",
    "GatherDimensionMapping", "ScatterDimensionMapping",
    "ConvDimensionNumbers", "DotDimensionNumbers",
] + list(_ops_all)
