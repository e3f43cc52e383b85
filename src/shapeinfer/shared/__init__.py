"""
Shared components: the type model, source locations and the error taxonomy.
"""

from .source_location import SourceLocation
from .errors import (
    InferenceError, AttributeArityMismatch, MalformedAttribute,
    NonPositiveWindowAttribute, IncompatibleShape, IncompatibleElementType,
    InvalidDimensionMapping, InvalidReplicaGroups, ReducerSignatureMismatch,
    InvalidAttributeValue, InvalidRegion, InvalidOperand, ERROR_KINDS,
)
from .types import (
    Type, TypeKind, Extent, Shape, ElementType,
    IntegerType, BooleanType, FloatType, ComplexType, QuantizedType,
    TensorType, TupleType, TokenType, is_dynamic, format_dims,
    I1, BOOL, I4, I8, I16, I32, I64, UI8, UI16, UI32, UI64,
    F8E4M3FN, F8E5M2, BF16, F16, F32, F64, C64, C128, TOKEN,
)
