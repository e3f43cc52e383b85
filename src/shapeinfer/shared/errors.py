"""
Error Taxonomy

Every way an operation can be ill-formed maps to one InferenceError
subclass with a stable error code. Shape rules raise these; the engine
boundary (``inference.engine.infer_op``) catches them and hands them back
to the caller as ``Result.err`` values.
"""

from typing import Iterable, List, Optional

from .source_location import SourceLocation


class InferenceError(Exception):
    """
    Base of all shape/type inference failures.

    Attributes:
        message: human readable description of the first violation found
        location: caller supplied diagnostic context (may be None)
        notes: further violations found by validators that run several checks
    """
    error_code: str = "E0600"

    def __init__(self, message: str, location: Optional[SourceLocation] = None,
                 notes: Iterable[str] = ()):
        super().__init__(message)
        self.message = message
        self.location = location
        self.notes: List[str] = list(notes)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def with_location(self, location: Optional[SourceLocation]) -> 'InferenceError':
        """Attach ``location`` unless the error already carries one."""
        if self.location is None and location is not None:
            self.location = location
        return self

    def __str__(self) -> str:
        lines = [f"error[{self.error_code}]: {self.message}"]
        if self.location is not None:
            lines.append(f" --> {self.location}")
        for note in self.notes:
            lines.append(f"  = note: {note}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"{self.kind}({self.message!r})"


class AttributeArityMismatch(InferenceError):
    """A per-dimension attribute's length disagrees with the expected arity."""
    error_code = "E0601"


class MalformedAttribute(InferenceError):
    """Attribute payload is not of the expected dimensionality or element kind."""
    error_code = "E0602"


class NonPositiveWindowAttribute(InferenceError):
    """Window size, stride or dilation is <= 0."""
    error_code = "E0603"


class IncompatibleShape(InferenceError):
    """Operand shapes or extents are not compatible where the op requires it."""
    error_code = "E0604"


class IncompatibleElementType(InferenceError):
    """Element types differ beyond the permitted relaxed-precision rule."""
    error_code = "E0605"


class InvalidDimensionMapping(InferenceError):
    """Dimension-number attributes are out of range, unsorted or inconsistent."""
    error_code = "E0606"


class InvalidReplicaGroups(InferenceError):
    """A replica group grid fails one of the collective group rules."""
    error_code = "E0607"


class ReducerSignatureMismatch(InferenceError):
    """
    Reduction body signature does not match the accumulator/operand contract.

    ``parameter_index`` names the offending block parameter (None when the
    problem is the parameter or result count), ``reason`` is a short tag:
    parameter-count, result-count, result-kind, accumulator-type,
    operand-type, init-type, element-type or shape.
    """
    error_code = "E0608"

    def __init__(self, message: str, parameter_index: Optional[int] = None,
                 reason: str = "", location: Optional[SourceLocation] = None,
                 notes: Iterable[str] = ()):
        super().__init__(message, location, notes)
        self.parameter_index = parameter_index
        self.reason = reason


class InvalidAttributeValue(InferenceError):
    """An attribute value is outside its legal range (negative size, bad enum, ...)."""
    error_code = "E0609"


class InvalidRegion(InferenceError):
    """A nested region (branch, loop body, comparator) has the wrong signature."""
    error_code = "E0610"


class InvalidOperand(InferenceError):
    """An operand is of the wrong kind (tuple where a tensor is expected, ...)."""
    error_code = "E0611"


ERROR_KINDS = (
    AttributeArityMismatch,
    MalformedAttribute,
    NonPositiveWindowAttribute,
    IncompatibleShape,
    IncompatibleElementType,
    InvalidDimensionMapping,
    InvalidReplicaGroups,
    ReducerSignatureMismatch,
    InvalidAttributeValue,
    InvalidRegion,
    InvalidOperand,
)
