"""
Base Classes and Utilities

Result type returned across the engine boundary.
"""

from typing import Generic, TypeVar, Union
from dataclasses import dataclass
from enum import Enum

T = TypeVar('T')
E = TypeVar('E')


class ResultTag(Enum):
    """Result discriminant"""
    OK = "ok"
    ERR = "err"


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Result type: Ok(T) | Err(E)"""
    tag: ResultTag
    value: Union[T, E]

    @classmethod
    def ok(cls, value: T) -> 'Result[T, E]':
        """Create successful result"""
        return cls(ResultTag.OK, value)

    @classmethod
    def err(cls, error: E) -> 'Result[T, E]':
        """Create error result"""
        return cls(ResultTag.ERR, error)

    def is_ok(self) -> bool:
        return self.tag == ResultTag.OK

    def is_err(self) -> bool:
        return self.tag == ResultTag.ERR

    @property
    def error(self) -> E:
        if self.is_ok():
            raise ValueError("Result is Ok, it carries no error")
        return self.value

    def unwrap(self) -> T:
        """Extract Ok value; re-raises the contained error for Err."""
        if self.is_err():
            if isinstance(self.value, BaseException):
                raise self.value
            raise ValueError(f"Called unwrap() on Err: {self.value}")
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_ok() else default
