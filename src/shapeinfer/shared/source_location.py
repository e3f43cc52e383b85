"""
Source Location

Opaque diagnostic context handed in by the caller. The engine never reads
it beyond attaching it to the errors it returns.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Location of the operation under inspection.

    ``op_name`` optionally names the operation (e.g. ``stablehlo.gather``)
    so that errors read well even without a file position.
    """
    file: str = "<unknown>"
    line: int = 0
    column: int = 0
    op_name: str = ""
    end_line: int = 0
    end_column: int = 0

    def __str__(self) -> str:
        position = f"{self.file}:{self.line}:{self.column}"
        if self.op_name:
            return f"{position} ({self.op_name})"
        return position
