"""
Source Location

Points a diagnostic at a manifest: the file it was read from, the field
inside it and, for parse errors, the line/column within that field's text.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SourceLocation:
    """
    Location of a manifest fragment.

    - file: manifest path, or a pseudo name such as ``<util:Imports>`` for
      an in-memory field string
    - line/column: 1-based position inside the file or field text (0 = unknown)
    - field: manifest field the fragment came from, when known
    """
    file: str
    line: int = 0
    column: int = 0
    field: Optional[str] = None
    end_column: int = 0

    def __str__(self) -> str:
        if self.line:
            return f"{self.file}:{self.line}:{self.column}"
        if self.field:
            return f"{self.file} ({self.field})"
        return self.file
