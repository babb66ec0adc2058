"""
Normalization helpers for rule paths and HTTP methods.
"""

import re
from typing import List, Sequence, Union

from .errors import InvalidHttpMethodError
from .models import HTTP_METHODS


def ensure_pattern(pattern: Union[str, re.Pattern]) -> re.Pattern:
    """Compile ``pattern`` unless it already is a compiled regex.

    No anchoring is added; callers decide with ``^``/``$`` themselves.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


def ensure_valid_http_method(method: str) -> str:
    """Return the upper-cased method or raise InvalidHttpMethodError."""
    normalized = str(method).upper()
    if normalized not in HTTP_METHODS:
        raise InvalidHttpMethodError(method, HTTP_METHODS)
    return normalized


def format_table(header: Sequence[str], rows: List[Sequence[str]], separator: str = " | ") -> str:
    """Render rows as a text table, each column as wide as its widest cell."""
    table = [list(header)] + [list(row) for row in rows]
    widths = [max(len(line[col]) for line in table) for col in range(len(header))]
    lines = [
        separator.join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip()
        for line in table
    ]
    return "\n".join(lines)
