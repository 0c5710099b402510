"""
Custom date/time format patterns.

Users describe how dates appear in their filenames or folder paths with a
small token language:

    YYYY  four-digit year
    MM    two-digit month
    DD    two-digit day
    HH    two-digit hour
    mm    two-digit minute
    ss    two-digit second

Every other character is literal. "YYYY/MM/DD" matches "2024/03/15" and
"IMG_YYYYMMDD_HHmmss" matches "IMG_20240315_143022". Patterns are searched
anywhere in the input, so surrounding path segments do not prevent a match.

Compiled patterns are cached per format string for the life of the process.
"""

import re
from datetime import datetime
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

MIN_YEAR = 1900
MAX_YEAR = 2100

# Longest tokens first so "YYYY" is never read as two "YY"
_TOKENS = (
    ("YYYY", "year", r"(\d{4})"),
    ("MM", "month", r"(\d{2})"),
    ("DD", "day", r"(\d{2})"),
    ("HH", "hour", r"(\d{2})"),
    ("mm", "minute", r"(\d{2})"),
    ("ss", "second", r"(\d{2})"),
)


class CompiledFormat(NamedTuple):
    """A compiled format pattern and the date part captured by each group."""

    regex: "re.Pattern[str]"
    fields: Tuple[str, ...]


@lru_cache(maxsize=128)
def compile_format(fmt: str) -> CompiledFormat:
    """
    Compile a format string into a regex.

    Tokens are bound to capture groups in the order they appear in the
    format string.

    Args:
        fmt: Format string such as "YYYY-MM-DD_HH-mm-ss"

    Returns:
        CompiledFormat with the regex and ordered field names
    """
    parts = []
    fields = []
    pos = 0
    while pos < len(fmt):
        for token, field, group in _TOKENS:
            if fmt.startswith(token, pos):
                parts.append(group)
                fields.append(field)
                pos += len(token)
                break
        else:
            parts.append(re.escape(fmt[pos]))
            pos += 1

    return CompiledFormat(re.compile("".join(parts)), tuple(fields))


def parse_with_format(text: str, fmt: Optional[str]) -> Optional[datetime]:
    """
    Parse a date from text using a custom format.

    Missing month/day default to 1 and missing time parts to 0.

    Args:
        text: Filename or folder path to search
        fmt: Format string; empty or None never matches

    Returns:
        datetime if the pattern matches and forms a valid date with a year
        in [1900, 2100], otherwise None
    """
    if not fmt or not text:
        return None

    compiled = compile_format(fmt)
    if "year" not in compiled.fields:
        return None

    match = compiled.regex.search(text)
    if not match:
        return None

    values = {"month": 1, "day": 1, "hour": 0, "minute": 0, "second": 0}
    for field, raw in zip(compiled.fields, match.groups()):
        values[field] = int(raw)

    if not MIN_YEAR <= values["year"] <= MAX_YEAR:
        return None

    try:
        return datetime(**values)
    except ValueError:
        return None
